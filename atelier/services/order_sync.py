"""
Order reconciliation
====================
WooCommerce → order_items + production_status

Each run takes the highest order id already stored (high-water mark),
fetches the most recent page of orders, and imports every newer order that
is not present yet. One order's failure is logged and counted; the run goes
on. The uniqueness constraint on (order_id, line_item_id) is the real
duplicate guard, the existence check is a fast path.

Usage:
    sync = OrderSync(store, WooCommerceClient.from_settings(settings))
    summary = sync.run()
    summary.to_dict()   # {"synchronized": 3, "lastOrderId": 1200, ...}

    sync.import_order(1234)   # one order, no high-water-mark filter
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import func

from atelier.constants import FINAL_ORDER_STATUSES, WOOCOMMERCE_MAX_PER_PAGE
from atelier.database import Store
from atelier.exceptions import AtelierError, DuplicateRecordError, NotFoundError, UpstreamFetchError
from atelier.models import ArticleAssignment, OrderItem, ProductionStatus
from atelier.services.classification import ProductionClassifier, default_classifier
from atelier.services.order_transformer import TransformedOrder, transform_order
from atelier.services.production import status_snapshot, upsert_production_status
from atelier.utils.sync_logger import SyncRunLog

logger = logging.getLogger(__name__)


class OrderSource(Protocol):
    """What the engine needs from the shop API"""

    def list_orders(self, per_page: int = WOOCOMMERCE_MAX_PER_PAGE) -> List[Dict[str, Any]]:
        ...

    def get_order(self, order_id: int) -> Optional[Dict[str, Any]]:
        ...

    def get_product(self, product_id: int) -> Optional[Dict[str, Any]]:
        ...


@dataclass
class SyncSummary:
    """Outcome of one reconciliation run"""
    success: bool = True
    message: str = ""
    synchronized: int = 0
    items_inserted: int = 0
    skipped: int = 0
    error_count: int = 0
    deleted: int = 0
    last_order_id: int = 0
    new_orders: List[int] = field(default_factory=list)
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "synchronized": self.synchronized,
            "itemsInserted": self.items_inserted,
            "skipped": self.skipped,
            "errorCount": self.error_count,
            "deleted": self.deleted,
            "lastOrderId": self.last_order_id,
            "newOrders": list(self.new_orders),
            "timestamp": self.timestamp,
        }


def _source_order_id(order: Any) -> Optional[int]:
    try:
        return int(order.get("id"))
    except (AttributeError, TypeError, ValueError):
        return None


class OrderSync:
    """
    Reconciliation engine

    Attributes:
        store: connected Store
        source: order source (WooCommerceClient or any OrderSource)
        lookback_ids: also re-check ids this far below the mark (0 = off)
        cleanup_final_orders: delete completed/refunded/cancelled orders after a run
        fetch_product_details: fill missing permalink/image from the product endpoint
    """

    def __init__(
        self,
        store: Store,
        source: OrderSource,
        classifier: Optional[ProductionClassifier] = None,
        page_size: int = WOOCOMMERCE_MAX_PER_PAGE,
        lookback_ids: int = 0,
        cleanup_final_orders: bool = False,
        fetch_product_details: bool = False,
        report_dir: Optional[Path] = None,
    ):
        self.store = store
        self.source = source
        self.classifier = classifier or default_classifier
        self.page_size = max(1, min(int(page_size), WOOCOMMERCE_MAX_PER_PAGE))
        self.lookback_ids = max(0, int(lookback_ids))
        self.cleanup_final_orders = cleanup_final_orders
        self.fetch_product_details = fetch_product_details
        self.report_dir = report_dir

    @classmethod
    def from_settings(cls, store: Store, source: OrderSource, settings) -> "OrderSync":
        return cls(
            store,
            source,
            page_size=settings.sync_page_size,
            lookback_ids=settings.sync_lookback_ids,
            cleanup_final_orders=settings.sync_cleanup_final_orders,
            fetch_product_details=settings.sync_fetch_product_details,
            report_dir=Path(settings.sync_report_dir) if settings.sync_report_dir else None,
        )

    # ------------------------------------------------------------------
    # store helpers
    # ------------------------------------------------------------------

    def last_known_order_id(self) -> int:
        """Highest stored order id, 0 when empty (manual orders are negative)"""
        with self.store.session() as session:
            highest = session.query(func.max(OrderItem.order_id)).scalar()
        return max(int(highest or 0), 0)

    def _order_exists(self, order_id: int) -> bool:
        with self.store.session() as session:
            return session.query(OrderItem.id).filter_by(order_id=order_id).first() is not None

    def _enrich(self, transformed: TransformedOrder):
        """Permalink and first image from the product endpoint, best effort"""
        for item in transformed.items:
            if (item["permalink"] and item["image_url"]) or not item["product_id"]:
                continue
            try:
                product = self.source.get_product(item["product_id"])
            except UpstreamFetchError as e:
                logger.warning(f"Product {item['product_id']} lookup failed: {e.detail}")
                continue
            if not product:
                continue
            item["permalink"] = item["permalink"] or product.get("permalink")
            images = product.get("images") or []
            if not item["image_url"] and images and isinstance(images[0], dict):
                item["image_url"] = images[0].get("src")

    def _write_order(self, transformed: TransformedOrder) -> int:
        """
        Insert the article rows and their status records in one session

        An existing status record (from an earlier assignment, for instance)
        keeps its state; only a missing production type is filled in.

        Raises:
            DuplicateRecordError: an article row already exists
        """
        with self.store.session() as session:
            rows = []
            for row_data in transformed.rows():
                row = OrderItem(**row_data)
                session.add(row)
                rows.append(row)
            session.flush()

            for row, item in zip(rows, transformed.items):
                production_type = item["production_type"] or self.classifier.classify(item["product_name"])
                record = (
                    session.query(ProductionStatus)
                    .filter_by(order_id=row.order_id, line_item_id=row.line_item_id)
                    .one_or_none()
                )
                if record is None or not record.production_type:
                    record, _, _ = upsert_production_status(
                        session, row.order_id, row.line_item_id, production_type=production_type
                    )
                row.production_status = status_snapshot(record)
        return len(rows)

    # ------------------------------------------------------------------
    # runs
    # ------------------------------------------------------------------

    def _process(self, order: Dict[str, Any], summary: SyncSummary, run_log: SyncRunLog):
        order_id = _source_order_id(order)
        try:
            if self._order_exists(order_id):
                summary.skipped += 1
                run_log.skipped(order_id, "already present")
                return

            # never import what the cleanup pass deletes
            source_status = str(order.get("status") or "")
            if self.cleanup_final_orders and source_status in FINAL_ORDER_STATUSES:
                summary.skipped += 1
                run_log.skipped(order_id, f"final status {source_status}")
                logger.info(f"Order {order_id} is {source_status}, not imported")
                return

            transformed = transform_order(order)
            if not transformed.items:
                summary.skipped += 1
                run_log.skipped(order_id, "no line items")
                logger.info(f"Order {order_id} has no line items, skipped")
                return

            if self.fetch_product_details:
                self._enrich(transformed)

            inserted = self._write_order(transformed)
        except DuplicateRecordError:
            summary.skipped += 1
            run_log.skipped(order_id, "imported concurrently")
            logger.info(f"Order {order_id} already synchronized (duplicate key)")
            return
        except AtelierError as e:
            summary.error_count += 1
            run_log.failed(order_id, e.detail, details=e.extra or None)
            logger.error(f"Order {order_id} failed: {e.detail}")
            return
        except Exception as e:
            summary.error_count += 1
            run_log.failed(order_id, f"{type(e).__name__}: {e}")
            logger.exception(f"Order {order_id} failed unexpectedly")
            return

        summary.synchronized += 1
        summary.items_inserted += inserted
        summary.new_orders.append(order_id)
        run_log.imported(order_id, articles=inserted)
        logger.info(f"Order {order_id} imported: {inserted} articles")

    def run(self) -> SyncSummary:
        """
        One reconciliation pass

        Raises:
            UpstreamFetchError: the order list could not be fetched (nothing
                is written in that case)
        """
        run_log = SyncRunLog("orders", report_dir=self.report_dir)
        last_order_id = self.last_known_order_id()
        summary = SyncSummary(last_order_id=last_order_id)

        orders = self.source.list_orders(per_page=self.page_size)

        threshold = last_order_id - self.lookback_ids
        candidates = []
        for order in orders:
            order_id = _source_order_id(order)
            if order_id is None:
                summary.error_count += 1
                run_log.failed(None, "order without id")
                logger.warning("Order without id in the source page, ignored")
            elif order_id > threshold:
                candidates.append((order_id, order))
        candidates.sort(key=lambda pair: pair[0])

        logger.info(
            f"Sync: mark={last_order_id}, lookback={self.lookback_ids}, "
            f"fetched={len(orders)}, candidates={len(candidates)}"
        )

        for _, order in candidates:
            self._process(order, summary, run_log)

        if self.cleanup_final_orders:
            summary.deleted = self.cleanup_finished_orders()

        run_log.close()

        if not candidates:
            summary.message = "No new orders to synchronize"
        else:
            summary.message = (
                f"{summary.synchronized} new orders, {summary.items_inserted} articles, "
                f"{summary.skipped} skipped, {summary.error_count} errors"
            )
        if summary.deleted:
            summary.message += f", {summary.deleted} finished order items removed"
        return summary

    def import_order(self, order_id: int) -> Dict[str, Any]:
        """
        Import one order by id, regardless of the high-water mark

        Returns:
            {"orderId", "articlesCount", "alreadyPresent"}

        Raises:
            NotFoundError: the shop has no such order
            UpstreamFetchError: the shop could not be reached
        """
        order = self.source.get_order(order_id)
        if order is None:
            raise NotFoundError(f"order {order_id} not found in WooCommerce")

        def _present() -> Dict[str, Any]:
            with self.store.session() as session:
                count = session.query(func.count(OrderItem.id)).filter_by(order_id=order_id).scalar()
            return {"orderId": order_id, "articlesCount": int(count or 0), "alreadyPresent": True}

        if self._order_exists(order_id):
            logger.info(f"Order {order_id} already present")
            return _present()

        transformed = transform_order(order)
        if self.fetch_product_details:
            self._enrich(transformed)
        try:
            inserted = self._write_order(transformed) if transformed.items else 0
        except DuplicateRecordError:
            return _present()

        logger.info(f"Order {order_id} imported on demand: {inserted} articles")
        return {"orderId": transformed.order_id, "articlesCount": inserted, "alreadyPresent": False}

    def cleanup_finished_orders(self) -> int:
        """
        Delete orders whose source status is final, with their status and
        assignment records

        Returns:
            number of order item rows deleted
        """
        with self.store.session() as session:
            order_ids = [
                row[0] for row in
                session.query(OrderItem.order_id)
                .filter(OrderItem.status.in_(FINAL_ORDER_STATUSES))
                .distinct()
                .all()
            ]
            if not order_ids:
                logger.info("No finished orders to remove")
                return 0

            deleted = (
                session.query(OrderItem)
                .filter(OrderItem.order_id.in_(order_ids))
                .delete(synchronize_session=False)
            )
            session.query(ProductionStatus).filter(
                ProductionStatus.order_id.in_(order_ids)
            ).delete(synchronize_session=False)
            session.query(ArticleAssignment).filter(
                ArticleAssignment.order_id.in_(order_ids)
            ).delete(synchronize_session=False)

        logger.info(f"Cleanup: {deleted} items removed from {len(order_ids)} finished orders")
        return deleted
