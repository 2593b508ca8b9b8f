"""
Orders service
==============
Order-level view over the article rows: listing with filters and
pagination, manual orders, order edits and cascading deletes.

Usage:
    service = OrdersService(store)
    page = service.list_orders(status="processing", search="dupont", page=2)
    page["orders"], page["pagination"]
"""
import math
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_

from atelier.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from atelier.database import Store
from atelier.exceptions import NotFoundError, ValidationError
from atelier.models import ArticleAssignment, OrderItem, ProductionStatus
from atelier.services.classification import ProductionClassifier, default_classifier
from atelier.services.order_transformer import parse_date
from atelier.services.production import find_assignment, status_snapshot, upsert_production_status
from atelier.utils.validators import ManualOrderValidator, raise_for_errors, require_production_type

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "order_date": OrderItem.order_date,
    "order_id": OrderItem.order_id,
    "order_number": OrderItem.order_number,
    "customer": OrderItem.customer,
    "status": OrderItem.status,
    "total": OrderItem.total,
}

# Order-level fields an edit may change
EDITABLE_ORDER_FIELDS = (
    "order_number", "order_date", "status",
    "customer", "customer_email", "customer_phone", "customer_address",
    "customer_country", "customer_note",
    "shipping_method", "shipping_carrier", "total",
)

ITEM_FIELDS = (
    "id", "line_item_id", "product_id", "product_name", "quantity", "price",
    "meta_data", "image_url", "permalink", "variation_id",
)


def _group_rows(rows: List[OrderItem], statuses: Dict[tuple, ProductionStatus]) -> List[Dict[str, Any]]:
    """Article rows → orders with nested items, in first-seen order"""
    orders: Dict[int, Dict[str, Any]] = {}
    for row in rows:
        data = row.to_dict()
        order = orders.get(row.order_id)
        if order is None:
            order = {"order_id": row.order_id}
            order.update({k: data[k] for k in OrderItem.ORDER_FIELDS})
            order["items"] = []
            orders[row.order_id] = order
        item = {k: data[k] for k in ITEM_FIELDS}
        record = statuses.get((row.order_id, row.line_item_id))
        item["production_status"] = status_snapshot(record) if record else data["production_status"]
        item["assigned_to"] = record.assigned_to if record else None
        item["assigned_name"] = record.assigned_name if record else None
        order["items"].append(item)
    return list(orders.values())


class OrdersService:
    """Orders read and edit operations"""

    def __init__(self, store: Store, classifier: Optional[ProductionClassifier] = None):
        self.store = store
        self.classifier = classifier or default_classifier

    def _load_orders(self, session, order_ids: List[int], production_type: Optional[str] = None):
        if not order_ids:
            return []
        rows = (
            session.query(OrderItem)
            .filter(OrderItem.order_id.in_(order_ids))
            .order_by(OrderItem.line_item_id)
            .all()
        )
        statuses = {
            (s.order_id, s.line_item_id): s
            for s in session.query(ProductionStatus).filter(ProductionStatus.order_id.in_(order_ids)).all()
        }
        if production_type:
            rows = [
                r for r in rows
                if statuses.get((r.order_id, r.line_item_id)) is not None
                and statuses[(r.order_id, r.line_item_id)].production_type == production_type
            ]
        grouped = {o["order_id"]: o for o in _group_rows(rows, statuses)}
        return [grouped[i] for i in order_ids if i in grouped]

    def list_orders(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: str = "desc",
        production_type: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Dict[str, Any]:
        """
        Paginated orders

        Args:
            status: source order status, "all" or None for every status
            search: substring of order number or customer name, or an exact order id
            sort_by: one of SORTABLE_FIELDS (default order_date)
            sort_order: "asc" or "desc"
            production_type: only orders (and items) of this type
            page: 1-based page number
            limit: orders per page

        Returns:
            {"orders": [...], "pagination": {"page", "limit", "total", "pages"}}
        """
        if sort_by and sort_by not in SORTABLE_FIELDS:
            raise ValidationError(
                f"cannot sort by '{sort_by}'",
                extra={"field": "sort_by", "allowed": sorted(SORTABLE_FIELDS)},
            )
        if production_type:
            require_production_type(production_type)
        page = max(1, int(page or 1))
        limit = max(1, min(int(limit or DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE))

        sort_column = SORTABLE_FIELDS[sort_by or "order_date"]
        sort_key = func.min(sort_column).label("sort_key")

        with self.store.session() as session:
            query = session.query(OrderItem.order_id, sort_key)
            if status and status != "all":
                query = query.filter(OrderItem.status == status)
            if search and search.strip():
                term = search.strip()
                conditions = [
                    OrderItem.order_number.ilike(f"%{term}%"),
                    OrderItem.customer.ilike(f"%{term}%"),
                ]
                if term.lstrip("-").isdigit():
                    conditions.append(OrderItem.order_id == int(term))
                query = query.filter(or_(*conditions))
            if production_type:
                query = query.join(
                    ProductionStatus,
                    (ProductionStatus.order_id == OrderItem.order_id)
                    & (ProductionStatus.line_item_id == OrderItem.line_item_id),
                ).filter(ProductionStatus.production_type == production_type)
            query = query.group_by(OrderItem.order_id)

            total = session.query(func.count()).select_from(query.subquery()).scalar() or 0

            direction = sort_key.asc() if sort_order == "asc" else sort_key.desc()
            tie_break = OrderItem.order_id.asc() if sort_order == "asc" else OrderItem.order_id.desc()
            page_ids = [
                row.order_id for row in
                query.order_by(direction, tie_break).offset((page - 1) * limit).limit(limit).all()
            ]
            orders = self._load_orders(session, page_ids, production_type)

        return {
            "orders": orders,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if total else 0,
            },
        }

    def get_order(self, order_id: int) -> Dict[str, Any]:
        with self.store.session() as session:
            orders = self._load_orders(session, [order_id])
        if not orders:
            raise NotFoundError(f"order {order_id} not found")
        return orders[0]

    def create_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Manual order (not from the shop)

        Manual orders get negative ids so they never move the sync
        high-water mark. Items are numbered from 1.

        Raises:
            ValidationError: see ManualOrderValidator
        """
        raise_for_errors(ManualOrderValidator().validate(payload))

        with self.store.session() as session:
            lowest = session.query(func.min(OrderItem.order_id)).scalar()
            order_id = min(int(lowest or 0), 0) - 1
            items = payload["items"]
            total = payload.get("total")
            if total is None:
                total = sum(float(i.get("price", 0)) * int(i.get("quantity", 1)) for i in items)

            order_fields = {
                "order_number": str(payload.get("order_number") or f"M{abs(order_id)}"),
                "order_date": parse_date(payload.get("order_date")) or datetime.utcnow(),
                "status": payload.get("status") or "processing",
                "customer": str(payload["customer"]).strip(),
                "customer_email": payload.get("customer_email"),
                "customer_phone": payload.get("customer_phone"),
                "customer_address": payload.get("customer_address"),
                "customer_country": payload.get("customer_country"),
                "customer_note": payload.get("customer_note"),
                "shipping_method": payload.get("shipping_method"),
                "shipping_carrier": payload.get("shipping_carrier"),
                "total": float(total),
            }

            for line_item_id, item in enumerate(items, start=1):
                row = OrderItem(
                    order_id=order_id,
                    line_item_id=line_item_id,
                    product_id=item.get("product_id") or None,
                    product_name=str(item["product_name"]).strip(),
                    quantity=int(item.get("quantity", 1)),
                    price=float(item.get("price", 0)),
                    meta_data=item.get("meta_data") or [],
                    **order_fields,
                )
                session.add(row)
                session.flush()
                production_type = item.get("production_type") or self.classifier.classify(row.product_name)
                record, _, _ = upsert_production_status(
                    session, order_id, line_item_id, production_type=production_type
                )
                row.production_status = status_snapshot(record)

        logger.info(f"Manual order {order_id} ({order_fields['order_number']}) created with {len(items)} items")
        return self.get_order(order_id)

    def update_order(self, order_id: int, patch: Dict[str, Any]) -> Dict[str, Any]:
        """Change order-level fields on every article row of the order"""
        values = {k: v for k, v in patch.items() if k in EDITABLE_ORDER_FIELDS}
        if not values:
            raise ValidationError(
                "no editable field given",
                extra={"allowed": list(EDITABLE_ORDER_FIELDS)},
            )
        if "order_date" in values:
            values["order_date"] = parse_date(values["order_date"])
        if "total" in values:
            try:
                values["total"] = float(values["total"])
            except (TypeError, ValueError):
                raise ValidationError("total must be a number", extra={"field": "total"}) from None
        values["updated_at"] = datetime.utcnow()

        with self.store.session() as session:
            count = (
                session.query(OrderItem)
                .filter_by(order_id=order_id)
                .update(values, synchronize_session=False)
            )
            if not count:
                raise NotFoundError(f"order {order_id} not found")
        logger.info(f"Order {order_id} updated: {sorted(values)}")
        return self.get_order(order_id)

    def update_order_note(self, order_id: int, note: Optional[str]) -> Dict[str, Any]:
        return self.update_order(order_id, {"customer_note": note or None})

    def delete_order(self, order_id: int) -> Dict[str, Any]:
        """Remove the order with its status and assignment records"""
        with self.store.session() as session:
            deleted = session.query(OrderItem).filter_by(order_id=order_id).delete(synchronize_session=False)
            if not deleted:
                raise NotFoundError(f"order {order_id} not found")
            statuses = session.query(ProductionStatus).filter_by(order_id=order_id).delete(synchronize_session=False)
            assignments = (
                session.query(ArticleAssignment)
                .filter_by(order_id=order_id)
                .delete(synchronize_session=False)
            )
        logger.info(
            f"Order {order_id} deleted: {deleted} items, {statuses} statuses, {assignments} assignments"
        )
        return {"orderId": order_id, "deletedItems": deleted, "deletedAssignments": assignments}

    def delete_order_item(self, order_id: int, line_item_id: int) -> Dict[str, Any]:
        """Remove one article with its status and assignment"""
        with self.store.session() as session:
            deleted = (
                session.query(OrderItem)
                .filter_by(order_id=order_id, line_item_id=line_item_id)
                .delete(synchronize_session=False)
            )
            if not deleted:
                raise NotFoundError(f"article {order_id}-{line_item_id} not found")
            session.query(ProductionStatus).filter_by(
                order_id=order_id, line_item_id=line_item_id
            ).delete(synchronize_session=False)
            assignment = find_assignment(session, order_id, line_item_id)
            if assignment is not None:
                session.delete(assignment)
        logger.info(f"Article {order_id}-{line_item_id} deleted")
        return {"orderId": order_id, "lineItemId": line_item_id, "assignmentRemoved": assignment is not None}

    def get_orders_stats(self) -> Dict[str, Any]:
        """Article counts per source order status"""
        with self.store.session() as session:
            by_status = dict(
                session.query(OrderItem.status, func.count(OrderItem.id))
                .group_by(OrderItem.status)
                .all()
            )
            total_orders = session.query(func.count(func.distinct(OrderItem.order_id))).scalar() or 0
        return {
            "totalOrders": total_orders,
            "totalItems": sum(by_status.values()),
            "byStatus": {str(k): v for k, v in by_status.items()},
        }
