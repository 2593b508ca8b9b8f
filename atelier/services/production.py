"""
Production status service
=========================
Authoritative per-article state (status, type, urgent, notes). Every write
goes through upsert_production_status() so there is exactly one record per
(order_id, line_item_id); status/urgent changes are mirrored onto an
existing assignment for the same article.

Usage:
    service = ProductionService(store)
    service.update_status(1234, 1, "en_cours")
    service.bulk_update_status([{"orderId": 1234, "lineItemId": 1, "status": "termine"}])
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from atelier.constants import STATUS_TODO
from atelier.database import Store
from atelier.exceptions import NotFoundError, ValidationError
from atelier.models import ArticleAssignment, OrderItem, ProductionStatus
from atelier.services.classification import ProductionClassifier, default_classifier
from atelier.utils.article_ref import ArticleRef
from atelier.utils.validators import require_production_type, require_status

logger = logging.getLogger(__name__)


def status_snapshot(record: ProductionStatus) -> Dict[str, Any]:
    return {
        "status": record.status,
        "production_type": record.production_type,
        "urgent": bool(record.urgent),
        "notes": record.notes,
        "updated_at": record.updated_at.isoformat() if record.updated_at else None,
    }


def upsert_production_status(
    session: Session,
    order_id: int,
    line_item_id: int,
    **fields,
) -> Tuple[ProductionStatus, bool, bool]:
    """
    Create or update the status record of one article

    A new record starts as a_faire, not urgent, no notes. Only fields whose
    value differs are written; the order item snapshot is refreshed when
    anything changed.

    Returns:
        (record, created, changed)
    """
    record = (
        session.query(ProductionStatus)
        .filter_by(order_id=order_id, line_item_id=line_item_id)
        .one_or_none()
    )
    created = record is None
    if created:
        record = ProductionStatus(
            order_id=order_id,
            line_item_id=line_item_id,
            status=STATUS_TODO,
            urgent=False,
            notes=None,
        )
        session.add(record)

    changed = created
    for key, value in fields.items():
        if getattr(record, key) != value:
            setattr(record, key, value)
            changed = True

    if changed:
        record.updated_at = datetime.utcnow()
        session.query(OrderItem).filter_by(order_id=order_id, line_item_id=line_item_id).update(
            {OrderItem.production_status: status_snapshot(record)}, synchronize_session=False
        )
    return record, created, changed


def find_assignment(session: Session, order_id: int, line_item_id: int) -> Optional[ArticleAssignment]:
    """Assignment for an article, whichever article id spelling it was stored with"""
    ref = ArticleRef.of(order_id, line_item_id)
    return (
        session.query(ArticleAssignment)
        .filter(or_(
            (ArticleAssignment.order_id == ref.order_id) & (ArticleAssignment.line_item_id == ref.line_item_id),
            ArticleAssignment.article_id.in_(ref.spellings()),
        ))
        .first()
    )


def _mirror_onto_assignment(session: Session, record: ProductionStatus):
    assignment = find_assignment(session, record.order_id, record.line_item_id)
    if assignment is None:
        return
    if assignment.status != record.status or bool(assignment.urgent) != bool(record.urgent):
        assignment.status = record.status
        assignment.urgent = bool(record.urgent)
        assignment.updated_at = datetime.utcnow()


def _bulk_entry(index: int, entry: Any) -> Tuple[Optional[Tuple[int, int, str]], Optional[Dict]]:
    if not isinstance(entry, dict):
        return None, {"index": index, "message": "entry must be an object"}
    order_id = entry.get("orderId", entry.get("order_id"))
    line_item_id = entry.get("lineItemId", entry.get("line_item_id"))
    status = entry.get("status")
    try:
        order_id, line_item_id = int(order_id), int(line_item_id)
        require_status(status)
    except (TypeError, ValueError):
        return None, {"index": index, "message": "orderId and lineItemId must be integers"}
    except ValidationError as e:
        return None, {"index": index, "message": e.detail}
    return (order_id, line_item_id, status), None


class ProductionService:
    """Per-article production state"""

    def __init__(self, store: Store, classifier: Optional[ProductionClassifier] = None):
        self.store = store
        self.classifier = classifier or default_classifier

    def get_status(self, order_id: int, line_item_id: int) -> Dict[str, Any]:
        with self.store.session() as session:
            record = (
                session.query(ProductionStatus)
                .filter_by(order_id=order_id, line_item_id=line_item_id)
                .one_or_none()
            )
            if record is None:
                raise NotFoundError(f"no production status for article {order_id}-{line_item_id}")
            return record.to_dict()

    def _write(self, order_id: int, line_item_id: int, **fields) -> Dict[str, Any]:
        with self.store.session() as session:
            record, created, changed = upsert_production_status(session, order_id, line_item_id, **fields)
            if changed:
                _mirror_onto_assignment(session, record)
            logger.info(
                f"Production status {'created' if created else 'updated'}: "
                f"{order_id}-{line_item_id} {fields}"
            )
            return record.to_dict()

    def update_status(
        self,
        order_id: int,
        line_item_id: int,
        status: str,
        notes: Optional[str] = None,
        urgent: Optional[bool] = None,
        production_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Upsert one article; omitted optional fields stay as they are"""
        fields = {"status": require_status(status)}
        if notes is not None:
            fields["notes"] = notes
        if urgent is not None:
            fields["urgent"] = bool(urgent)
        if production_type is not None:
            fields["production_type"] = require_production_type(production_type)
        return self._write(order_id, line_item_id, **fields)

    def set_urgent(self, order_id: int, line_item_id: int, urgent: bool) -> Dict[str, Any]:
        return self._write(order_id, line_item_id, urgent=bool(urgent))

    def update_notes(self, order_id: int, line_item_id: int, notes: Optional[str]) -> Dict[str, Any]:
        return self._write(order_id, line_item_id, notes=notes or None)

    def set_production_type(self, order_id: int, line_item_id: int, production_type: str) -> Dict[str, Any]:
        """Manual reclassification of one article"""
        return self._write(order_id, line_item_id, production_type=require_production_type(production_type))

    def reclassify_all(self) -> Dict[str, int]:
        """Re-run the classifier over every order item"""
        updated = 0
        with self.store.session() as session:
            items = session.query(OrderItem.order_id, OrderItem.line_item_id, OrderItem.product_name).all()
            for order_id, line_item_id, product_name in items:
                production_type = self.classifier.classify(product_name)
                _, _, changed = upsert_production_status(
                    session, order_id, line_item_id, production_type=production_type
                )
                if changed:
                    updated += 1
        logger.info(f"Reclassification: {updated}/{len(items)} articles updated")
        return {"updated": updated, "total": len(items)}

    def list_by_status(self, status: str) -> List[Dict[str, Any]]:
        """Records with a given status, most recently updated first"""
        require_status(status)
        with self.store.session() as session:
            records = (
                session.query(ProductionStatus)
                .filter_by(status=status)
                .order_by(ProductionStatus.updated_at.desc(), ProductionStatus.id.desc())
                .all()
            )
            return [r.to_dict() for r in records]

    def bulk_update_status(self, updates: List[Any]) -> Dict[str, Any]:
        """
        Set many statuses in one session

        Invalid entries are reported in ``errors`` and skipped; valid entries
        are written together.

        Returns:
            matchedCount: entries that hit an existing record
            modifiedCount: records whose status was written (new or changed)
            upsertedCount: records created
            errors: [{index, message}]
        """
        if not isinstance(updates, list) or not updates:
            raise ValidationError("updates must be a non-empty array", extra={"field": "updates"})

        valid, errors = [], []
        for index, entry in enumerate(updates):
            parsed, error = _bulk_entry(index, entry)
            if error:
                errors.append(error)
            else:
                valid.append(parsed)

        matched = modified = upserted = 0
        if valid:
            with self.store.session() as session:
                for order_id, line_item_id, status in valid:
                    record, created, changed = upsert_production_status(
                        session, order_id, line_item_id, status=status
                    )
                    if created:
                        upserted += 1
                    else:
                        matched += 1
                    if changed:
                        modified += 1
                        _mirror_onto_assignment(session, record)

        logger.info(
            f"Bulk status update: {len(valid)} valid, {len(errors)} rejected, "
            f"{modified} modified, {upserted} created"
        )
        return {
            "matchedCount": matched,
            "modifiedCount": modified,
            "upsertedCount": upserted,
            "errors": errors,
        }
