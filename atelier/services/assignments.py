"""
Assignment service
==================
Binds articles to tricoteuses and keeps production_status in step: every
create, update and delete writes the resulting status (and assignee) onto
the article's production status record in the same session.

Usage:
    service = AssignmentService(store)
    service.create_assignment({"article_id": "100-1", "tricoteuse_id": "7", "status": "en_cours"})
    service.delete_assignment_by_article_id("100-1")   # status back to a_faire
    service.sync_assignments_status()                  # {"synced": n, "total": n}
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from atelier.constants import STATUS_TODO, UNKNOWN_TRICOTEUSE_NAME
from atelier.database import Store
from atelier.exceptions import NotFoundError, ValidationError
from atelier.models import ArticleAssignment, ProductionStatus, Tricoteuse
from atelier.services.production import find_assignment, upsert_production_status
from atelier.utils.article_ref import ArticleRef, parse_article_id
from atelier.utils.validators import FieldError, raise_for_errors, require_status

logger = logging.getLogger(__name__)


def _lookup_tricoteuse_name(session: Session, tricoteuse_id: str) -> Optional[str]:
    try:
        key = int(tricoteuse_id)
    except (TypeError, ValueError):
        return None
    tricoteuse = session.get(Tricoteuse, key)
    return tricoteuse.first_name if tricoteuse else None


def _current_urgent(session: Session, ref: ArticleRef) -> bool:
    record = (
        session.query(ProductionStatus)
        .filter_by(order_id=ref.order_id, line_item_id=ref.line_item_id)
        .one_or_none()
    )
    return bool(record and record.urgent)


def _assignment_ref(assignment: ArticleAssignment) -> ArticleRef:
    if assignment.order_id is not None and assignment.line_item_id is not None:
        return ArticleRef.of(assignment.order_id, assignment.line_item_id)
    return parse_article_id(assignment.article_id)


def _propagate(session: Session, assignment: ArticleAssignment) -> bool:
    """Write the assignment's state onto the production status record"""
    ref = _assignment_ref(assignment)
    _, _, changed = upsert_production_status(
        session,
        ref.order_id,
        ref.line_item_id,
        status=assignment.status,
        urgent=bool(assignment.urgent),
        assigned_to=assignment.tricoteuse_id,
        assigned_name=assignment.tricoteuse_name,
    )
    return changed


def _release(session: Session, ref: ArticleRef):
    """Article back to the unassigned queue"""
    upsert_production_status(
        session,
        ref.order_id,
        ref.line_item_id,
        status=STATUS_TODO,
        assigned_to=None,
        assigned_name=None,
    )


def remove_assignment(session: Session, assignment: ArticleAssignment):
    """Delete an assignment and put its article back to a_faire"""
    try:
        ref = _assignment_ref(assignment)
    except ValidationError:
        ref = None
        logger.warning(f"Assignment {assignment.id} has an unparseable article id '{assignment.article_id}'")
    session.delete(assignment)
    if ref is not None:
        _release(session, ref)
    logger.info(f"Assignment removed: article {assignment.article_id}")


class AssignmentService:
    """Article ↔ tricoteuse bindings"""

    def __init__(self, store: Store):
        self.store = store

    def _resolve_name(self, session: Session, tricoteuse_id: str, given: Optional[str]) -> str:
        if given and str(given).strip():
            return str(given).strip()
        return _lookup_tricoteuse_name(session, tricoteuse_id) or UNKNOWN_TRICOTEUSE_NAME

    def _find_by_article_id(self, session: Session, article_id: Any) -> Optional[ArticleAssignment]:
        ref = parse_article_id(article_id)
        found = find_assignment(session, ref.order_id, ref.line_item_id)
        if found is None:
            found = session.query(ArticleAssignment).filter_by(article_id=str(article_id).strip()).one_or_none()
        return found

    def list_assignments(self) -> List[Dict[str, Any]]:
        """Newest first; missing names filled from the tricoteuse records"""
        with self.store.session() as session:
            assignments = (
                session.query(ArticleAssignment)
                .order_by(ArticleAssignment.assigned_at.desc(), ArticleAssignment.id.desc())
                .all()
            )
            names = {str(t.id): t.first_name for t in session.query(Tricoteuse).all()}
            result = []
            for a in assignments:
                data = a.to_dict()
                if not data["tricoteuse_name"]:
                    data["tricoteuse_name"] = names.get(a.tricoteuse_id, UNKNOWN_TRICOTEUSE_NAME)
                result.append(data)
            return result

    def get_assignment(self, assignment_id: int) -> Dict[str, Any]:
        with self.store.session() as session:
            assignment = session.get(ArticleAssignment, assignment_id)
            if assignment is None:
                raise NotFoundError(f"assignment {assignment_id} not found")
            return assignment.to_dict()

    def get_assignment_by_article_id(self, article_id: Any) -> Dict[str, Any]:
        """Accepts "100-1", "100_1" or "100" """
        with self.store.session() as session:
            assignment = self._find_by_article_id(session, article_id)
            if assignment is None:
                raise NotFoundError(f"no assignment for article {article_id}")
            return assignment.to_dict()

    def create_assignment(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Assign an article

        An article that is already assigned is re-assigned in place.

        Args:
            data: article_id, tricoteuse_id (required); status (default
                a_faire), tricoteuse_name, urgent (optional)

        Raises:
            ValidationError: missing ids, unparseable article id, bad status
        """
        errors = []
        article_id = str(data.get("article_id") or "").strip()
        tricoteuse_id = str(data.get("tricoteuse_id") or "").strip()
        if not article_id:
            errors.append(FieldError("article_id", "required"))
        if not tricoteuse_id:
            errors.append(FieldError("tricoteuse_id", "required"))
        raise_for_errors(errors)

        status = require_status(data.get("status") or STATUS_TODO)
        ref = parse_article_id(article_id)
        urgent = data.get("urgent")

        with self.store.session() as session:
            name = self._resolve_name(session, tricoteuse_id, data.get("tricoteuse_name"))
            assignment = self._find_by_article_id(session, article_id)
            now = datetime.utcnow()

            if assignment is None:
                assignment = ArticleAssignment(
                    article_id=ref.article_id,
                    order_id=ref.order_id,
                    line_item_id=ref.line_item_id,
                    tricoteuse_id=tricoteuse_id,
                    tricoteuse_name=name,
                    status=status,
                    urgent=bool(urgent) if urgent is not None else _current_urgent(session, ref),
                    assigned_at=now,
                    updated_at=now,
                )
                session.add(assignment)
                logger.info(f"Article {ref} assigned to {name} ({status})")
            else:
                previous = assignment.tricoteuse_name
                assignment.tricoteuse_id = tricoteuse_id
                assignment.tricoteuse_name = name
                assignment.status = status
                assignment.order_id = ref.order_id
                assignment.line_item_id = ref.line_item_id
                if urgent is not None:
                    assignment.urgent = bool(urgent)
                assignment.assigned_at = now
                assignment.updated_at = now
                logger.info(f"Article {ref} re-assigned from {previous} to {name} ({status})")

            _propagate(session, assignment)
            session.flush()
            return assignment.to_dict()

    def update_assignment(self, assignment_id: int, patch: Dict[str, Any]) -> Dict[str, Any]:
        """
        Patch status, urgent or assignee

        Raises:
            NotFoundError: unknown assignment id
            ValidationError: bad status
        """
        with self.store.session() as session:
            assignment = session.get(ArticleAssignment, assignment_id)
            if assignment is None:
                raise NotFoundError(f"assignment {assignment_id} not found")

            if patch.get("status") is not None:
                assignment.status = require_status(patch["status"])
            if patch.get("urgent") is not None:
                assignment.urgent = bool(patch["urgent"])
            if patch.get("tricoteuse_id"):
                assignment.tricoteuse_id = str(patch["tricoteuse_id"]).strip()
                assignment.tricoteuse_name = self._resolve_name(
                    session, assignment.tricoteuse_id, patch.get("tricoteuse_name")
                )
            elif patch.get("tricoteuse_name"):
                assignment.tricoteuse_name = str(patch["tricoteuse_name"]).strip()
            assignment.updated_at = datetime.utcnow()

            _propagate(session, assignment)
            logger.info(f"Assignment {assignment_id} updated: {patch}")
            return assignment.to_dict()

    def delete_assignment(self, assignment_id: int) -> bool:
        with self.store.session() as session:
            assignment = session.get(ArticleAssignment, assignment_id)
            if assignment is None:
                raise NotFoundError(f"assignment {assignment_id} not found")
            remove_assignment(session, assignment)
        return True

    def delete_assignment_by_article_id(self, article_id: Any) -> bool:
        with self.store.session() as session:
            assignment = self._find_by_article_id(session, article_id)
            if assignment is None:
                raise NotFoundError(f"no assignment for article {article_id}")
            remove_assignment(session, assignment)
        return True

    def sync_assignments_status(self) -> Dict[str, int]:
        """
        Re-apply every assignment onto production_status

        Repair for drift. Assignments with an unparseable article id are
        logged and not counted.
        """
        synced = 0
        with self.store.session() as session:
            assignments = session.query(ArticleAssignment).all()
            for assignment in assignments:
                try:
                    _propagate(session, assignment)
                except ValidationError as e:
                    logger.warning(f"Assignment {assignment.id} skipped: {e.detail}")
                    continue
                synced += 1
        logger.info(f"Assignment status sync: {synced}/{len(assignments)}")
        return {"synced": synced, "total": len(assignments)}
