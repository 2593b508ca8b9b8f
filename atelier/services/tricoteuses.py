"""Tricoteuse (worker) profiles"""
import logging
from datetime import datetime
from typing import Any, Dict, List

from atelier.database import Store
from atelier.exceptions import DuplicateRecordError, NotFoundError
from atelier.models import ArticleAssignment, ProductionStatus, Tricoteuse
from atelier.services.assignments import remove_assignment
from atelier.utils.passwords import hash_password
from atelier.utils.validators import TricoteuseValidator, raise_for_errors

logger = logging.getLogger(__name__)

# API field → column
_FIELD_COLUMNS = {
    "firstName": "first_name",
    "email": "email",
    "color": "color",
    "photoUrl": "photo_url",
    "gender": "gender",
}


class TricoteuseService:
    """Worker CRUD; password hashes never leave this service"""

    def __init__(self, store: Store):
        self.store = store
        self.validator = TricoteuseValidator()

    def list_tricoteuses(self) -> List[Dict[str, Any]]:
        with self.store.session() as session:
            rows = session.query(Tricoteuse).order_by(Tricoteuse.first_name, Tricoteuse.id).all()
            return [t.to_dict() for t in rows]

    def get_tricoteuse(self, tricoteuse_id: int) -> Dict[str, Any]:
        with self.store.session() as session:
            tricoteuse = session.get(Tricoteuse, tricoteuse_id)
            if tricoteuse is None:
                raise NotFoundError(f"tricoteuse {tricoteuse_id} not found")
            return tricoteuse.to_dict()

    def _email_taken(self, session, email: str, exclude_id: int = None) -> bool:
        query = session.query(Tricoteuse.id).filter(Tricoteuse.email == email)
        if exclude_id is not None:
            query = query.filter(Tricoteuse.id != exclude_id)
        return query.first() is not None

    def create_tricoteuse(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Args:
            data: firstName, email (required); color, photoUrl, gender, password

        Raises:
            ValidationError: missing or malformed fields
            DuplicateRecordError: email already used
        """
        raise_for_errors(self.validator.validate(data))
        email = str(data["email"]).strip().lower()

        with self.store.session() as session:
            if self._email_taken(session, email):
                raise DuplicateRecordError(f"email {email} already used", extra={"field": "email"})
            tricoteuse = Tricoteuse(
                first_name=str(data["firstName"]).strip(),
                email=email,
                color=data.get("color"),
                photo_url=data.get("photoUrl"),
                gender=data.get("gender"),
                password_hash=hash_password(str(data["password"])) if data.get("password") else None,
            )
            session.add(tricoteuse)
            session.flush()
            logger.info(f"Tricoteuse created: {tricoteuse.first_name} ({email})")
            return tricoteuse.to_dict()

    def update_tricoteuse(self, tricoteuse_id: int, patch: Dict[str, Any]) -> Dict[str, Any]:
        raise_for_errors(self.validator.validate(patch, partial=True))

        with self.store.session() as session:
            tricoteuse = session.get(Tricoteuse, tricoteuse_id)
            if tricoteuse is None:
                raise NotFoundError(f"tricoteuse {tricoteuse_id} not found")

            for field, column in _FIELD_COLUMNS.items():
                if field not in patch:
                    continue
                value = patch[field]
                if field == "email":
                    value = str(value).strip().lower()
                    if self._email_taken(session, value, exclude_id=tricoteuse_id):
                        raise DuplicateRecordError(f"email {value} already used", extra={"field": "email"})
                elif field == "firstName":
                    value = str(value).strip()
                setattr(tricoteuse, column, value)

            if patch.get("password"):
                tricoteuse.password_hash = hash_password(str(patch["password"]))
            tricoteuse.updated_at = datetime.utcnow()
            logger.info(f"Tricoteuse {tricoteuse_id} updated: {sorted(k for k in patch if k != 'password')}")
            return tricoteuse.to_dict()

    def delete_tricoteuse(self, tricoteuse_id: int) -> bool:
        """Delete a worker; their articles go back to a_faire, unassigned"""
        key = str(tricoteuse_id)
        with self.store.session() as session:
            tricoteuse = session.get(Tricoteuse, tricoteuse_id)
            if tricoteuse is None:
                raise NotFoundError(f"tricoteuse {tricoteuse_id} not found")
            assignments = session.query(ArticleAssignment).filter_by(tricoteuse_id=key).all()
            for assignment in assignments:
                remove_assignment(session, assignment)
            session.flush()
            # status records still naming the worker without an assignment
            session.query(ProductionStatus).filter_by(assigned_to=key).update(
                {"assigned_to": None, "assigned_name": None, "updated_at": datetime.utcnow()},
                synchronize_session=False,
            )
            session.delete(tricoteuse)
        logger.info(f"Tricoteuse {tricoteuse_id} deleted, {len(assignments)} articles released")
        return True
