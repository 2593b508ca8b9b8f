"""
Exception taxonomy
==================
Every service error carries an HTTP-equivalent status code so the route
layer can map it without knowing the error kind.

Usage:
    raise NotFoundError(f"assignment {assignment_id} not found")
    raise ValidationError("article_id is required", extra={"field": "article_id"})
"""
from typing import Any, Dict, Optional


class AtelierError(Exception):
    """Base error"""
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    detail: str = "Internal error"

    def __init__(self, detail: Optional[str] = None, extra: Optional[Dict[str, Any]] = None):
        self.detail = detail or self.__class__.detail
        self.extra = extra or {}
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form for responses and logs"""
        return {
            "code": self.code,
            "status_code": self.status_code,
            "message": self.detail,
            **self.extra,
        }


class ValidationError(AtelierError):
    """Missing or malformed input (400)"""
    status_code = 400
    code = "VALIDATION_ERROR"
    detail = "Invalid input"


class NotFoundError(AtelierError):
    """Referenced record absent (404)"""
    status_code = 404
    code = "NOT_FOUND"
    detail = "Not found"


class UpstreamFetchError(AtelierError):
    """External order source unreachable or answered non-2xx/non-404 (502)"""
    status_code = 502
    code = "UPSTREAM_FETCH_ERROR"
    detail = "Order source request failed"

    def __init__(self, detail: Optional[str] = None, upstream_status: int = 0,
                 extra: Optional[Dict[str, Any]] = None):
        self.upstream_status = upstream_status
        extra = dict(extra or {})
        if upstream_status:
            extra.setdefault("upstream_status", upstream_status)
        super().__init__(detail, extra)


class PersistenceError(AtelierError):
    """Store operation failed (500)"""
    status_code = 500
    code = "PERSISTENCE_ERROR"
    detail = "Database operation failed"


class DuplicateRecordError(PersistenceError):
    """Write rejected by a uniqueness constraint (409)"""
    status_code = 409
    code = "DUPLICATE_RECORD"
    detail = "Record already exists"


class StoreNotReadyError(PersistenceError):
    """Store used before connect() or after disconnect() (503)"""
    status_code = 503
    code = "STORE_NOT_READY"
    detail = "Database not connected"
