"""
Input validation
================
Field-level checks for statuses, manual orders and worker profiles

Usage:
    errors = ManualOrderValidator().validate(payload)
    raise_for_errors(errors)   # ValidationError when the list is non-empty
"""
import re
import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, asdict

from atelier.constants import PRODUCTION_STATUSES, PRODUCTION_TYPES
from atelier.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class FieldError:
    """Single field problem"""
    field: str
    message: str
    value: Any = None


def raise_for_errors(errors: List[FieldError]):
    """Raise a ValidationError listing every problem"""
    if not errors:
        return
    message = "; ".join(f"{e.field}: {e.message}" for e in errors)
    raise ValidationError(message, extra={"errors": [asdict(e) for e in errors]})


def validate_status(value: Any, field: str = "status") -> Optional[FieldError]:
    if value not in PRODUCTION_STATUSES:
        return FieldError(field, f"must be one of {', '.join(PRODUCTION_STATUSES)}", value)
    return None


def validate_production_type(value: Any, field: str = "production_type") -> Optional[FieldError]:
    if value not in PRODUCTION_TYPES:
        return FieldError(field, f"must be one of {', '.join(PRODUCTION_TYPES)}", value)
    return None


def require_status(value: Any, field: str = "status") -> str:
    """Validated status or ValidationError"""
    raise_for_errors([e for e in [validate_status(value, field)] if e])
    return value


def require_production_type(value: Any, field: str = "production_type") -> str:
    raise_for_errors([e for e in [validate_production_type(value, field)] if e])
    return value


class ManualOrderValidator:
    """
    Manual order payload checks

    customer and at least one item are required; each item needs a name,
    a positive quantity and a non-negative price.
    """

    ORDER_NUMBER_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9-]*$")

    def validate_item(self, index: int, item: Dict) -> List[FieldError]:
        errors = []
        prefix = f"items[{index}]"

        if not str(item.get("product_name") or "").strip():
            errors.append(FieldError(f"{prefix}.product_name", "required"))

        quantity = item.get("quantity", 1)
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            errors.append(FieldError(f"{prefix}.quantity", "must be a positive integer", quantity))

        price = item.get("price", 0)
        try:
            if float(price) < 0:
                errors.append(FieldError(f"{prefix}.price", "must not be negative", price))
        except (TypeError, ValueError):
            errors.append(FieldError(f"{prefix}.price", "must be a number", price))

        production_type = item.get("production_type")
        if production_type is not None:
            error = validate_production_type(production_type, f"{prefix}.production_type")
            if error:
                errors.append(error)
        return errors

    def validate(self, payload: Dict) -> List[FieldError]:
        errors = []

        if not str(payload.get("customer") or "").strip():
            errors.append(FieldError("customer", "required"))

        order_number = payload.get("order_number")
        if order_number and not self.ORDER_NUMBER_PATTERN.match(str(order_number)):
            errors.append(FieldError("order_number", "letters, digits and dashes only", order_number))

        items = payload.get("items") or []
        if not items:
            errors.append(FieldError("items", "at least one item is required"))
        for index, item in enumerate(items):
            errors.extend(self.validate_item(index, item))

        if errors:
            logger.debug(f"Manual order rejected: {len(errors)} problems")
        return errors


class TricoteuseValidator:
    """Worker profile checks"""

    EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    MIN_PASSWORD_LENGTH = 6

    def validate(self, data: Dict, partial: bool = False) -> List[FieldError]:
        """
        Args:
            data: profile fields (firstName, email, password, ...)
            partial: update mode, only present fields are checked
        """
        errors = []

        if not partial or "firstName" in data:
            if not str(data.get("firstName") or "").strip():
                errors.append(FieldError("firstName", "required"))

        if not partial or "email" in data:
            email = str(data.get("email") or "").strip()
            if not email:
                errors.append(FieldError("email", "required"))
            elif not self.EMAIL_PATTERN.match(email):
                errors.append(FieldError("email", "invalid email address", email))

        password = data.get("password")
        if password is not None and len(str(password)) < self.MIN_PASSWORD_LENGTH:
            errors.append(FieldError("password", f"at least {self.MIN_PASSWORD_LENGTH} characters"))

        return errors
