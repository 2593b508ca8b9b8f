"""
WooCommerce order → article rows
================================
Pure mapping, no I/O. One external order becomes shared order-level fields
plus one row per line item.

Usage:
    transformed = transform_order(woo_order)
    transformed.order_id
    for row in transformed.rows():
        session.add(OrderItem(**row))
"""
import re
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from atelier.constants import FLAT_RATE_METHOD, CARRIER_META_KEYS, PRODUCTION_TYPES
from atelier.exceptions import ValidationError

logger = logging.getLogger(__name__)

CARRIER_DHL = "DHL"
CARRIER_UPS = "UPS"
CARRIER_COLISSIMO = "Colissimo"

_DHL_PATTERN = re.compile(r"dhl")
_UPS_PATTERN = re.compile(r"\bups\b")
_COLISSIMO_PATTERN = re.compile(r"colissimo|la ?poste")
_FREE_PATTERN = re.compile(r"free|gratuit")


@dataclass
class TransformedOrder:
    """Order-level fields and per-line-item fields"""
    order_id: int
    fields: Dict[str, Any]
    items: List[Dict[str, Any]] = field(default_factory=list)

    def rows(self) -> List[Dict[str, Any]]:
        """OrderItem column values, one dict per line item"""
        rows = []
        for item in self.items:
            row = {"order_id": self.order_id, **self.fields}
            row.update({k: v for k, v in item.items() if k != "production_type"})
            rows.append(row)
        return rows


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_date(value: Any) -> Optional[datetime]:
    """WooCommerce 'YYYY-MM-DDTHH:MM:SS' (timezone suffix ignored)"""
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value)[:19])
    except ValueError:
        logger.debug(f"Unparseable date: {value!r}")
        return None


def _full_name(address: Dict) -> Optional[str]:
    name = f"{address.get('first_name') or ''} {address.get('last_name') or ''}".strip()
    return name or None


def _format_address(address: Dict) -> Optional[str]:
    street = (address.get("address_1") or "").strip()
    locality = f"{address.get('postcode') or ''} {address.get('city') or ''}".strip()
    text = ", ".join(part for part in (street, locality) if part)
    return text or None


def _meta_text(meta_data: Optional[List[Dict]]) -> str:
    return " ".join(
        f"{m.get('key') or ''} {m.get('value') or ''}"
        for m in (meta_data or [])
        if isinstance(m, dict)
    ).lower()


def extract_shipping_carrier(shipping_line: Optional[Dict], country: Optional[str] = None) -> Optional[str]:
    """
    Carrier name for the first shipping line

    Order of resolution:
      1. DHL, UPS, Colissimo named in method id, title or metadata
      2. free shipping: UPS for France, DHL elsewhere
      3. flat_rate: carrier-like metadata value when present, else "flat_rate"
      4. method title (or id) as is
    """
    if not shipping_line:
        return None

    method_id = (shipping_line.get("method_id") or "").lower()
    title = (shipping_line.get("method_title") or "").lower()
    meta = _meta_text(shipping_line.get("meta_data"))

    for carrier, pattern in (
        (CARRIER_DHL, _DHL_PATTERN),
        (CARRIER_UPS, _UPS_PATTERN),
        (CARRIER_COLISSIMO, _COLISSIMO_PATTERN),
    ):
        if pattern.search(method_id) or pattern.search(title) or pattern.search(meta):
            return carrier

    if _FREE_PATTERN.search(method_id) or _FREE_PATTERN.search(title):
        return CARRIER_UPS if (country or "").upper() == "FR" else CARRIER_DHL

    if method_id == FLAT_RATE_METHOD:
        for m in shipping_line.get("meta_data") or []:
            if isinstance(m, dict) and str(m.get("key", "")).lower() in CARRIER_META_KEYS:
                value = _blank_to_none(m.get("value"))
                if value:
                    return value
        return FLAT_RATE_METHOD

    return _blank_to_none(shipping_line.get("method_title")) or _blank_to_none(shipping_line.get("method_id"))


def visible_meta_data(meta_data: Optional[List[Dict]]) -> List[Dict[str, Any]]:
    """Display key/value pairs in source order; "_"-prefixed keys are internal"""
    pairs = []
    for m in meta_data or []:
        if not isinstance(m, dict):
            continue
        key = str(m.get("key") or "")
        if not key or key.startswith("_"):
            continue
        pairs.append({
            "key": m.get("display_key") or key,
            "value": m.get("display_value") if m.get("display_value") is not None else m.get("value"),
        })
    return pairs


def explicit_production_type(item: Dict) -> Optional[str]:
    """Production type set on the item itself or in its metadata"""
    candidates = [item.get("production_type")]
    candidates += [
        m.get("value") for m in item.get("meta_data") or []
        if isinstance(m, dict) and m.get("key") in ("production_type", "_production_type")
    ]
    for value in candidates:
        if isinstance(value, str) and value.strip().lower() in PRODUCTION_TYPES:
            return value.strip().lower()
    return None


def transform_line_item(item: Dict) -> Dict[str, Any]:
    line_item_id = _to_int(item.get("id"))
    if line_item_id is None:
        raise ValidationError("line item without id", extra={"field": "line_items.id"})

    quantity = _to_int(item.get("quantity")) or 1
    if item.get("price") not in (None, ""):
        price = _to_float(item.get("price"))
    else:
        price = _to_float(item.get("total")) / quantity

    image = item.get("image") or {}
    variation_id = _to_int(item.get("variation_id"))

    return {
        "line_item_id": line_item_id,
        "product_id": _to_int(item.get("product_id")),
        "product_name": item.get("name") or item.get("product_name"),
        "quantity": quantity,
        "price": price,
        "meta_data": visible_meta_data(item.get("meta_data")),
        "image_url": _blank_to_none(image.get("src") if isinstance(image, dict) else None)
        or _blank_to_none(item.get("image_url")),
        "permalink": _blank_to_none(item.get("permalink")),
        "variation_id": variation_id or None,
        "production_type": explicit_production_type(item),
    }


def transform_order(order: Dict) -> TransformedOrder:
    """
    Map one WooCommerce order

    Missing optional fields become None.

    Raises:
        ValidationError: order without id, line item without id, or a line
            item id repeated within the order
    """
    order_id = _to_int(order.get("id"))
    if order_id is None:
        raise ValidationError("order without id", extra={"field": "id"})

    billing = order.get("billing") or {}
    shipping = order.get("shipping") or {}
    shipping_lines = order.get("shipping_lines") or []
    first_line = shipping_lines[0] if shipping_lines else None
    country = _blank_to_none(shipping.get("country")) or _blank_to_none(billing.get("country"))

    fields = {
        "order_number": str(order.get("number") or order_id),
        "order_date": parse_date(order.get("date_created")),
        "status": order.get("status"),
        "customer": _full_name(billing) or _full_name(shipping),
        "customer_email": _blank_to_none(billing.get("email")),
        "customer_phone": _blank_to_none(billing.get("phone")),
        "customer_address": _format_address(shipping) if shipping.get("address_1") else _format_address(billing),
        "customer_country": country,
        "customer_note": _blank_to_none(order.get("customer_note")),
        "shipping_method": _blank_to_none((first_line or {}).get("method_title"))
        or _blank_to_none((first_line or {}).get("method_id")),
        "shipping_carrier": extract_shipping_carrier(first_line, country),
        "total": _to_float(order.get("total")),
    }

    items = []
    seen = set()
    for raw_item in order.get("line_items") or []:
        item = transform_line_item(raw_item)
        if item["line_item_id"] in seen:
            raise ValidationError(
                f"order {order_id}: duplicate line item {item['line_item_id']}",
                extra={"order_id": order_id},
            )
        seen.add(item["line_item_id"])
        items.append(item)

    return TransformedOrder(order_id=order_id, fields=fields, items=items)
