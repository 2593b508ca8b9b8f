"""
Article references
==================
An article is one line item of one order. Its id appears in three spellings:

    "100-1"   canonical
    "100_1"   legacy (older assignment records)
    "100"     bare order id, line item implied as 1

parse_article_id() accepts all three; ArticleRef.article_id always
serializes the canonical form.

Usage:
    ref = parse_article_id("100_1")
    ref.order_id, ref.line_item_id   # (100, 1)
    ref.article_id                   # "100-1"
"""
from dataclasses import dataclass
from typing import List

from atelier.constants import ARTICLE_ID_SEPARATOR, LEGACY_ARTICLE_ID_SEPARATOR, DEFAULT_LINE_ITEM_ID
from atelier.exceptions import ValidationError


@dataclass(frozen=True)
class ArticleRef:
    """(order_id, line_item_id) pair; ``bare`` marks an implied line item"""
    order_id: int
    line_item_id: int
    bare: bool = False

    @property
    def article_id(self) -> str:
        return f"{self.order_id}{ARTICLE_ID_SEPARATOR}{self.line_item_id}"

    @property
    def legacy_article_id(self) -> str:
        return f"{self.order_id}{LEGACY_ARTICLE_ID_SEPARATOR}{self.line_item_id}"

    def spellings(self) -> List[str]:
        """Every stored form that may denote this article"""
        forms = [self.article_id, self.legacy_article_id]
        if self.line_item_id == DEFAULT_LINE_ITEM_ID:
            forms.append(str(self.order_id))
        return forms

    @classmethod
    def of(cls, order_id: int, line_item_id: int) -> "ArticleRef":
        return cls(int(order_id), int(line_item_id))

    def __str__(self):
        return self.article_id


def _to_int(part: str, raw: str) -> int:
    try:
        return int(part.strip())
    except ValueError:
        raise ValidationError(
            f"invalid article id '{raw}'",
            extra={"field": "article_id", "value": raw},
        ) from None


def parse_article_id(article_id) -> ArticleRef:
    """
    Parse any article id spelling

    Splits on the first separator found ("-" first, then "_"). A value with
    neither is a bare order id.

    Raises:
        ValidationError: empty value or non-numeric parts
    """
    raw = str(article_id).strip() if article_id is not None else ""
    if not raw:
        raise ValidationError("article_id is required", extra={"field": "article_id"})

    # Leading "-" belongs to a negative (manual) order id
    body, sign = (raw[1:], "-") if raw.startswith(ARTICLE_ID_SEPARATOR) else (raw, "")

    for sep in (ARTICLE_ID_SEPARATOR, LEGACY_ARTICLE_ID_SEPARATOR):
        if sep in body:
            order_part, line_part = body.split(sep, 1)
            return ArticleRef(_to_int(sign + order_part, raw), _to_int(line_part, raw))

    return ArticleRef(_to_int(sign + body, raw), DEFAULT_LINE_ITEM_ID, bare=True)
