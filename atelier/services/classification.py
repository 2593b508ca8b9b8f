"""
Production type classification
==============================
Maps a product name to "maille" (knitting) or "couture" (sewing).

Usage:
    classify("Pull tricoté main")     # "maille"
    classify("Chemise en lin")        # "couture"

    custom = KeywordClassifier(["crochet", "knit"])
    custom.classify("Crochet bag")    # "maille"
"""
from typing import Iterable, Optional, Protocol

from atelier.constants import MAILLE_KEYWORDS, TYPE_COUTURE, TYPE_MAILLE


class ProductionClassifier(Protocol):
    """Strategy deciding an article's production type"""

    def classify(self, product_name: Optional[str]) -> str:
        ...


class KeywordClassifier:
    """Case-insensitive substring match; no match means couture"""

    def __init__(self, keywords: Iterable[str] = MAILLE_KEYWORDS):
        self.keywords = tuple(k.casefold() for k in keywords if k)

    def classify(self, product_name: Optional[str]) -> str:
        if not product_name:
            return TYPE_COUTURE
        name = str(product_name).casefold()
        if any(keyword in name for keyword in self.keywords):
            return TYPE_MAILLE
        return TYPE_COUTURE

    def __repr__(self):
        return f"<KeywordClassifier(keywords={list(self.keywords)})>"


default_classifier = KeywordClassifier()


def classify(product_name: Optional[str]) -> str:
    return default_classifier.classify(product_name)
