"""SQLAlchemy models"""
from atelier.models.order_item import OrderItem
from atelier.models.production_status import ProductionStatus
from atelier.models.assignment import ArticleAssignment
from atelier.models.tricoteuse import Tricoteuse

__all__ = [
    "OrderItem",
    "ProductionStatus",
    "ArticleAssignment",
    "Tricoteuse",
]
