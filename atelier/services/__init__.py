"""Business services"""

from .classification import KeywordClassifier, ProductionClassifier, classify
from .order_transformer import TransformedOrder, transform_order
from .order_sync import OrderSync, SyncSummary
from .assignments import AssignmentService
from .production import ProductionService
from .orders import OrdersService
from .tricoteuses import TricoteuseService
from .stats import StatsService
from .scheduler import DailySyncScheduler

__all__ = [
    "KeywordClassifier",
    "ProductionClassifier",
    "classify",
    "TransformedOrder",
    "transform_order",
    "OrderSync",
    "SyncSummary",
    "AssignmentService",
    "ProductionService",
    "OrdersService",
    "TricoteuseService",
    "StatsService",
    "DailySyncScheduler",
]
