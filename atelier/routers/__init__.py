"""API routers"""

from . import assignments, orders, production, sync, tricoteuses

__all__ = ["assignments", "orders", "production", "sync", "tricoteuses"]
