"""Utility modules"""

from .retry import RetryPolicy, retrying
from .sync_logger import SyncReport, SyncRunLog
from .article_ref import ArticleRef, parse_article_id
from .validators import FieldError, raise_for_errors

__all__ = [
    "RetryPolicy",
    "retrying",
    "SyncReport",
    "SyncRunLog",
    "ArticleRef",
    "parse_article_id",
    "FieldError",
    "raise_for_errors",
]
