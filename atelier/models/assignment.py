"""Article assignment model - worker bound to one article"""
from sqlalchemy import Column, Integer, BigInteger, String, Boolean, DateTime, Index
from datetime import datetime
from atelier.database import Base
from atelier.constants import STATUS_TODO


class ArticleAssignment(Base):
    """Tricoteuse ↔ article binding"""

    __tablename__ = "article_assignments"
    __table_args__ = (
        Index("ix_assignment_tricoteuse", "tricoteuse_id"),
        Index("ix_assignment_assigned_at", "assigned_at"),
        Index("ix_assignment_order_line", "order_id", "line_item_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(String(50), unique=True, nullable=False)  # "{order}-{line}" or legacy "{order}_{line}"

    # Derived from article_id at write time
    order_id = Column(BigInteger)
    line_item_id = Column(BigInteger)

    tricoteuse_id = Column(String(50), nullable=False)
    tricoteuse_name = Column(String(100))
    status = Column(String(20), nullable=False, default=STATUS_TODO)
    urgent = Column(Boolean, nullable=False, default=False)

    assigned_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "article_id": self.article_id,
            "order_id": self.order_id,
            "line_item_id": self.line_item_id,
            "tricoteuse_id": self.tricoteuse_id,
            "tricoteuse_name": self.tricoteuse_name,
            "status": self.status,
            "urgent": bool(self.urgent),
            "assigned_at": self.assigned_at.isoformat() if self.assigned_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<ArticleAssignment(article='{self.article_id}', tricoteuse='{self.tricoteuse_id}', status={self.status})>"
