"""Production status model - authoritative per-article state"""
from sqlalchemy import Column, Integer, BigInteger, String, Boolean, DateTime, Text, UniqueConstraint, Index
from datetime import datetime
from atelier.database import Base
from atelier.constants import STATUS_TODO


class ProductionStatus(Base):
    """One row per (order_id, line_item_id)"""

    __tablename__ = "production_status"
    __table_args__ = (
        UniqueConstraint("order_id", "line_item_id", name="uix_production_status_article"),
        Index("ix_production_status_status", "status"),
        Index("ix_production_status_type", "production_type"),
        Index("ix_production_status_updated", "updated_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(BigInteger, nullable=False)
    line_item_id = Column(BigInteger, nullable=False)

    status = Column(String(20), nullable=False, default=STATUS_TODO)  # a_faire/en_cours/en_pause/termine
    production_type = Column(String(20))                               # couture/maille
    urgent = Column(Boolean, nullable=False, default=False)
    notes = Column(Text)

    # Denormalized worker reference
    assigned_to = Column(String(50))
    assigned_name = Column(String(100))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "line_item_id": self.line_item_id,
            "status": self.status,
            "production_type": self.production_type,
            "urgent": bool(self.urgent),
            "notes": self.notes,
            "assigned_to": self.assigned_to,
            "assigned_name": self.assigned_name,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<ProductionStatus(order={self.order_id}, line={self.line_item_id}, status={self.status})>"
