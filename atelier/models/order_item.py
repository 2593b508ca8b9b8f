"""Order item model - one row per WooCommerce line item"""
from sqlalchemy import Column, Integer, BigInteger, String, Float, DateTime, Text, JSON, UniqueConstraint, Index
from datetime import datetime
from atelier.database import Base


class OrderItem(Base):
    """Denormalized order + line item row"""

    __tablename__ = "order_items"
    __table_args__ = (
        UniqueConstraint("order_id", "line_item_id", name="uix_order_item_line"),
        Index("ix_order_item_order_id", "order_id"),
        Index("ix_order_item_status", "status"),
        Index("ix_order_item_order_date", "order_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Order identity (shared by sibling rows)
    order_id = Column(BigInteger, nullable=False)   # WooCommerce id, negative for manual orders
    order_number = Column(String(50))               # human-facing number
    order_date = Column(DateTime)
    status = Column(String(30))                     # source fulfillment status

    # Customer
    customer = Column(String(200))
    customer_email = Column(String(200))
    customer_phone = Column(String(50))
    customer_address = Column(String(500))
    customer_country = Column(String(10))
    customer_note = Column(Text)

    # Shipping / totals
    shipping_method = Column(String(200))
    shipping_carrier = Column(String(100))
    total = Column(Float, default=0.0)

    # Line item
    line_item_id = Column(BigInteger, nullable=False)
    product_id = Column(BigInteger)
    product_name = Column(String(500))
    quantity = Column(Integer, default=1)
    price = Column(Float, default=0.0)
    meta_data = Column(JSON)          # [{"key": ..., "value": ...}, ...] in source order
    image_url = Column(String(1000))
    permalink = Column(String(1000))
    variation_id = Column(BigInteger)

    # Best-effort snapshot; production_status table is authoritative
    production_status = Column(JSON)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Order-level columns, copied onto every sibling row
    ORDER_FIELDS = (
        "order_number", "order_date", "status",
        "customer", "customer_email", "customer_phone", "customer_address",
        "customer_country", "customer_note",
        "shipping_method", "shipping_carrier", "total",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "order_number": self.order_number,
            "order_date": self.order_date.isoformat() if self.order_date else None,
            "status": self.status,
            "customer": self.customer,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "customer_address": self.customer_address,
            "customer_country": self.customer_country,
            "customer_note": self.customer_note,
            "shipping_method": self.shipping_method,
            "shipping_carrier": self.shipping_carrier,
            "total": self.total,
            "line_item_id": self.line_item_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price": self.price,
            "meta_data": self.meta_data or [],
            "image_url": self.image_url,
            "permalink": self.permalink,
            "variation_id": self.variation_id,
            "production_status": self.production_status,
        }

    @property
    def article_id(self) -> str:
        return f"{self.order_id}-{self.line_item_id}"

    def __repr__(self):
        return f"<OrderItem(order={self.order_id}, line={self.line_item_id}, product='{self.product_name}')>"
