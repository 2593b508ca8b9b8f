"""Read-only production statistics"""
from typing import Any, Dict

from sqlalchemy import func

from atelier.database import Store
from atelier.models import OrderItem, ProductionStatus


class StatsService:

    def __init__(self, store: Store):
        self.store = store

    def get_production_stats(self) -> Dict[str, Any]:
        """
        Dashboard counters; an empty store gives zeros and empty groupings

        Returns:
            totalOrders: distinct order ids among article rows
            totalItems: article rows
            totalStatuses: production status records
            byStatus: {status: count}
            byProductionType: {type: count}, unclassified records excluded
            urgent: urgent status records
        """
        with self.store.session() as session:
            total_orders = session.query(func.count(func.distinct(OrderItem.order_id))).scalar() or 0
            total_items = session.query(func.count(OrderItem.id)).scalar() or 0
            total_statuses = session.query(func.count(ProductionStatus.id)).scalar() or 0
            by_status = (
                session.query(ProductionStatus.status, func.count(ProductionStatus.id))
                .group_by(ProductionStatus.status)
                .all()
            )
            by_type = (
                session.query(ProductionStatus.production_type, func.count(ProductionStatus.id))
                .filter(ProductionStatus.production_type.isnot(None))
                .group_by(ProductionStatus.production_type)
                .all()
            )
            urgent = (
                session.query(func.count(ProductionStatus.id))
                .filter(ProductionStatus.urgent.is_(True))
                .scalar() or 0
            )

        return {
            "totalOrders": total_orders,
            "totalItems": total_items,
            "totalStatuses": total_statuses,
            "byStatus": dict(by_status),
            "byProductionType": dict(by_type),
            "urgent": urgent,
        }
