"""Service container shared by the routers"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from atelier.config import Settings
from atelier.database import Store
from atelier.services import (
    AssignmentService,
    DailySyncScheduler,
    OrderSync,
    OrdersService,
    ProductionService,
    StatsService,
    TricoteuseService,
)


@dataclass
class Services:
    settings: Settings
    store: Store
    order_sync: OrderSync
    assignments: AssignmentService
    production: ProductionService
    orders: OrdersService
    tricoteuses: TricoteuseService
    stats: StatsService
    scheduler: Optional[DailySyncScheduler] = None

    @classmethod
    def build(cls, store: Store, source, settings: Settings) -> "Services":
        return cls(
            settings=settings,
            store=store,
            order_sync=OrderSync.from_settings(store, source, settings),
            assignments=AssignmentService(store),
            production=ProductionService(store),
            orders=OrdersService(store),
            tricoteuses=TricoteuseService(store),
            stats=StatsService(store),
        )


def get_services(request: Request) -> Services:
    return request.app.state.services
