"""Sync and import router"""
from dataclasses import asdict
from pathlib import Path

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from atelier.dependencies import Services, get_services
from atelier.models import OrderItem
from atelier.utils.sync_logger import read_report, recent_reports


router = APIRouter(prefix="/sync")
import_router = APIRouter(prefix="/import")


class ImportOrderRequest(BaseModel):
    orderId: int = Field(..., gt=0)


@router.post("/test")
def test_connection(services: Services = Depends(get_services)):
    """Store and WooCommerce reachability"""
    with services.store.session() as session:
        items = session.query(OrderItem).count()
    return {
        "success": True,
        "data": {
            "database": "connected",
            "order_items": items,
            "woocommerce": services.order_sync.source.test_connection(),
        },
    }


@router.post("/orders")
def sync_orders(services: Services = Depends(get_services)):
    return services.order_sync.run().to_dict()


@router.get("/reports")
def sync_reports(limit: int = Query(10, ge=1, le=100), services: Services = Depends(get_services)):
    report_dir = services.settings.sync_report_dir
    if not report_dir:
        return {"success": True, "data": []}
    reports = []
    for path in recent_reports(Path(report_dir), "orders", limit=limit):
        report = read_report(path)
        if report is not None:
            reports.append({"file": path.name, **asdict(report)})
    return {"success": True, "data": reports}


@router.get("/scheduler")
def scheduler_status(services: Services = Depends(get_services)):
    if services.scheduler is None:
        return {"success": True, "data": {"running": False}}
    return {"success": True, "data": services.scheduler.status()}


@import_router.post("/order")
def import_order(request: ImportOrderRequest, services: Services = Depends(get_services)):
    result = services.order_sync.import_order(request.orderId)
    message = (
        f"order {result['orderId']} already present"
        if result["alreadyPresent"]
        else f"order {result['orderId']} imported ({result['articlesCount']} articles)"
    )
    return {"success": True, "message": message, "data": result}
