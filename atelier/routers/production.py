"""Production status router"""
from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from atelier.dependencies import Services, get_services

router = APIRouter(prefix="/production")


class StatusUpdate(BaseModel):
    status: str
    notes: Optional[str] = None
    urgent: Optional[bool] = None
    production_type: Optional[str] = None


class UrgentUpdate(BaseModel):
    urgent: bool


class NotesUpdate(BaseModel):
    notes: Optional[str] = None


class TypeUpdate(BaseModel):
    production_type: str


class BulkUpdateRequest(BaseModel):
    updates: List[Any]


@router.get("/stats")
def production_stats(services: Services = Depends(get_services)):
    return {"success": True, "data": services.stats.get_production_stats()}


@router.get("/by-status/{status}")
def list_by_status(status: str, services: Services = Depends(get_services)):
    return {"success": True, "data": services.production.list_by_status(status)}


@router.get("/status/{order_id}/{line_item_id}")
def get_status(order_id: int, line_item_id: int, services: Services = Depends(get_services)):
    return {"success": True, "data": services.production.get_status(order_id, line_item_id)}


@router.put("/status/{order_id}/{line_item_id}")
def update_status(order_id: int, line_item_id: int, request: StatusUpdate,
                  services: Services = Depends(get_services)):
    data = services.production.update_status(
        order_id,
        line_item_id,
        request.status,
        notes=request.notes,
        urgent=request.urgent,
        production_type=request.production_type,
    )
    return {"success": True, "data": data}


@router.put("/status/{order_id}/{line_item_id}/urgent")
def set_urgent(order_id: int, line_item_id: int, request: UrgentUpdate,
               services: Services = Depends(get_services)):
    return {"success": True, "data": services.production.set_urgent(order_id, line_item_id, request.urgent)}


@router.put("/status/{order_id}/{line_item_id}/notes")
def update_notes(order_id: int, line_item_id: int, request: NotesUpdate,
                 services: Services = Depends(get_services)):
    return {"success": True, "data": services.production.update_notes(order_id, line_item_id, request.notes)}


@router.put("/status/{order_id}/{line_item_id}/type")
def set_production_type(order_id: int, line_item_id: int, request: TypeUpdate,
                        services: Services = Depends(get_services)):
    data = services.production.set_production_type(order_id, line_item_id, request.production_type)
    return {"success": True, "data": data}


@router.post("/bulk-update")
def bulk_update(request: BulkUpdateRequest, services: Services = Depends(get_services)):
    result = services.production.bulk_update_status(request.updates)
    return {
        "success": True,
        "message": f"{result['modifiedCount']} statuses updated",
        "data": result,
    }


@router.post("/reclassify")
def reclassify(services: Services = Depends(get_services)):
    return {"success": True, "data": services.production.reclassify_all()}
