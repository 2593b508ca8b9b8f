"""Orders router"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from atelier.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from atelier.dependencies import Services, get_services

router = APIRouter(prefix="/orders")


class ManualOrderItem(BaseModel):
    product_name: str
    quantity: int = 1
    price: float = 0.0
    product_id: Optional[int] = None
    production_type: Optional[str] = None
    meta_data: List[Dict[str, Any]] = Field(default_factory=list)


class ManualOrderRequest(BaseModel):
    customer: str
    order_number: Optional[str] = None
    order_date: Optional[str] = None
    status: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_country: Optional[str] = None
    customer_note: Optional[str] = None
    shipping_method: Optional[str] = None
    shipping_carrier: Optional[str] = None
    total: Optional[float] = None
    items: List[ManualOrderItem]


class NoteRequest(BaseModel):
    note: Optional[str] = None


def _list(services: Services, production_type: Optional[str], status, search, sort_by, sort_order, page, limit):
    result = services.orders.list_orders(
        status=status,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        production_type=production_type,
        page=page,
        limit=limit,
    )
    return {"success": True, "data": result["orders"], "pagination": result["pagination"]}


@router.get("")
def list_orders(
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    production_type: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    services: Services = Depends(get_services),
):
    return _list(services, production_type, status, search, sort_by, sort_order, page, limit)


@router.get("/stats")
def orders_stats(services: Services = Depends(get_services)):
    return {"success": True, "data": services.orders.get_orders_stats()}


@router.get("/production/{production_type}")
def list_orders_by_production_type(
    production_type: str,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    services: Services = Depends(get_services),
):
    return _list(services, production_type, status, search, None, "desc", page, limit)


@router.get("/{order_id}")
def get_order(order_id: int, services: Services = Depends(get_services)):
    return {"success": True, "data": services.orders.get_order(order_id)}


@router.post("", status_code=201)
def create_order(request: ManualOrderRequest, services: Services = Depends(get_services)):
    order = services.orders.create_order(request.model_dump())
    return {"success": True, "data": order}


@router.put("/{order_id}")
def update_order(order_id: int, patch: Dict[str, Any], services: Services = Depends(get_services)):
    return {"success": True, "data": services.orders.update_order(order_id, patch)}


@router.put("/{order_id}/note")
def update_order_note(order_id: int, request: NoteRequest, services: Services = Depends(get_services)):
    return {"success": True, "data": services.orders.update_order_note(order_id, request.note)}


@router.delete("/{order_id}")
def delete_order(order_id: int, services: Services = Depends(get_services)):
    return {"success": True, "data": services.orders.delete_order(order_id)}


@router.delete("/{order_id}/items/{line_item_id}")
def delete_order_item(order_id: int, line_item_id: int, services: Services = Depends(get_services)):
    return {"success": True, "data": services.orders.delete_order_item(order_id, line_item_id)}
