"""Tricoteuses router"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from atelier.dependencies import Services, get_services

router = APIRouter(prefix="/tricoteuses")


class TricoteuseRequest(BaseModel):
    firstName: Optional[str] = None
    email: Optional[str] = None
    color: Optional[str] = None
    photoUrl: Optional[str] = None
    gender: Optional[str] = None
    password: Optional[str] = None


@router.get("")
def list_tricoteuses(services: Services = Depends(get_services)):
    return {"success": True, "data": services.tricoteuses.list_tricoteuses()}


@router.get("/{tricoteuse_id}")
def get_tricoteuse(tricoteuse_id: int, services: Services = Depends(get_services)):
    return {"success": True, "data": services.tricoteuses.get_tricoteuse(tricoteuse_id)}


@router.post("", status_code=201)
def create_tricoteuse(request: TricoteuseRequest, services: Services = Depends(get_services)):
    return {"success": True, "data": services.tricoteuses.create_tricoteuse(request.model_dump(exclude_none=True))}


@router.put("/{tricoteuse_id}")
def update_tricoteuse(tricoteuse_id: int, request: TricoteuseRequest, services: Services = Depends(get_services)):
    patch = request.model_dump(exclude_unset=True)
    return {"success": True, "data": services.tricoteuses.update_tricoteuse(tricoteuse_id, patch)}


@router.delete("/{tricoteuse_id}")
def delete_tricoteuse(tricoteuse_id: int, services: Services = Depends(get_services)):
    services.tricoteuses.delete_tricoteuse(tricoteuse_id)
    return {"success": True, "message": f"tricoteuse {tricoteuse_id} deleted"}
