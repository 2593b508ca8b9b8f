"""Assignments router"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from atelier.dependencies import Services, get_services

router = APIRouter(prefix="/assignments")


class AssignmentRequest(BaseModel):
    article_id: Optional[str] = None
    tricoteuse_id: Optional[str] = None
    tricoteuse_name: Optional[str] = None
    status: Optional[str] = None
    urgent: Optional[bool] = None


class AssignmentPatch(BaseModel):
    tricoteuse_id: Optional[str] = None
    tricoteuse_name: Optional[str] = None
    status: Optional[str] = None
    urgent: Optional[bool] = None


@router.get("")
def list_assignments(services: Services = Depends(get_services)):
    return {"success": True, "data": services.assignments.list_assignments()}


@router.post("/sync-assignments-status")
def sync_assignments_status(services: Services = Depends(get_services)):
    result = services.assignments.sync_assignments_status()
    return {
        "success": True,
        "message": f"{result['synced']}/{result['total']} assignments synchronized",
        "data": result,
    }


@router.get("/{article_id}")
def get_assignment_by_article(article_id: str, services: Services = Depends(get_services)):
    return {"success": True, "data": services.assignments.get_assignment_by_article_id(article_id)}


@router.post("", status_code=201)
def create_assignment(request: AssignmentRequest, services: Services = Depends(get_services)):
    return {"success": True, "data": services.assignments.create_assignment(request.model_dump())}


@router.put("/{assignment_id}")
def update_assignment(assignment_id: int, patch: AssignmentPatch, services: Services = Depends(get_services)):
    data = services.assignments.update_assignment(assignment_id, patch.model_dump(exclude_none=True))
    return {"success": True, "data": data}


@router.delete("/by-article/{article_id}")
def delete_assignment_by_article(article_id: str, services: Services = Depends(get_services)):
    services.assignments.delete_assignment_by_article_id(article_id)
    return {"success": True, "message": f"assignment for article {article_id} removed"}


@router.delete("/{assignment_id}")
def delete_assignment(assignment_id: int, services: Services = Depends(get_services)):
    services.assignments.delete_assignment(assignment_id)
    return {"success": True, "message": f"assignment {assignment_id} removed"}
