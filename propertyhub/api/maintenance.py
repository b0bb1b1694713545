from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..api.dependencies import get_access_scope, get_db, get_or_404
from ..auth import policy
from ..auth.jwt import get_current_user
from ..models.models import MaintenanceRequest, User
from ..schemas.schemas import Envelope, MaintenanceCreate, MaintenanceRead, MaintenanceStatus, MaintenanceUpdate
from ..services import maintenance as maintenance_service

router = APIRouter()


@router.get("/", response_model=Envelope[List[MaintenanceRead]])
def list_maintenance_requests(
    property_id: Optional[str] = Query(None),
    status: Optional[MaintenanceStatus] = Query(None),
    db: Session = Depends(get_db),
    scope: policy.AccessScope = Depends(get_access_scope),
):
    query = policy.visible(
        db.query(MaintenanceRequest),
        scope,
        property_column=MaintenanceRequest.property_id,
        tenant_column=MaintenanceRequest.tenant_id,
    )
    if property_id:
        query = query.filter(MaintenanceRequest.property_id == property_id)
    if status:
        query = query.filter(MaintenanceRequest.status == status)
    requests = query.order_by(MaintenanceRequest.created_at.desc()).all()
    return {"success": True, "data": [MaintenanceRead.model_validate(item) for item in requests]}


@router.post("/", response_model=Envelope[MaintenanceRead])
def create_maintenance_request(
    payload: MaintenanceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    property_id = str(payload.property_id)
    policy.require(db, current_user, property_id, "maintenance.create")

    request = maintenance_service.open_request(
        db,
        current_user,
        property_id,
        title=payload.title,
        description=payload.description,
        urgency=payload.urgency,
    )
    return {"success": True, "data": MaintenanceRead.model_validate(request)}


@router.put("/", response_model=Envelope[MaintenanceRead])
def update_maintenance_request(
    payload: MaintenanceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    request = get_or_404(db, MaintenanceRequest, payload.id, "Maintenance request not found")
    policy.require(db, current_user, request.property_id, "maintenance.update")

    try:
        request = maintenance_service.transition_request(
            db,
            request,
            current_user,
            payload.status,
            resolved_at=payload.resolved_at,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"success": True, "data": MaintenanceRead.model_validate(request)}
