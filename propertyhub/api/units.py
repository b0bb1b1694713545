import secrets
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..api.dependencies import get_access_scope, get_db, get_or_404
from ..auth import policy
from ..auth.jwt import get_current_user
from ..constants import (
    ACTION_CREATE,
    ACTION_UPDATE,
    EVENT_UNIT_ASSIGNED,
    ROLE_TENANT,
    STATUS_ACTIVE,
    STATUS_INACTIVE,
    UNIT_OCCUPIED,
    UNIT_VACANT,
)
from ..models.models import Property, Unit, User, UserPropertyRole
from ..schemas.schemas import Envelope, UnitCreate, UnitRead, UnitTenantAssign
from ..services.activity import log_activity
from ..services.notifications import create_notifications

router = APIRouter()


def _invite_link() -> str:
    return f"/invite/{secrets.token_urlsafe(12)}"


@router.get("/", response_model=Envelope[List[UnitRead]])
def list_units(
    property_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    scope: policy.AccessScope = Depends(get_access_scope),
):
    query = policy.visible(
        db.query(Unit),
        scope,
        property_column=Unit.property_id,
        tenant_column=Unit.tenant_id,
    )
    if property_id:
        query = query.filter(Unit.property_id == property_id)
    units = query.order_by(Unit.unit_name.asc()).all()
    return {"success": True, "data": [UnitRead.model_validate(item) for item in units]}


@router.post("/", response_model=Envelope[UnitRead])
def create_unit(
    payload: UnitCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    prop = get_or_404(db, Property, payload.property_id, "Property not found")
    policy.require(db, current_user, prop.id, "unit.create")

    unit = Unit(
        property_id=prop.id,
        unit_name=payload.unit_name,
        type=payload.type,
        invite_link=_invite_link(),
        status=UNIT_VACANT,
    )
    db.add(unit)
    db.commit()
    db.refresh(unit)

    log_activity(db, current_user.id, ACTION_CREATE, "Units", f"Created unit {unit.unit_name} on {prop.name}")
    return {"success": True, "data": UnitRead.model_validate(unit)}


@router.post("/{unit_id}/assign-tenant", response_model=Envelope[UnitRead])
def assign_tenant(
    unit_id: str,
    payload: UnitTenantAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    unit = get_or_404(db, Unit, unit_id, "Unit not found")
    policy.require(db, current_user, unit.property_id, "unit.assign_tenant")
    tenant = get_or_404(db, User, payload.tenant_id, "Tenant not found")

    if unit.tenant_id and unit.tenant_id != tenant.id:
        previous = (
            db.query(UserPropertyRole)
            .filter(
                UserPropertyRole.user_id == unit.tenant_id,
                UserPropertyRole.unit_id == unit.id,
                UserPropertyRole.role == ROLE_TENANT,
            )
            .all()
        )
        for assignment in previous:
            assignment.status = STATUS_INACTIVE

    assignment = (
        db.query(UserPropertyRole)
        .filter(
            UserPropertyRole.user_id == tenant.id,
            UserPropertyRole.property_id == unit.property_id,
            UserPropertyRole.role == ROLE_TENANT,
        )
        .first()
    )
    if assignment is None:
        assignment = UserPropertyRole(user_id=tenant.id, property_id=unit.property_id, role=ROLE_TENANT)
        db.add(assignment)
    assignment.unit_id = unit.id
    assignment.status = STATUS_ACTIVE

    # A tenant holds one unit per property; moving frees the old one.
    vacated = (
        db.query(Unit)
        .filter(Unit.property_id == unit.property_id, Unit.tenant_id == tenant.id, Unit.id != unit.id)
        .all()
    )
    for old_unit in vacated:
        old_unit.tenant_id = None
        old_unit.status = UNIT_VACANT

    unit.tenant_id = tenant.id
    unit.status = UNIT_OCCUPIED
    db.add(unit)
    db.commit()
    db.refresh(unit)

    log_activity(
        db,
        current_user.id,
        ACTION_UPDATE,
        "Units",
        f"Assigned tenant {tenant.id} to unit {unit.unit_name}",
    )
    create_notifications(
        db,
        user_ids=[tenant.id],
        title="Unit Assigned",
        body=f"You have been assigned to unit {unit.unit_name}.",
        event_type=EVENT_UNIT_ASSIGNED,
        reference_id=unit.id,
    )
    return {"success": True, "data": UnitRead.model_validate(unit)}
