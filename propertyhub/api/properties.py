from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_access_scope, get_db, get_or_404
from ..auth import policy
from ..auth.jwt import get_current_user, require_account_roles
from ..constants import ACTION_CREATE, ACTION_UPDATE, ACTION_VIEW, ROLE_LANDLORD, STATUS_ACTIVE
from ..models.models import Property, User, UserPropertyRole
from ..schemas.schemas import Envelope, PropertyCreate, PropertyRead, PropertyUpdate
from ..services.activity import log_activity

router = APIRouter()


@router.get("/", response_model=Envelope[List[PropertyRead]])
def list_properties(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    scope: policy.AccessScope = Depends(get_access_scope),
):
    query = policy.visible(
        db.query(Property),
        scope,
        property_column=Property.id,
        reference_columns=(Property.owner_id,),
    )
    properties = query.order_by(Property.created_at.desc()).all()
    log_activity(db, current_user.id, ACTION_VIEW, "Properties", f"Viewed {len(properties)} properties")
    return {"success": True, "data": [PropertyRead.model_validate(item) for item in properties]}


@router.post("/", response_model=Envelope[PropertyRead])
def create_property(
    payload: PropertyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(
        require_account_roles(ROLE_LANDLORD, detail="Only landlords can create properties")
    ),
):
    prop = Property(owner_id=current_user.id, receipt_serial_counter=0, **payload.model_dump())
    db.add(prop)
    db.flush()
    db.add(
        UserPropertyRole(
            user_id=current_user.id,
            property_id=prop.id,
            role=ROLE_LANDLORD,
            status=STATUS_ACTIVE,
        )
    )
    db.commit()
    db.refresh(prop)

    log_activity(db, current_user.id, ACTION_CREATE, "Properties", f"Created property: {prop.name}")
    return {"success": True, "data": PropertyRead.model_validate(prop)}


@router.put("/", response_model=Envelope[PropertyRead])
def update_property(
    payload: PropertyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    prop = get_or_404(db, Property, payload.id, "Property not found")
    policy.require(db, current_user, prop.id, "property.update")

    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True, exclude={"id"}).items()
        if value is not None or field == "logo_url"
    }
    for field, value in changes.items():
        setattr(prop, field, value)
    db.add(prop)
    db.commit()
    db.refresh(prop)

    log_activity(
        db,
        current_user.id,
        ACTION_UPDATE,
        "Properties",
        f"Updated property {prop.id}: {', '.join(sorted(changes)) or 'no changes'}",
    )
    return {"success": True, "data": PropertyRead.model_validate(prop)}
