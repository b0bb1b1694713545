from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, selectinload

from ..api.dependencies import get_access_scope, get_db, get_or_404
from ..auth import policy
from ..auth.jwt import get_current_user
from ..constants import ACTION_CREATE, EVENT_ANNOUNCEMENT_POSTED, ROLE_TENANT
from ..models.models import Announcement, AnnouncementScope, Property, Unit, User
from ..schemas.schemas import AnnouncementCreate, AnnouncementRead, Envelope
from ..services.activity import log_activity
from ..services.notifications import create_notifications

router = APIRouter()


@router.get("/", response_model=Envelope[List[AnnouncementRead]])
def list_announcements(
    property_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    scope: policy.AccessScope = Depends(get_access_scope),
):
    query = policy.visible(
        db.query(Announcement).options(selectinload(Announcement.scopes)),
        scope,
        property_column=Announcement.property_id,
        reference_columns=(Announcement.created_by,),
    )
    if property_id:
        query = query.filter(Announcement.property_id == property_id)
    announcements = query.order_by(Announcement.created_at.desc()).all()
    return {"success": True, "data": [AnnouncementRead.model_validate(item) for item in announcements]}


@router.post("/", response_model=Envelope[AnnouncementRead])
def create_announcement(
    payload: AnnouncementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    prop = get_or_404(db, Property, payload.property_id, "Property not found")
    policy.require(db, current_user, prop.id, "announcement.create")

    unit_ids = sorted({str(unit_id) for unit_id in payload.unit_ids})
    if unit_ids:
        matched = db.query(Unit.id).filter(Unit.property_id == prop.id, Unit.id.in_(unit_ids)).count()
        if matched != len(unit_ids):
            raise HTTPException(status_code=400, detail="unit_ids: every unit must belong to the property")

    announcement = Announcement(property_id=prop.id, created_by=current_user.id, body=payload.body)
    announcement.scopes = [AnnouncementScope(unit_id=unit_id) for unit_id in unit_ids]
    db.add(announcement)
    db.commit()
    db.refresh(announcement)

    log_activity(
        db,
        current_user.id,
        ACTION_CREATE,
        "Announcements",
        f"Created announcement for property {prop.id}",
    )
    create_notifications(
        db,
        user_ids=policy.property_member_ids(db, prop.id, ROLE_TENANT, unit_ids=unit_ids),
        title="New Announcement",
        body=f"New announcement posted for {prop.name}.",
        event_type=EVENT_ANNOUNCEMENT_POSTED,
        reference_id=announcement.id,
    )
    return {"success": True, "data": AnnouncementRead.model_validate(announcement)}
