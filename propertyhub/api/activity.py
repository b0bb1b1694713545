from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_current_user
from ..auth.policy import is_global_admin
from ..config import settings
from ..models.models import ActivityLog, User
from ..schemas.schemas import ActivityLogRead, Envelope

router = APIRouter()


@router.get("/", response_model=Envelope[List[ActivityLogRead]])
def list_activity(
    limit: Optional[int] = Query(None, ge=1, le=200),
    offset: int = Query(0, ge=0),
    entity: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(ActivityLog).order_by(ActivityLog.created_at.desc())
    if not is_global_admin(current_user):
        query = query.filter(ActivityLog.user_id == current_user.id)
    if entity:
        query = query.filter(ActivityLog.entity == entity)
    entries = query.offset(offset).limit(limit or settings.activity_default_limit).all()
    return {"success": True, "data": [ActivityLogRead.model_validate(item) for item in entries]}
