from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..api.dependencies import get_access_scope, get_db
from ..auth.jwt import get_current_user
from ..auth.policy import AccessScope
from ..constants import ACTION_VIEW
from ..models.models import User
from ..schemas.schemas import DashboardRead, Envelope
from ..services.activity import log_activity
from ..services.dashboard import build_dashboard

router = APIRouter()


@router.get("/", response_model=Envelope[DashboardRead])
def read_dashboard(
    property_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    scope: AccessScope = Depends(get_access_scope),
):
    data = build_dashboard(db, current_user, scope, property_id=property_id)
    log_activity(db, current_user.id, ACTION_VIEW, "Dashboard", f"Viewed {data['view']} dashboard")
    return {"success": True, "data": DashboardRead(**data)}
