from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..constants import (
    ACTION_CREATE,
    ACTION_UPDATE,
    EVENT_MAINTENANCE_CREATED,
    EVENT_MAINTENANCE_RESOLVED,
    MAINTENANCE_PENDING,
    MAINTENANCE_RESOLVED,
    MAINTENANCE_STATES,
)
from ..models.models import MaintenanceRequest, Property, User, utcnow
from .activity import log_activity
from .notifications import create_notifications


def open_request(
    session: Session,
    tenant: User,
    property_id: str,
    title: str,
    description: str,
    urgency: str,
) -> MaintenanceRequest:
    request = MaintenanceRequest(
        tenant_id=tenant.id,
        property_id=property_id,
        title=title,
        description=description,
        urgency=urgency,
        status=MAINTENANCE_PENDING,
    )
    session.add(request)
    session.commit()
    session.refresh(request)

    log_activity(session, tenant.id, ACTION_CREATE, "MaintenanceRequests", f"Created maintenance request: {title}")

    owner_id = session.query(Property.owner_id).filter(Property.id == property_id).scalar()
    if owner_id and owner_id != tenant.id:
        create_notifications(
            session,
            user_ids=[owner_id],
            title="New Maintenance Request",
            body=f'A tenant reported "{title}" ({urgency} urgency).',
            event_type=EVENT_MAINTENANCE_CREATED,
            reference_id=request.id,
        )
    return request


def transition_request(
    session: Session,
    request: MaintenanceRequest,
    actor: User,
    target_status: str,
    resolved_at: Optional[datetime] = None,
) -> MaintenanceRequest:
    """Move a request to ``target_status``.

    Any state may move to any other; resolving stamps ``resolved_at`` and
    tells the tenant.
    """
    if target_status not in MAINTENANCE_STATES:
        raise ValueError("Invalid maintenance status.")

    request.status = target_status
    if target_status == MAINTENANCE_RESOLVED:
        request.resolved_at = resolved_at or utcnow()
    session.add(request)
    session.commit()
    session.refresh(request)

    log_activity(
        session,
        actor.id,
        ACTION_UPDATE,
        "MaintenanceRequests",
        f"Updated status to {target_status} for request {request.id}",
    )

    if target_status == MAINTENANCE_RESOLVED:
        create_notifications(
            session,
            user_ids=[request.tenant_id],
            title="Maintenance Request Resolved",
            body=f'Your maintenance request "{request.title}" has been resolved.',
            event_type=EVENT_MAINTENANCE_RESOLVED,
            reference_id=request.id,
        )
    return request
