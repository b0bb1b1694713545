from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth.policy import VIEW_ADMIN, VIEW_LANDLORD, VIEW_TENANT, AccessScope, visible
from ..config import settings
from ..constants import ROLE_TENANT, STATUS_ACTIVE
from ..models.models import (
    Announcement,
    MaintenanceRequest,
    Payment,
    Property,
    Receipt,
    Unit,
    User,
    UserPropertyRole,
)
from ..schemas.schemas import (
    AnnouncementRead,
    MaintenanceRead,
    PaymentRead,
    PropertyRead,
    ReceiptRead,
    UnitRead,
    UserRead,
)


def _property_summaries(session: Session, properties: List[Property]) -> List[Dict[str, Any]]:
    counts = dict(
        session.query(Unit.property_id, func.count(Unit.id))
        .filter(Unit.property_id.in_([item.id for item in properties]))
        .group_by(Unit.property_id)
        .all()
    )
    summaries = []
    for item in properties:
        summary = PropertyRead.model_validate(item).model_dump()
        summary["unit_count"] = counts.get(item.id, 0)
        summaries.append(summary)
    return summaries


def _tenancies(session: Session, user: User) -> List[Dict[str, Any]]:
    assignments = (
        session.query(UserPropertyRole)
        .filter(
            UserPropertyRole.user_id == user.id,
            UserPropertyRole.role == ROLE_TENANT,
            UserPropertyRole.status == STATUS_ACTIVE,
        )
        .all()
    )
    tenancies = []
    for assignment in assignments:
        tenancies.append(
            {
                "property": PropertyRead.model_validate(assignment.property).model_dump() if assignment.property else None,
                "unit": UnitRead.model_validate(assignment.unit).model_dump() if assignment.unit else None,
            }
        )
    return tenancies


def _recent(query, order_column, limit: Optional[int]):
    query = query.order_by(order_column.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def build_dashboard(session: Session, user: User, scope: AccessScope, property_id: Optional[str] = None) -> Dict[str, Any]:
    view = scope.view
    recent_limit = settings.dashboard_recent_limit
    announcement_limit = settings.dashboard_announcement_limit
    data: Dict[str, Any] = {
        "user": {"id": user.id, "email": user.email, "role": user.account_role},
        "view": view,
    }

    maintenance = visible(
        session.query(MaintenanceRequest),
        scope,
        property_column=MaintenanceRequest.property_id,
        tenant_column=MaintenanceRequest.tenant_id,
    )
    payments = visible(
        session.query(Payment),
        scope,
        property_column=Payment.property_id,
        tenant_column=Payment.tenant_id,
    )
    receipts = visible(
        session.query(Receipt),
        scope,
        property_column=Receipt.property_id,
        tenant_column=Receipt.tenant_id,
        reference_columns=(Receipt.tenant_id, Receipt.approved_by),
    )
    announcements = visible(
        session.query(Announcement),
        scope,
        property_column=Announcement.property_id,
        reference_columns=(Announcement.created_by,),
    )
    if property_id:
        maintenance = maintenance.filter(MaintenanceRequest.property_id == property_id)
        payments = payments.filter(Payment.property_id == property_id)
        receipts = receipts.filter(Receipt.property_id == property_id)
        announcements = announcements.filter(Announcement.property_id == property_id)

    if view == VIEW_ADMIN:
        properties = session.query(Property).order_by(Property.created_at.desc()).all()
        data["properties"] = _property_summaries(session, properties)
        data["users"] = [
            UserRead.model_validate(item) for item in session.query(User).order_by(User.created_at.asc()).all()
        ]
        data["maintenance_requests"] = _recent(maintenance, MaintenanceRequest.created_at, recent_limit)
    elif view == VIEW_LANDLORD:
        properties_query = session.query(Property).filter(Property.id.in_(sorted(scope.managed_property_ids)))
        if property_id:
            properties_query = properties_query.filter(Property.id == property_id)
        data["properties"] = _property_summaries(session, properties_query.all())
        data["maintenance_requests"] = _recent(maintenance, MaintenanceRequest.created_at, recent_limit)
        data["payments"] = _recent(payments, Payment.paid_at, recent_limit)
        data["receipts"] = _recent(receipts, Receipt.approved_at, recent_limit)
        data["announcements"] = _recent(announcements, Announcement.created_at, announcement_limit)
    elif view == VIEW_TENANT:
        data["properties"] = _tenancies(session, user)
        data["maintenance_requests"] = _recent(maintenance, MaintenanceRequest.created_at, None)
        data["payments"] = _recent(payments, Payment.paid_at, None)
        data["receipts"] = _recent(receipts, Receipt.approved_at, None)
        # Announcements have no tenant column, so the tenant view falls back to property membership.
        data["announcements"] = _recent(announcements, Announcement.created_at, announcement_limit)
    else:
        data["maintenance_requests"] = _recent(maintenance, MaintenanceRequest.created_at, recent_limit)
        data["payments"] = _recent(payments, Payment.paid_at, recent_limit)
        data["receipts"] = _recent(receipts, Receipt.approved_at, recent_limit)
        data["announcements"] = _recent(announcements, Announcement.created_at, announcement_limit)

    data["maintenance_requests"] = [MaintenanceRead.model_validate(item) for item in data.get("maintenance_requests", [])]
    data["payments"] = [PaymentRead.model_validate(item) for item in data.get("payments", [])]
    data["receipts"] = [ReceiptRead.model_validate(item) for item in data.get("receipts", [])]
    data["announcements"] = [AnnouncementRead.model_validate(item) for item in data.get("announcements", [])]
    return data
