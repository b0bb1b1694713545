"""Role-based access and visibility policy.

Every router goes through this module to decide which rows a caller may read
and whether a write against a given property is allowed. Visibility comes from
the caller's *active* per-property role assignments plus the properties they
own; ``users.account_role`` only matters for the global ``admin`` bypass and
for creating new properties.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set

from fastapi import HTTPException
from sqlalchemy import false, or_
from sqlalchemy.orm import Query, Session

from ..constants import ROLE_ADMIN, ROLE_LANDLORD, ROLE_TENANT, STATUS_ACTIVE
from ..models.models import Property, Unit, User, UserPropertyRole

VIEW_ADMIN = "admin"
VIEW_LANDLORD = "landlord"
VIEW_TENANT = "tenant"
VIEW_MEMBER = "member"

MANAGING_ROLES = frozenset({ROLE_LANDLORD, ROLE_ADMIN})


@dataclass(frozen=True)
class OperationRule:
    roles: FrozenSet[str]
    allow_global_admin: bool
    denial: str


OPERATIONS: Dict[str, OperationRule] = {
    "property.update": OperationRule(
        MANAGING_ROLES, True, "Access denied: Only the property landlord can update this property"
    ),
    "unit.create": OperationRule(
        MANAGING_ROLES, True, "Access denied: Only landlords can add units to their property"
    ),
    "unit.assign_tenant": OperationRule(
        MANAGING_ROLES, True, "Access denied: Only landlords can assign tenants to their units"
    ),
    "maintenance.create": OperationRule(
        frozenset({ROLE_TENANT}),
        False,
        "Access denied: Only tenants can create maintenance requests for their property",
    ),
    "maintenance.update": OperationRule(
        frozenset({ROLE_LANDLORD}), False, "Access denied: Only landlords can update maintenance requests"
    ),
    "payment.create": OperationRule(
        frozenset({ROLE_TENANT}), False, "Access denied: Only tenants can record payments for their property"
    ),
    "receipt.create": OperationRule(
        MANAGING_ROLES, True, "Access denied: Only the property landlord can issue receipts"
    ),
    "receipt.update": OperationRule(
        MANAGING_ROLES, True, "Access denied: Only the property landlord can update receipts"
    ),
    "announcement.create": OperationRule(
        MANAGING_ROLES, True, "Access denied: Only landlords can create announcements for their property"
    ),
}


@dataclass(frozen=True)
class AccessScope:
    user_id: str
    is_admin: bool
    tenant_property_ids: FrozenSet[str]
    managed_property_ids: FrozenSet[str]
    member_property_ids: FrozenSet[str]

    @property
    def view(self) -> str:
        if self.is_admin:
            return VIEW_ADMIN
        is_tenant = bool(self.tenant_property_ids)
        is_manager = bool(self.managed_property_ids)
        if is_tenant and not is_manager:
            return VIEW_TENANT
        if is_manager and not is_tenant:
            return VIEW_LANDLORD
        return VIEW_MEMBER

    @property
    def property_ids(self) -> FrozenSet[str]:
        return self.tenant_property_ids | self.managed_property_ids | self.member_property_ids


def is_global_admin(user: User) -> bool:
    return user.has_account_role(ROLE_ADMIN)


def _active_assignments(db: Session, user_id: str) -> List[UserPropertyRole]:
    return (
        db.query(UserPropertyRole)
        .filter(UserPropertyRole.user_id == user_id, UserPropertyRole.status == STATUS_ACTIVE)
        .all()
    )


def _owned_property_ids(db: Session, user_id: str) -> Set[str]:
    return {row[0] for row in db.query(Property.id).filter(Property.owner_id == user_id)}


def resolve_scope(db: Session, user: User) -> AccessScope:
    tenant_ids: Set[str] = set()
    managed_ids: Set[str] = _owned_property_ids(db, user.id)
    member_ids: Set[str] = set()
    for assignment in _active_assignments(db, user.id):
        if assignment.role == ROLE_TENANT:
            tenant_ids.add(assignment.property_id)
        elif assignment.role in MANAGING_ROLES:
            managed_ids.add(assignment.property_id)
        else:
            member_ids.add(assignment.property_id)
    return AccessScope(
        user_id=user.id,
        is_admin=is_global_admin(user),
        tenant_property_ids=frozenset(tenant_ids),
        managed_property_ids=frozenset(managed_ids),
        member_property_ids=frozenset(member_ids),
    )


def visible(
    query: Query,
    scope: AccessScope,
    *,
    property_column,
    tenant_column=None,
    reference_columns: Sequence = (),
) -> Query:
    """Restrict ``query`` to the rows ``scope`` may read.

    ``reference_columns`` are the user-id columns that count as "directly
    referencing" the caller; they drive the fallback for callers that are
    both tenant and landlord, or neither. When omitted the tenant column is
    used.
    """
    view = scope.view
    if view == VIEW_ADMIN:
        return query
    if view == VIEW_TENANT:
        if tenant_column is not None:
            return query.filter(tenant_column == scope.user_id)
        return query.filter(property_column.in_(sorted(scope.tenant_property_ids)))
    if view == VIEW_LANDLORD:
        return query.filter(property_column.in_(sorted(scope.managed_property_ids)))

    columns = list(reference_columns) or ([tenant_column] if tenant_column is not None else [])
    if not columns:
        return query.filter(false())
    return query.filter(or_(*(column == scope.user_id for column in columns)))


def roles_on_property(db: Session, user: User, property_id: str) -> Set[str]:
    roles = {
        row[0]
        for row in db.query(UserPropertyRole.role).filter(
            UserPropertyRole.user_id == user.id,
            UserPropertyRole.property_id == property_id,
            UserPropertyRole.status == STATUS_ACTIVE,
        )
    }
    owns = db.query(Property.id).filter(Property.id == property_id, Property.owner_id == user.id).first()
    if owns:
        roles.add(ROLE_LANDLORD)
    return roles


def authorize(db: Session, user: User, property_id: str, operation: str) -> bool:
    rule = OPERATIONS[operation]
    if rule.allow_global_admin and is_global_admin(user):
        return True
    return bool(roles_on_property(db, user, property_id) & rule.roles)


def require(db: Session, user: User, property_id: str, operation: str) -> None:
    if not authorize(db, user, property_id, operation):
        raise HTTPException(status_code=403, detail=OPERATIONS[operation].denial)


def shares_property(db: Session, first_user_id: str, second_user_id: str) -> bool:
    def _property_ids(user_id: str) -> Set[str]:
        ids = {assignment.property_id for assignment in _active_assignments(db, user_id)}
        return ids | _owned_property_ids(db, user_id)

    first = _property_ids(first_user_id)
    if not first:
        return False
    return bool(first & _property_ids(second_user_id))


def property_member_ids(
    db: Session,
    property_id: str,
    role: str,
    unit_ids: Optional[Iterable[str]] = None,
) -> List[str]:
    query = db.query(UserPropertyRole.user_id).filter(
        UserPropertyRole.property_id == property_id,
        UserPropertyRole.role == role,
        UserPropertyRole.status == STATUS_ACTIVE,
    )
    unit_filter = list(unit_ids or [])
    if unit_filter:
        query = query.filter(UserPropertyRole.unit_id.in_(unit_filter))
    recipients = {row[0] for row in query}

    if unit_filter and role == ROLE_TENANT:
        linked = db.query(Unit.tenant_id).filter(Unit.id.in_(unit_filter), Unit.tenant_id.isnot(None))
        recipients.update(row[0] for row in linked)
    return sorted(recipients)
