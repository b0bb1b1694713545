import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..config import Base
from ..constants import (
    MAINTENANCE_PENDING,
    MESSAGE_SENT,
    PAYMENT_PENDING,
    RECEIPT_PENDING,
    ROLE_TENANT,
    STATUS_ACTIVE,
    UNIT_VACANT,
)


def utcnow():
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    account_role = Column(String, nullable=False, default=ROLE_TENANT)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    property_roles = relationship("UserPropertyRole", back_populates="user", cascade="all, delete-orphan")
    owned_properties = relationship("Property", back_populates="owner")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")
    activity_logs = relationship("ActivityLog", back_populates="user")

    @property
    def active_property_roles(self) -> list["UserPropertyRole"]:
        return [assignment for assignment in self.property_roles if assignment.status == STATUS_ACTIVE]

    def has_account_role(self, *role_names: str) -> bool:
        return self.account_role in set(role_names)


class Property(Base):
    __tablename__ = "properties"

    id = Column(String(36), primary_key=True, default=new_id)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    property_code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    type = Column(String, nullable=False)
    receipt_serial_counter = Column(Integer, nullable=False, default=0)
    logo_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    owner = relationship("User", back_populates="owned_properties")
    units = relationship("Unit", back_populates="property", cascade="all, delete-orphan")
    role_assignments = relationship("UserPropertyRole", back_populates="property", cascade="all, delete-orphan")


class Unit(Base):
    __tablename__ = "units"

    id = Column(String(36), primary_key=True, default=new_id)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    tenant_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    unit_name = Column(String, nullable=False)
    type = Column(String, nullable=True)
    invite_link = Column(String, nullable=True)
    status = Column(String, nullable=False, default=UNIT_VACANT)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    property = relationship("Property", back_populates="units")
    tenant = relationship("User")


class UserPropertyRole(Base):
    __tablename__ = "user_property_roles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_id = Column(String(36), ForeignKey("units.id", ondelete="SET NULL"), nullable=True)
    role = Column(String, nullable=False)
    status = Column(String, nullable=False, default=STATUS_ACTIVE)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="property_roles")
    property = relationship("Property", back_populates="role_assignments")
    unit = relationship("Unit")


class MaintenanceRequest(Base):
    __tablename__ = "maintenance_requests"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    urgency = Column(String, nullable=False)
    status = Column(String, nullable=False, default=MAINTENANCE_PENDING)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    resolved_at = Column(DateTime, nullable=True)

    tenant = relationship("User")
    property = relationship("Property")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    reference = Column(String, nullable=False)
    payment_method = Column(String, nullable=False)
    status = Column(String, nullable=False, default=PAYMENT_PENDING)
    paid_at = Column(DateTime, default=utcnow, nullable=False)

    tenant = relationship("User")
    property = relationship("Property")


class Receipt(Base):
    __tablename__ = "receipts"
    __table_args__ = (UniqueConstraint("property_id", "receipt_no", name="uq_receipt_property_number"),)

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    period = Column(String, nullable=False)
    receipt_no = Column(String, nullable=False)
    approved_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, default=utcnow, nullable=True)
    receipt_pdf_url = Column(String, nullable=True)
    status = Column(String, nullable=False, default=RECEIPT_PENDING)

    tenant = relationship("User", foreign_keys=[tenant_id])
    approver = relationship("User", foreign_keys=[approved_by])
    property = relationship("Property")


class Announcement(Base):
    __tablename__ = "announcements"

    id = Column(String(36), primary_key=True, default=new_id)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Declared before the ``property`` relationship below, which shadows the builtin in this class body.
    @property
    def unit_ids(self) -> list[str]:
        return [scope.unit_id for scope in self.scopes]

    creator = relationship("User")
    property = relationship("Property")
    scopes = relationship("AnnouncementScope", back_populates="announcement", cascade="all, delete-orphan")


class AnnouncementScope(Base):
    __tablename__ = "announcement_scopes"

    id = Column(String(36), primary_key=True, default=new_id)
    announcement_id = Column(String(36), ForeignKey("announcements.id", ondelete="CASCADE"), nullable=False)
    unit_id = Column(String(36), ForeignKey("units.id", ondelete="CASCADE"), nullable=False)

    announcement = relationship("Announcement", back_populates="scopes")


class Message(Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=new_id)
    sender_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    receiver_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    message_body = Column(Text, nullable=False)
    status = Column(String, nullable=False, default=MESSAGE_SENT)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    body = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    event_type = Column(String, nullable=True)
    reference_id = Column(String(36), nullable=True)

    user = relationship("User", back_populates="notifications")


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    action = Column(String, nullable=False)
    entity = Column(String, nullable=False)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True, nullable=False)

    user = relationship("User", back_populates="activity_logs")
