from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, List, Literal, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

T = TypeVar("T")

RoleName = Literal["tenant", "landlord", "admin", "maintenance", "accountant"]
Urgency = Literal["low", "medium", "high"]
MaintenanceStatus = Literal["pending", "in-progress", "resolved"]


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None


# --- Auth ---


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=1)
    phone: str = Field(min_length=10)
    role: RoleName


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class TokenRefreshRequest(BaseModel):
    refresh_token: str


class RoleAssignmentRead(BaseModel):
    id: str
    property_id: str
    unit_id: Optional[str] = None
    role: str
    status: str

    model_config = ConfigDict(from_attributes=True)


class UserRead(BaseModel):
    id: str
    email: EmailStr
    full_name: Optional[str] = None
    phone: Optional[str] = None
    account_role: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SessionRead(UserRead):
    role_assignments: List[RoleAssignmentRead] = []


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    refresh_expires_in: int
    user: UserRead


class RoleRead(BaseModel):
    name: str
    description: str


# --- Properties & units ---


class PropertyCreate(BaseModel):
    property_code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    type: str = Field(min_length=1)
    logo_url: Optional[str] = None


class PropertyUpdate(BaseModel):
    id: UUID
    property_code: Optional[str] = Field(default=None, min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)
    address: Optional[str] = Field(default=None, min_length=1)
    type: Optional[str] = Field(default=None, min_length=1)
    logo_url: Optional[str] = None


class PropertyRead(BaseModel):
    id: str
    owner_id: str
    property_code: str
    name: str
    address: str
    type: str
    receipt_serial_counter: int
    logo_url: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnitCreate(BaseModel):
    property_id: UUID
    unit_name: str = Field(min_length=1)
    type: Optional[str] = None


class UnitTenantAssign(BaseModel):
    tenant_id: UUID


class UnitRead(BaseModel):
    id: str
    property_id: str
    tenant_id: Optional[str] = None
    unit_name: str
    type: Optional[str] = None
    invite_link: Optional[str] = None
    status: str

    model_config = ConfigDict(from_attributes=True)


# --- Maintenance ---


class MaintenanceCreate(BaseModel):
    property_id: UUID
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    urgency: Urgency


class MaintenanceUpdate(BaseModel):
    id: UUID
    status: MaintenanceStatus
    resolved_at: Optional[datetime] = None


class MaintenanceRead(BaseModel):
    id: str
    tenant_id: str
    property_id: str
    title: str
    description: str
    urgency: str
    status: str
    created_at: datetime
    resolved_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# --- Payments & receipts ---


class PaymentCreate(BaseModel):
    property_id: UUID
    amount: Decimal = Field(gt=0)
    reference: str = Field(min_length=1)
    payment_method: str = Field(min_length=1)


class PaymentRead(BaseModel):
    id: str
    tenant_id: str
    property_id: str
    amount: float
    reference: str
    payment_method: str
    status: str
    paid_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReceiptCreate(BaseModel):
    tenant_id: UUID
    property_id: UUID
    amount: Decimal = Field(gt=0)
    period: str = Field(min_length=1)
    receipt_pdf_url: Optional[str] = None
    status: str = "pending"


class ReceiptUpdate(BaseModel):
    id: UUID
    status: Optional[str] = None
    receipt_pdf_url: Optional[str] = None


class ReceiptRead(BaseModel):
    id: str
    tenant_id: str
    property_id: str
    amount: float
    period: str
    receipt_no: str
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    receipt_pdf_url: Optional[str] = None
    status: str

    model_config = ConfigDict(from_attributes=True)


# --- Announcements, messages, notifications ---


class AnnouncementCreate(BaseModel):
    property_id: UUID
    body: str = Field(min_length=1)
    unit_ids: List[UUID] = []


class AnnouncementRead(BaseModel):
    id: str
    property_id: str
    created_by: str
    body: str
    created_at: datetime
    unit_ids: List[str] = []

    model_config = ConfigDict(from_attributes=True)


class MessageCreate(BaseModel):
    receiver_id: UUID
    message_body: str = Field(min_length=1)


class MessageRead(BaseModel):
    id: str
    sender_id: str
    receiver_id: str
    message_body: str
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationUpdate(BaseModel):
    id: UUID
    is_read: bool


class NotificationRead(BaseModel):
    id: str
    user_id: str
    title: str
    body: str
    is_read: bool
    created_at: datetime
    event_type: Optional[str] = None
    reference_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ActivityLogRead(BaseModel):
    id: str
    user_id: Optional[str] = None
    action: str
    entity: str
    details: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DashboardRead(BaseModel):
    user: dict[str, Any]
    view: str
    properties: List[Any] = []
    maintenance_requests: List[MaintenanceRead] = []
    payments: List[PaymentRead] = []
    receipts: List[ReceiptRead] = []
    announcements: List[AnnouncementRead] = []
    users: List[UserRead] = []
