from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..api.dependencies import get_access_scope, get_db
from ..auth import policy
from ..auth.jwt import get_current_user
from ..constants import ACTION_CREATE, EVENT_PAYMENT_RECORDED, PAYMENT_PENDING
from ..models.models import Payment, Property, User, utcnow
from ..schemas.schemas import Envelope, PaymentCreate, PaymentRead
from ..services.activity import log_activity
from ..services.notifications import create_notifications

router = APIRouter()


@router.get("/", response_model=Envelope[List[PaymentRead]])
def list_payments(
    property_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    scope: policy.AccessScope = Depends(get_access_scope),
):
    query = policy.visible(
        db.query(Payment),
        scope,
        property_column=Payment.property_id,
        tenant_column=Payment.tenant_id,
    )
    if property_id:
        query = query.filter(Payment.property_id == property_id)
    payments = query.order_by(Payment.paid_at.desc()).all()
    return {"success": True, "data": [PaymentRead.model_validate(item) for item in payments]}


@router.post("/", response_model=Envelope[PaymentRead])
def record_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    property_id = str(payload.property_id)
    policy.require(db, current_user, property_id, "payment.create")

    payment = Payment(
        tenant_id=current_user.id,
        property_id=property_id,
        amount=payload.amount,
        reference=payload.reference,
        payment_method=payload.payment_method,
        status=PAYMENT_PENDING,
        paid_at=utcnow(),
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)

    log_activity(
        db,
        current_user.id,
        ACTION_CREATE,
        "Payments",
        f"Recorded payment {payment.reference} of {payment.amount}",
    )
    owner_id = db.query(Property.owner_id).filter(Property.id == property_id).scalar()
    if owner_id and owner_id != current_user.id:
        create_notifications(
            db,
            user_ids=[owner_id],
            title="Payment Recorded",
            body=f"A tenant recorded payment {payment.reference} of {payment.amount} via {payment.payment_method}.",
            event_type=EVENT_PAYMENT_RECORDED,
            reference_id=payment.id,
        )
    return {"success": True, "data": PaymentRead.model_validate(payment)}
