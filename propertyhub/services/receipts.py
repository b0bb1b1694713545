from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..constants import ACTION_CREATE, EVENT_RECEIPT_ISSUED, RECEIPT_PREFIX
from ..models.models import Property, Receipt, User, utcnow
from .activity import log_activity
from .notifications import create_notifications


def format_receipt_number(property_id: str, counter: int) -> str:
    return f"{RECEIPT_PREFIX}-{property_id[-8:].upper()}-{counter:04d}"


def reserve_receipt_serial(session: Session, property_id: str) -> int:
    """Atomically bump the property's receipt counter and return the new value.

    The increment is a single UPDATE evaluated by the database, so two
    concurrent issuers never read the same counter. The caller must commit
    (or roll back) together with the receipt row.
    """
    updated = (
        session.query(Property)
        .filter(Property.id == property_id)
        .update(
            {Property.receipt_serial_counter: func.coalesce(Property.receipt_serial_counter, 0) + 1},
            synchronize_session=False,
        )
    )
    if not updated:
        raise ValueError("Property not found")
    return session.query(Property.receipt_serial_counter).filter(Property.id == property_id).scalar()


def issue_receipt(
    session: Session,
    actor: User,
    *,
    tenant_id: str,
    property_id: str,
    amount: Decimal,
    period: str,
    status: str,
    receipt_pdf_url: Optional[str] = None,
) -> Receipt:
    counter = reserve_receipt_serial(session, property_id)
    receipt_no = format_receipt_number(property_id, counter)
    receipt = Receipt(
        tenant_id=tenant_id,
        property_id=property_id,
        amount=amount,
        period=period,
        status=status,
        receipt_pdf_url=receipt_pdf_url,
        receipt_no=receipt_no,
        approved_by=actor.id,
        approved_at=utcnow(),
    )
    session.add(receipt)
    try:
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(receipt)

    log_activity(
        session,
        actor.id,
        ACTION_CREATE,
        "Receipts",
        f"Created receipt: {receipt_no} for tenant {tenant_id}",
    )
    create_notifications(
        session,
        user_ids=[tenant_id],
        title="Receipt Issued",
        body=f"Receipt {receipt_no} for {period} has been issued.",
        event_type=EVENT_RECEIPT_ISSUED,
        reference_id=receipt.id,
    )
    return receipt
