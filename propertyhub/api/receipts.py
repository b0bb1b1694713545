from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..api.dependencies import get_access_scope, get_db, get_or_404
from ..auth import policy
from ..auth.jwt import get_current_user
from ..constants import ACTION_UPDATE, ACTION_VIEW
from ..models.models import Property, Receipt, User
from ..schemas.schemas import Envelope, ReceiptCreate, ReceiptRead, ReceiptUpdate
from ..services.activity import log_activity
from ..services.receipts import issue_receipt

router = APIRouter()


@router.get("/", response_model=Envelope[List[ReceiptRead]])
def list_receipts(
    property_id: Optional[str] = Query(None),
    tenant_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    scope: policy.AccessScope = Depends(get_access_scope),
):
    query = policy.visible(
        db.query(Receipt),
        scope,
        property_column=Receipt.property_id,
        tenant_column=Receipt.tenant_id,
        reference_columns=(Receipt.tenant_id, Receipt.approved_by),
    )
    if property_id:
        query = query.filter(Receipt.property_id == property_id)
    if tenant_id:
        query = query.filter(Receipt.tenant_id == tenant_id)
    receipts = query.order_by(Receipt.approved_at.desc()).all()

    log_activity(db, current_user.id, ACTION_VIEW, "Receipts", f"Viewed {len(receipts)} receipts")
    return {"success": True, "data": [ReceiptRead.model_validate(item) for item in receipts]}


@router.post("/", response_model=Envelope[ReceiptRead])
def create_receipt(
    payload: ReceiptCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    prop = get_or_404(db, Property, payload.property_id, "Property not found")
    policy.require(db, current_user, prop.id, "receipt.create")
    tenant = get_or_404(db, User, payload.tenant_id, "Tenant not found")

    try:
        receipt = issue_receipt(
            db,
            current_user,
            tenant_id=tenant.id,
            property_id=prop.id,
            amount=payload.amount,
            period=payload.period,
            status=payload.status,
            receipt_pdf_url=payload.receipt_pdf_url,
        )
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"success": True, "data": ReceiptRead.model_validate(receipt)}


@router.put("/", response_model=Envelope[ReceiptRead])
def update_receipt(
    payload: ReceiptUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    receipt = get_or_404(db, Receipt, payload.id, "Receipt not found")
    policy.require(db, current_user, receipt.property_id, "receipt.update")

    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True, exclude={"id"}).items()
        if value is not None or field == "receipt_pdf_url"
    }
    for field, value in changes.items():
        setattr(receipt, field, value)
    db.add(receipt)
    db.commit()
    db.refresh(receipt)

    log_activity(db, current_user.id, ACTION_UPDATE, "Receipts", f"Updated receipt: {receipt.receipt_no}")
    return {"success": True, "data": ReceiptRead.model_validate(receipt)}
