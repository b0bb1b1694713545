from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth import policy
from ..auth.jwt import get_current_user
from ..constants import ACTION_CREATE, EVENT_MESSAGE_RECEIVED, MESSAGE_SENT
from ..models.models import Message, User
from ..schemas.schemas import Envelope, MessageCreate, MessageRead
from ..services.activity import log_activity
from ..services.notifications import create_notifications

router = APIRouter()


@router.get("/", response_model=Envelope[List[MessageRead]])
def list_messages(
    with_user: Optional[str] = Query(None, description="Only the conversation with this user."),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Message).filter(
        or_(Message.sender_id == current_user.id, Message.receiver_id == current_user.id)
    )
    if with_user:
        query = query.filter(
            or_(
                and_(Message.sender_id == current_user.id, Message.receiver_id == with_user),
                and_(Message.sender_id == with_user, Message.receiver_id == current_user.id),
            )
        )
    messages = query.order_by(Message.created_at.desc()).all()
    return {"success": True, "data": [MessageRead.model_validate(item) for item in messages]}


@router.post("/", response_model=Envelope[MessageRead])
def send_message(
    payload: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    receiver_id = str(payload.receiver_id)
    if receiver_id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot send message to yourself")
    if not policy.shares_property(db, current_user.id, receiver_id):
        raise HTTPException(status_code=403, detail="Access denied: Can only message users in the same property")

    message = Message(
        sender_id=current_user.id,
        receiver_id=receiver_id,
        message_body=payload.message_body,
        status=MESSAGE_SENT,
    )
    db.add(message)
    db.commit()
    db.refresh(message)

    log_activity(db, current_user.id, ACTION_CREATE, "Messages", f"Sent message to {receiver_id}")
    sender_name = current_user.full_name or current_user.email
    create_notifications(
        db,
        user_ids=[receiver_id],
        title="New Message",
        body=f"You have a new message from {sender_name}",
        event_type=EVENT_MESSAGE_RECEIVED,
        reference_id=message.id,
    )
    return {"success": True, "data": MessageRead.model_validate(message)}
