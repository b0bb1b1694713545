from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_current_user, load_user, token_subject
from ..constants import ACTION_UPDATE
from ..models.models import Notification, User
from ..schemas.schemas import Envelope, NotificationRead, NotificationUpdate
from ..services.activity import log_activity
from ..services.notifications import notification_center, notification_websocket_handler

router = APIRouter()


@router.get("/", response_model=Envelope[List[NotificationRead]])
def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = (
        db.query(Notification)
        .filter(Notification.user_id == current_user.id)
        .order_by(Notification.created_at.desc())
    )
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    notifications = query.limit(limit).all()
    return {"success": True, "data": [NotificationRead.model_validate(item) for item in notifications]}


@router.put("/", response_model=Envelope[NotificationRead])
def update_notification(
    payload: NotificationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    notification = (
        db.query(Notification)
        .filter(Notification.id == str(payload.id), Notification.user_id == current_user.id)
        .first()
    )
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found or access denied")

    notification.is_read = payload.is_read
    db.add(notification)
    db.commit()
    db.refresh(notification)
    notification_center.publish_read_state(current_user.id, [notification.id], notification.is_read)

    if payload.is_read:
        log_activity(
            db,
            current_user.id,
            ACTION_UPDATE,
            "Notifications",
            f"Marked notification {notification.id} as read",
        )
    return {"success": True, "data": NotificationRead.model_validate(notification)}


@router.post("/read-all", response_model=Envelope[dict])
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    unread_notifications = (
        db.query(Notification)
        .filter(Notification.user_id == current_user.id, Notification.is_read.is_(False))
        .all()
    )
    if not unread_notifications:
        return {"success": True, "data": {"updated": 0}}
    for notification in unread_notifications:
        notification.is_read = True
        db.add(notification)
    db.commit()
    notification_center.publish_read_state(current_user.id, [item.id for item in unread_notifications], True)

    log_activity(
        db,
        current_user.id,
        ACTION_UPDATE,
        "Notifications",
        f"Marked {len(unread_notifications)} notifications as read",
    )
    return {"success": True, "data": {"updated": len(unread_notifications)}}


@router.websocket("/ws")
async def websocket_notifications(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
) -> None:
    user_id = token_subject(token)
    if not user_id:
        await websocket.close(code=4401)
        return

    user = load_user(db, user_id)
    if not user or not user.is_active:
        await websocket.close(code=4403)
        return

    await notification_websocket_handler(user.id, websocket)
