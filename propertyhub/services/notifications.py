"""Notification rows plus their realtime push over websockets.

Rows are the source of truth; the websocket fan-out is a courtesy for
connected clients and silently does nothing when no event loop is bound
(tests, scripts, or before startup).
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from fastapi import WebSocket
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.websockets import WebSocketDisconnect, WebSocketState

from ..models.models import Notification, utcnow
from ..schemas.schemas import NotificationRead

logger = logging.getLogger(__name__)


class NotificationCenter:
    """Per-user websocket registry fed from synchronous request handlers."""

    def __init__(self) -> None:
        self._sockets: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def configure_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._sockets[user_id].add(websocket)
        logger.debug("Notification socket opened for user %s", user_id)

    async def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            sockets = self._sockets.get(user_id)
            if sockets is not None:
                sockets.discard(websocket)
                if not sockets:
                    del self._sockets[user_id]
        logger.debug("Notification socket closed for user %s", user_id)

    def connection_count(self, user_id: str) -> int:
        return len(self._sockets.get(user_id, ()))

    async def _deliver(self, user_id: str, event: dict) -> None:
        async with self._lock:
            targets = [ws for ws in self._sockets.get(user_id, ()) if ws.application_state == WebSocketState.CONNECTED]
        for websocket in targets:
            try:
                await websocket.send_json(event)
            except RuntimeError:
                # closed between snapshot and send
                continue

    def _publish(self, user_id: str, event: dict) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        asyncio.run_coroutine_threadsafe(self._deliver(user_id, event), loop)

    def publish_created(self, notification: Notification) -> None:
        self._publish(
            notification.user_id,
            {"type": "notification.created", "notification": serialize_notification(notification)},
        )

    def publish_read_state(self, user_id: str, notification_ids: List[str], is_read: bool) -> None:
        if notification_ids:
            self._publish(user_id, {"type": "notification.read", "ids": notification_ids, "is_read": is_read})

    async def shutdown(self) -> None:
        async with self._lock:
            sockets = [ws for group in self._sockets.values() for ws in group]
            self._sockets.clear()
        for websocket in sockets:
            if websocket.application_state == WebSocketState.CONNECTED:
                try:
                    await websocket.close()
                except RuntimeError:
                    continue


notification_center = NotificationCenter()


def serialize_notification(notification: Notification) -> dict:
    return NotificationRead.model_validate(notification).model_dump(mode="json")


def create_notifications(
    session: Session,
    *,
    user_ids: Iterable[Optional[str]],
    title: str,
    body: str,
    event_type: str,
    reference_id: Optional[str] = None,
) -> List[Notification]:
    """Insert one unread notification per distinct recipient and push it.

    Best effort: a failed insert is rolled back and logged, and an empty list
    comes back instead of an exception.
    """
    recipient_ids = sorted({user_id for user_id in user_ids if user_id})
    if not recipient_ids:
        return []

    created_at = utcnow()
    notifications = [
        Notification(
            user_id=recipient_id,
            title=title,
            body=body,
            event_type=event_type,
            reference_id=reference_id,
            is_read=False,
            created_at=created_at,
        )
        for recipient_id in recipient_ids
    ]
    try:
        session.add_all(notifications)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Failed to create %s notifications for %s", event_type, recipient_ids)
        return []

    for notification in notifications:
        notification_center.publish_created(notification)
    return notifications


async def notification_websocket_handler(user_id: str, websocket: WebSocket) -> None:
    await notification_center.connect(user_id, websocket)
    try:
        await websocket.send_json({"type": "notification.connected"})
        # Clients never send anything meaningful; reading just detects the close.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await notification_center.disconnect(user_id, websocket)
