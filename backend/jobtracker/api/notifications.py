"""
Notifications API - list, mark read, and a live change stream

Endpoints:
    GET  /notifications               - newest first
    GET  /notifications/unread-count  - badge count
    PATCH /notifications/{id}/read    - mark one read
    POST /notifications/read-all      - mark every unread one read
    WS   /notifications/stream        - INSERT/UPDATE events for the caller
"""

import asyncio
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from jobtracker.database import get_db
from jobtracker.models import Notification, User
from jobtracker.schemas import NotificationResponse, UnreadCountResponse
from jobtracker.auth import get_current_user, verify_session_token
from jobtracker.services.events import change_feed

logger = logging.getLogger(__name__)
router = APIRouter()

TABLE = "notifications"


def _publish_update(notification: Notification) -> None:
    record = NotificationResponse.model_validate(notification).model_dump(mode="json")
    change_feed.publish(TABLE, notification.user_id, "UPDATE", record)


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user.id)
        .order_by(Notification.created_at.desc())
    )
    return [NotificationResponse.model_validate(n) for n in result.scalars().all()]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user.id,
            Notification.read.is_(False),
        )
    )
    return UnreadCountResponse(unread=result.scalar() or 0)


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user.id,
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    if not notification.read:
        notification.read = True
        await db.commit()
        await db.refresh(notification)
        _publish_update(notification)

    return NotificationResponse.model_validate(notification)


@router.post("/read-all", response_model=UnreadCountResponse)
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = await db.execute(
        select(Notification).where(
            Notification.user_id == user.id,
            Notification.read.is_(False),
        )
    )
    unread = result.scalars().all()

    await db.execute(
        update(Notification)
        .where(Notification.user_id == user.id, Notification.read.is_(False))
        .values(read=True)
    )
    await db.commit()

    for notification in unread:
        await db.refresh(notification)
        _publish_update(notification)

    return UnreadCountResponse(unread=0)


@router.websocket("/stream")
async def notification_stream(websocket: WebSocket, token: str = Query(...)):
    user_id = verify_session_token(token)
    if not user_id:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    queue = change_feed.subscribe(TABLE, user_id)
    logger.info(f"Notification stream opened for {user_id}")

    # Reading the socket is the only way to notice a client that went away
    receiver = asyncio.ensure_future(websocket.receive())
    getter = None
    try:
        while True:
            getter = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait({receiver, getter}, return_when=asyncio.FIRST_COMPLETED)

            if getter in done:
                await websocket.send_json(getter.result().to_message())
            else:
                getter.cancel()

            if receiver in done:
                if receiver.result()["type"] == "websocket.disconnect":
                    break
                receiver = asyncio.ensure_future(websocket.receive())
    except WebSocketDisconnect:
        logger.debug(f"Notification stream for {user_id} dropped while sending")
    finally:
        receiver.cancel()
        if getter is not None:
            getter.cancel()
        change_feed.unsubscribe(TABLE, user_id, queue)
        logger.info(f"Notification stream closed for {user_id}")
