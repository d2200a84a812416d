"""
/api/notifications -- In-app notifications.

Ownership rule: every write that targets specific notifications must carry
the owner's userId, and only that user's notifications are touched. An id
belonging to someone else is silently skipped (mark-as-read) or reported as
not found (delete), never modified.
"""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query

from bugboy.capture import with_error_capture
from bugboy.deps import get_notifier, get_store
from bugboy.errors import BadRequest, NotFound
from bugboy.models.schemas import NotificationCreate, NotificationMarkRead, NotificationType
from bugboy.responses import ok
from bugboy.services import NotificationService
from bugboy.store import MockStore

logger = logging.getLogger(__name__)

router = APIRouter()


def shape_notification(n: dict) -> dict:
    return {
        "id": n["id"],
        "userId": n["user_id"],
        "type": n["type"],
        "title": n["title"],
        "message": n["message"],
        "read": n["read"],
        "createdAt": n["created_at"],
        "expiresAt": n.get("expires_at"),
    }


async def _require_user(store: MockStore, user_id: str) -> dict:
    user = await store.users.find_unique(user_id)
    if user is None:
        raise NotFound("User not found", userId=user_id)
    return user


@router.get(
    "/api/notifications",
    summary="List a user's notifications",
    tags=["Notifications"],
)
@with_error_capture
async def list_notifications(
    user_id: str | None = Query(default=None, alias="userId"),
    unread: bool = Query(default=False, description="Only unread notifications."),
    type: NotificationType | None = Query(default=None),
    store: MockStore = Depends(get_store),
):
    if not user_id:
        raise BadRequest("User ID is required")
    await _require_user(store, user_id)

    where = {"user_id": user_id}
    if type:
        where["type"] = type
    if unread:
        where["read"] = False

    rows = await store.notifications.find_many(where=where, order_by=("created_at", "desc"))

    now = datetime.now(timezone.utc)
    live = [n for n in rows or [] if n.get("expires_at") is None or n["expires_at"] > now]

    return ok(
        {
            "notifications": [shape_notification(n) for n in live],
            "unreadCount": sum(1 for n in live if not n["read"]),
            "total": len(live),
        },
        timestamp=True,
    )


@router.post(
    "/api/notifications",
    summary="Create a notification",
    description="Stores a notification; with a channel it is also delivered and logged.",
    tags=["Notifications"],
)
@with_error_capture
async def create_notification(
    body: NotificationCreate,
    store: MockStore = Depends(get_store),
    notifier: NotificationService = Depends(get_notifier),
):
    user = await _require_user(store, body.user_id)

    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(hours=body.expires_in) if body.expires_in else None

    notification = await store.notifications.create({
        "user_id": body.user_id,
        "type": body.type,
        "title": body.title,
        "message": body.message,
        "read": False,
        "created_at": now,
        "expires_at": expires_at,
    })

    data = {"notificationId": notification["id"]}

    if body.channel:
        delivery = await notifier.send(user["email"], body.message, body.channel)
        await store.notification_logs.create({
            "user_id": body.user_id,
            "message": body.message,
            "channel": body.channel,
            "delivered_at": delivery.timestamp,
            "message_id": delivery.id,
            "created_at": datetime.now(timezone.utc),
        })
        data["delivery"] = {"messageId": delivery.id, "deliveredAt": delivery.timestamp}

    return ok(data)


@router.patch(
    "/api/notifications",
    summary="Mark notifications as read",
    description="Either markAllRead with userId, or notificationIds with userId.",
    tags=["Notifications"],
)
@with_error_capture
async def mark_read(
    body: NotificationMarkRead,
    store: MockStore = Depends(get_store),
):
    if body.mark_all_read:
        if not body.user_id:
            raise BadRequest("userId is required to mark all as read")
        targets = await store.notifications.find_many(where={"user_id": body.user_id, "read": False})
    else:
        if body.notification_ids is None:
            raise BadRequest("notificationIds array is required")
        if not body.user_id:
            raise BadRequest("userId is required")
        wanted = set(body.notification_ids)
        owned = await store.notifications.find_many(where={"user_id": body.user_id})
        targets = [n for n in owned or [] if n["id"] in wanted]

    updated = 0
    for n in targets or []:
        if not n["read"]:
            await store.notifications.update(n["id"], {"read": True})
            updated += 1

    return ok({"updated": updated})


@router.delete(
    "/api/notifications",
    summary="Delete a notification",
    tags=["Notifications"],
)
@with_error_capture
async def delete_notification(
    notification_id: str | None = Query(default=None, alias="id"),
    user_id: str | None = Query(default=None, alias="userId"),
    store: MockStore = Depends(get_store),
):
    if not notification_id or not user_id:
        raise BadRequest("id and userId are required")

    notification = await store.notifications.find_unique(notification_id)
    if notification is None or notification["user_id"] != user_id:
        raise NotFound("Notification not found")

    await store.notifications.delete(notification_id)
    logger.info("Notification %s deleted by %s", notification_id, user_id)
    return ok(message="Notification deleted")
