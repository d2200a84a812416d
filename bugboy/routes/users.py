"""
GET /api/users -- User directory.

Users come straight from the store. Two fixture users are awkward on
purpose: one has no profile (SSO, never synced) and one has never logged
in. Both must still render.
"""

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query

from bugboy.capture import with_error_capture
from bugboy.deps import get_store
from bugboy.models.schemas import Role
from bugboy.responses import ok
from bugboy.store import MockStore

router = APIRouter()

ACTIVE_WINDOW = timedelta(days=30)


def shape_user(user: dict, now: datetime) -> dict:
    profile = user.get("profile") or {}
    last_login = user.get("last_login_at")
    return {
        "id": user["id"],
        "name": user["name"],
        "email": user["email"],
        "role": user["role"],
        "avatar": profile.get("avatar_url"),
        "department": profile.get("department"),
        "joinedAt": user["created_at"].isoformat(),
        "isActive": last_login is not None and now - last_login < ACTIVE_WINDOW,
    }


@router.get(
    "/api/users",
    summary="List users",
    description="All users with profile details and a 30-day activity flag. Filter with ?role=.",
    tags=["Users"],
)
@with_error_capture
async def list_users(
    role: Role | None = Query(default=None, description="Only users with this role."),
    store: MockStore = Depends(get_store),
):
    users = await store.users.find_many(where={"role": role} if role else None)

    now = datetime.now(timezone.utc)
    shaped = [shape_user(u, now) for u in users or []]

    return ok({"users": shaped, "total": len(shaped)})
