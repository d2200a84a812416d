"""
/api/auth/login -- Demo login, session check and logout.

Not real authentication: passwords are plaintext fixtures and sessions are
random tokens in the store. What it does do properly is rate limiting
(5 failed attempts per email per 15 minutes, checked before the password)
and session expiry (24 hours, or 30 days with rememberMe).
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Header, Request

from bugboy.capture import with_error_capture
from bugboy.deps import get_store
from bugboy.errors import BadRequest, ServiceUnavailable, TooManyRequests, Unauthorized
from bugboy.models.schemas import LoginRequest
from bugboy.responses import ok
from bugboy.store import MockStore

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_ATTEMPTS = 5
LOCKOUT_DURATION = timedelta(minutes=15)
SESSION_TTL = timedelta(hours=24)
REMEMBER_ME_TTL = timedelta(days=30)


def public_user(user: dict) -> dict:
    return {
        "id": user["id"],
        "email": user["email"],
        "name": user["name"],
        "role": user["role"],
    }


def bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer "):].strip() or None


def _recent_failures(store: MockStore, email: str, now: datetime) -> list[dict]:
    attempts = [
        a for a in store.login_attempts.get(email, [])
        if now - a["timestamp"] < LOCKOUT_DURATION
    ]
    store.login_attempts[email] = attempts
    return attempts


def _record_failure(store: MockStore, email: str, ip: str, now: datetime) -> None:
    store.login_attempts.setdefault(email, []).append(
        {"email": email, "timestamp": now, "success": False, "ip": ip}
    )


@router.post(
    "/api/auth/login",
    summary="Log in",
    tags=["Auth"],
)
@with_error_capture
async def login(
    body: LoginRequest,
    request: Request,
    store: MockStore = Depends(get_store),
):
    if not body.email or not body.password:
        raise BadRequest("Email and password are required")

    email = body.email.strip().lower()
    ip = request.headers.get("x-forwarded-for") or (request.client.host if request.client else "unknown")
    now = datetime.now(timezone.utc)

    recent = _recent_failures(store, email, now)
    if len(recent) >= MAX_ATTEMPTS:
        unlock_at = recent[0]["timestamp"] + LOCKOUT_DURATION
        logger.warning("Login locked out for %s from %s", email, ip)
        raise TooManyRequests(
            "Too many login attempts. Please try again later.",
            unlockAt=unlock_at.isoformat(),
        )

    users = await store.users.find_many(where={"email": email})
    if users is None:
        # A dropped read says nothing about the credentials; no strike recorded.
        logger.warning("User lookup dropped during login for %s", email)
        raise ServiceUnavailable("Login is temporarily unavailable. Please try again.")
    user = users[0] if users else None
    stored_password = store.passwords.get(email)

    if user is None or stored_password is None or not secrets.compare_digest(body.password, stored_password):
        _record_failure(store, email, ip, now)
        raise Unauthorized("Invalid email or password")

    token = f"sess_{secrets.token_urlsafe(24)}"
    expires_at = now + (REMEMBER_ME_TTL if body.remember_me else SESSION_TTL)
    await store.sessions.create({
        "token": token,
        "user_id": user["id"],
        "expires_at": expires_at,
        "created_at": now,
    })
    store.login_attempts.pop(email, None)
    await store.users.update(user["id"], {"last_login_at": now})
    logger.info("User %s logged in", user["id"])

    return ok({
        "token": token,
        "expiresAt": expires_at.isoformat(),
        "user": public_user(user),
    })


@router.get(
    "/api/auth/login",
    summary="Check session",
    description="Reports whether the Bearer token belongs to a live session.",
    tags=["Auth"],
)
@with_error_capture
async def session_status(
    authorization: str | None = Header(default=None),
    store: MockStore = Depends(get_store),
):
    token = bearer_token(authorization)
    if token is None:
        return ok({"authenticated": False})

    session = await store.sessions.find_unique(token)
    if session is None or datetime.now(timezone.utc) > session["expires_at"]:
        return ok({"authenticated": False})

    user = await store.users.find_unique(session["user_id"])
    if user is None:
        await store.sessions.delete(token)
        return ok({"authenticated": False})

    return ok({
        "authenticated": True,
        "session": {
            "expiresAt": session["expires_at"].isoformat(),
            "user": public_user(user),
        },
    })


@router.delete(
    "/api/auth/login",
    summary="Log out",
    tags=["Auth"],
)
@with_error_capture
async def logout(
    authorization: str | None = Header(default=None),
    store: MockStore = Depends(get_store),
):
    if not authorization:
        raise Unauthorized("No authorization token provided")

    token = bearer_token(authorization)
    if token is None:
        raise Unauthorized("Invalid authorization format")

    session = await store.sessions.delete(token)
    if session is None:
        raise Unauthorized("Invalid session")
    if datetime.now(timezone.utc) > session["expires_at"]:
        raise Unauthorized("Session expired")

    logger.info("User %s logged out", session["user_id"])
    return ok(message="Logged out successfully")
