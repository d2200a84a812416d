"""
/api/settings -- Per-user settings.

Merge policy is SHALLOW, for PUT and PATCH alike, matching the store's
update semantics: each top-level key sent replaces the stored value
wholesale. Sending `{"notifications": {"email": false}}` leaves the
notifications section as exactly `{"email": false}`; the other channel
flags are dropped, not preserved. Clients that want to keep them send the
whole section.
"""

import copy
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from bugboy.capture import with_error_capture
from bugboy.deps import get_store
from bugboy.errors import BadRequest, NotFound
from bugboy.models.schemas import SETTINGS_SECTIONS, SettingsOut, SettingsPatch, SettingsReplace
from bugboy.responses import ok
from bugboy.seed import DEFAULT_SETTINGS
from bugboy.store import MockStore

logger = logging.getLogger(__name__)

router = APIRouter()


def default_settings(user_id: str) -> dict:
    return {
        **copy.deepcopy(DEFAULT_SETTINGS),
        "user_id": user_id,
        "updated_at": datetime.now(timezone.utc),
    }


def to_wire(settings: dict) -> dict:
    return SettingsOut.model_validate(settings).model_dump(
        mode="json", by_alias=True, exclude_unset=True,
    )


def _check_section(section: str) -> None:
    if section not in SETTINGS_SECTIONS:
        raise BadRequest(
            f"Unknown settings section: {section}",
            validSections=list(SETTINGS_SECTIONS),
        )


async def _require_user(store: MockStore, user_id: str | None) -> None:
    if not user_id:
        raise BadRequest("User ID is required")
    if await store.users.find_unique(user_id) is None:
        raise NotFound("User not found", userId=user_id)


@router.get(
    "/api/settings",
    summary="Get user settings",
    description="Creates default settings on first read. ?section= returns one section only.",
    tags=["Settings"],
)
@with_error_capture
async def get_settings(
    user_id: str | None = Query(default=None, alias="userId"),
    section: str | None = Query(default=None),
    store: MockStore = Depends(get_store),
):
    await _require_user(store, user_id)
    if section:
        _check_section(section)

    settings = await store.settings.find_unique(user_id)
    if settings is None:
        settings = await store.settings.upsert(user_id, create=default_settings(user_id))

    wire = to_wire(settings)
    if section:
        return ok({section: wire.get(section)})

    return ok(wire)


@router.put(
    "/api/settings",
    summary="Replace user settings",
    description="Stored settings become the defaults overlaid with what was sent.",
    tags=["Settings"],
)
@with_error_capture
async def replace_settings(
    body: SettingsReplace,
    store: MockStore = Depends(get_store),
):
    await _require_user(store, body.user_id)

    settings = {
        **default_settings(body.user_id),
        **body.settings.model_dump(exclude_unset=True),
        "updated_at": datetime.now(timezone.utc),
    }
    await store.settings.delete(body.user_id)
    stored = await store.settings.create(settings)

    return ok(to_wire(stored))


@router.patch(
    "/api/settings",
    summary="Update user settings",
    description="Shallow partial update: each section sent replaces the stored section.",
    tags=["Settings"],
)
@with_error_capture
async def patch_settings(
    body: SettingsPatch,
    store: MockStore = Depends(get_store),
):
    await _require_user(store, body.user_id)

    updates = body.model_dump(exclude_unset=True, exclude={"user_id"})
    if not updates:
        raise BadRequest("No settings provided")
    updates["updated_at"] = datetime.now(timezone.utc)

    stored = await store.settings.upsert(
        body.user_id,
        create={**default_settings(body.user_id), **updates},
        update=updates,
    )
    logger.info("Settings for %s updated: %s", body.user_id, ", ".join(sorted(updates)))

    return ok(to_wire(stored))


@router.delete(
    "/api/settings",
    summary="Reset user settings",
    description="Reset one section (?section=) or everything to defaults.",
    tags=["Settings"],
)
@with_error_capture
async def reset_settings(
    user_id: str | None = Query(default=None, alias="userId"),
    section: str | None = Query(default=None),
    store: MockStore = Depends(get_store),
):
    if not user_id:
        raise BadRequest("User ID is required")

    settings = await store.settings.find_unique(user_id)
    if settings is None:
        raise NotFound("No settings found for user", userId=user_id)

    if section:
        _check_section(section)
        updated = await store.settings.update(user_id, {
            section: copy.deepcopy(DEFAULT_SETTINGS[section]),
            "updated_at": datetime.now(timezone.utc),
        })
        return ok(to_wire(updated), message=f"{section} settings reset to defaults")

    await store.settings.delete(user_id)
    reset = await store.settings.create(default_settings(user_id))
    return ok(to_wire(reset), message="All settings reset to defaults")
