"""
Error types.

Two families live here:

  - ApiError and its subclasses are raised by route handlers. Each carries
    the HTTP status it maps to, a user-facing message, and optional extra
    fields that are merged into the JSON error envelope.
  - StoreError and its subclasses are raised by the mock store. The app's
    exception handlers translate them (RecordNotFound -> 404,
    UniqueConstraintError -> 409) when a handler lets them escape.
"""

from typing import Any

from fastapi import HTTPException


class ApiError(HTTPException):
    """An error a handler answers deliberately, rendered as the error envelope."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None, **extra: Any):
        super().__init__(status_code=status_code or self.status_code, detail=message)
        self.message = message
        self.extra = extra


class BadRequest(ApiError):
    status_code = 400


class Unauthorized(ApiError):
    status_code = 401


class PaymentRequired(ApiError):
    status_code = 402


class Forbidden(ApiError):
    status_code = 403


class NotFound(ApiError):
    status_code = 404


class Conflict(ApiError):
    status_code = 409


class PayloadTooLarge(ApiError):
    status_code = 413


class UnsupportedMediaType(ApiError):
    status_code = 415


class TooManyRequests(ApiError):
    status_code = 429


class ServiceUnavailable(ApiError):
    status_code = 503


# ---------------------------------------------------------------------------
# Store errors
# ---------------------------------------------------------------------------

class StoreError(Exception):
    """Base class for mock store failures."""


class RecordNotFound(StoreError):
    def __init__(self, collection: str, key: str):
        super().__init__(f"Record not found: {collection} with key {key!r}")
        self.collection = collection
        self.key = key


class UniqueConstraintError(StoreError):
    def __init__(self, collection: str, field: str, key: str):
        super().__init__(
            f"Unique constraint failed on the fields: ({field}). "
            f"A record in {collection} with {field} {key!r} already exists."
        )
        self.collection = collection
        self.field = field
        self.key = key
