"""
GET /api/example -- Always fails.

A known-bad endpoint for checking that error capture is wired up: the
exception should show up at the capture endpoint, and the client gets a
generic 500.
"""

from fastapi import APIRouter

from bugboy.capture import with_error_capture

router = APIRouter()


class DemoError(RuntimeError):
    pass


@router.get(
    "/api/example",
    summary="Trigger a test error",
    tags=["System"],
)
@with_error_capture
async def example():
    raise DemoError("Test error for error capture")
