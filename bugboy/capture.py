"""
Error capture client.

A small stand-in for the error-reporting SDK the demo is built to feed.
The contract is deliberately tiny:

    capture.init(api_key=..., endpoint=..., project_id=...)
    capture.is_initialized()

    @router.get("/api/things")
    @with_error_capture
    async def list_things(...):
        ...

The wrapper awaits the handler and hands back whatever it returned. If the
handler raises (anything but an HTTPException, which is a deliberate
answer), the error and some request context are POSTed to the configured
endpoint and the exception is re-raised untouched, so FastAPI's own error
handling still runs.
"""

import functools
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

import httpx
from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

REPORT_TIMEOUT = 5.0


class ErrorCaptureClient:
    def __init__(self):
        self.api_key: str | None = None
        self.endpoint: str | None = None
        self.project_id: str | None = None
        self._transport: httpx.AsyncBaseTransport | None = None
        self._initialized = False

    def init(
        self,
        api_key: str,
        endpoint: str,
        project_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("error capture requires an api_key")
        if not endpoint:
            raise ValueError("error capture requires an endpoint")
        self.api_key = api_key
        self.endpoint = endpoint
        self.project_id = project_id
        self._transport = transport
        self._initialized = True
        logger.info("Error capture initialised (endpoint=%s, project=%s)", endpoint, project_id)

    def is_initialized(self) -> bool:
        return self._initialized

    def shutdown(self) -> None:
        self.api_key = None
        self.endpoint = None
        self.project_id = None
        self._transport = None
        self._initialized = False

    def build_payload(self, error: BaseException, context: dict[str, Any]) -> dict[str, Any]:
        return {
            "apiKey": self.api_key,
            "projectId": self.project_id,
            "error": {
                "type": type(error).__name__,
                "message": str(error),
                "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
            },
            "context": context,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def report(self, error: BaseException, context: dict[str, Any] | None = None) -> bool:
        """Send one error to the endpoint. Returns False if it could not be delivered."""
        if not self._initialized:
            return False

        payload = self.build_payload(error, context or {})
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=REPORT_TIMEOUT) as client:
                resp = await client.post(
                    self.endpoint,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Error capture report failed: %s", e)
            return False
        return True

    def wrap(self, handler: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(handler)
        async def wrapper(*args, **kwargs):
            try:
                return await handler(*args, **kwargs)
            except HTTPException:
                raise
            except Exception as e:
                await self.report(e, _request_context(handler, kwargs))
                raise

        return wrapper


def _request_context(handler: Callable, kwargs: dict[str, Any]) -> dict[str, Any]:
    context: dict[str, Any] = {"handler": f"{handler.__module__}.{handler.__qualname__}"}
    params = {}
    for name, value in kwargs.items():
        if isinstance(value, Request):
            context["method"] = value.method
            context["url"] = str(value.url)
        elif isinstance(value, (str, int, float, bool)) or value is None:
            params[name] = value
    context["params"] = params
    return context


# The SDK exposes a single static client; so do we.
capture = ErrorCaptureClient()


def with_error_capture(handler: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
    """Route decorator: report unexpected errors through the default client."""
    return capture.wrap(handler)
