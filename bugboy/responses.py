"""
The JSON envelope every endpoint answers with:

    {"success": true,  "data": ..., "message"?: ..., "timestamp"?: ...}
    {"success": false, "error": "...", ...extra fields}
"""

from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def ok(data: Any = None, *, message: str | None = None, timestamp: bool = False, **extra: Any) -> dict:
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    if timestamp:
        body["timestamp"] = now_iso()
    body.update(extra)
    return body


def error_response(status_code: int, error: str, **extra: Any) -> JSONResponse:
    body = {"success": False, "error": error, **extra}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))
