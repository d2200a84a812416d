"""
Export jobs: render a whole table as JSON, CSV or XML in the background.

POST /api/export returns immediately with a job id; the rendering runs as
an asyncio task. The runner keeps the task handle and the rendered output,
and every state change is written to the job record in the store, so
failures show up as `status: failed` on the next poll instead of vanishing.
"""

import asyncio
import csv
import io
import json
import logging
import re
from datetime import datetime, timezone
from typing import Any
from xml.sax.saxutils import escape

from fastapi.encoders import jsonable_encoder

from bugboy.store import MockStore

logger = logging.getLogger(__name__)

EXPORT_ENTITIES = ("users", "products", "orders")
EXPORT_FORMATS = ("json", "csv", "xml")

MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
    "xml": "application/xml",
}

# Rendered files kept for download; the oldest is evicted past this.
MAX_KEPT_OUTPUTS = 20

_TAG_INVALID = re.compile(r"[^A-Za-z0-9_.-]")


# ---------------------------------------------------------------------------
# Renderers
# ---------------------------------------------------------------------------

def _flatten(value: Any) -> str:
    """One cell's worth of text. Nested structures are JSON-encoded."""
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True)
    return str(value)


def to_json(rows: list[dict]) -> str:
    return json.dumps(rows, indent=2)


def to_csv(rows: list[dict]) -> str:
    """CSV with a header built from the union of all keys (first-seen order)."""
    if not rows:
        return ""

    headers: list[str] = []
    for row in rows:
        for key in row:
            if key not in headers:
                headers.append(key)

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_flatten(row.get(h)) for h in headers])
    return buf.getvalue()


def _tag(name: str) -> str:
    tag = _TAG_INVALID.sub("_", str(name)) or "field"
    if not (tag[0].isalpha() or tag[0] == "_"):
        tag = f"_{tag}"
    return tag


def to_xml(rows: list[dict], entity: str) -> str:
    root = _tag(entity)
    item = _tag(entity[:-1] if entity.endswith("s") else f"{entity}_item")

    lines = ['<?xml version="1.0" encoding="UTF-8"?>', f"<{root}>"]
    for row in rows:
        lines.append(f"  <{item}>")
        for key, value in row.items():
            tag = _tag(key)
            lines.append(f"    <{tag}>{escape(_flatten(value))}</{tag}>")
        lines.append(f"  </{item}>")
    lines.append(f"</{root}>")
    return "\n".join(lines)


def render(rows: list[dict], fmt: str, entity: str) -> str:
    if fmt == "json":
        return to_json(rows)
    if fmt == "csv":
        return to_csv(rows)
    if fmt == "xml":
        return to_xml(rows, entity)
    raise ValueError(f"Unknown export format: {fmt}")


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

class ExportRunner:
    def __init__(self, store: MockStore):
        self.store = store
        self._tasks: dict[str, asyncio.Task] = {}
        self._outputs: dict[str, str] = {}

    async def start(self, entity: str, fmt: str, filters: dict[str, Any] | None = None) -> dict:
        if entity not in EXPORT_ENTITIES:
            raise ValueError(f"Unknown entity: {entity}")
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unknown export format: {fmt}")

        job = await self.store.export_jobs.create({
            "entity": entity,
            "format": fmt,
            "filters": filters or {},
            "status": "pending",
            "progress": 0,
            "download_url": None,
            "created_at": datetime.now(timezone.utc),
            "completed_at": None,
            "error": None,
        })

        task = asyncio.create_task(self._process(job["id"]), name=f"export:{job['id']}")
        self._tasks[job["id"]] = task
        task.add_done_callback(lambda t, job_id=job["id"]: self._tasks.pop(job_id, None))
        logger.info("Export %s started (%s as %s)", job["id"], entity, fmt)
        return job

    async def _fetch(self, entity: str) -> list[dict]:
        collection = getattr(self.store, entity)
        rows = await collection.find_many()
        return jsonable_encoder(rows or [])

    async def _process(self, job_id: str) -> None:
        job = self.store.export_jobs.get(job_id)
        if job is None:
            return

        try:
            await self.store.export_jobs.update(job_id, {"status": "processing", "progress": 10})

            rows = await self._fetch(job["entity"])
            await self.store.export_jobs.update(job_id, {"progress": 50})

            filters = job["filters"]
            if filters:
                rows = [
                    r for r in rows
                    if all(r.get(key) == value for key, value in filters.items())
                ]
            await self.store.export_jobs.update(job_id, {"progress": 75})

            await self._keep_output(job_id, render(rows, job["format"], job["entity"]))

            await self.store.export_jobs.update(job_id, {
                "status": "completed",
                "progress": 100,
                "completed_at": datetime.now(timezone.utc),
                "download_url": f"/api/export/download/{job_id}",
                "row_count": len(rows),
            })
            logger.info("Export %s completed (%d rows)", job_id, len(rows))
        except asyncio.CancelledError:
            logger.info("Export %s cancelled", job_id)
            raise
        except Exception:
            logger.exception("Export %s failed", job_id)
            if job_id in self.store.export_jobs:
                await self.store.export_jobs.update(job_id, {
                    "status": "failed",
                    "error": "Export failed",
                    "completed_at": datetime.now(timezone.utc),
                })

    async def _keep_output(self, job_id: str, content: str) -> None:
        self._outputs[job_id] = content
        while len(self._outputs) > MAX_KEPT_OUTPUTS:
            evicted = next(iter(self._outputs))
            del self._outputs[evicted]
            logger.info("Export %s output evicted", evicted)
            if evicted in self.store.export_jobs:
                await self.store.export_jobs.update(evicted, {"download_url": None})

    async def wait(self, job_id: str) -> dict | None:
        """Block until the job's task finishes; returns the final record."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return self.store.export_jobs.get(job_id)

    def is_running(self, job_id: str) -> bool:
        task = self._tasks.get(job_id)
        return task is not None and not task.done()

    async def cancel(self, job_id: str) -> dict | None:
        """Stop the task (if still running) and drop the job and its output."""
        job = self.store.export_jobs.get(job_id)
        if job is None:
            return None

        task = self._tasks.pop(job_id, None)
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            job["status"] = "cancelled"

        self._outputs.pop(job_id, None)
        await self.store.export_jobs.delete(job_id)
        return job

    def output(self, job_id: str) -> str | None:
        return self._outputs.get(job_id)

    async def shutdown(self) -> None:
        """Cancel every export still running. Job records are left as they are."""
        tasks = [t for t in self._tasks.values() if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d running export(s) on shutdown", len(tasks))
