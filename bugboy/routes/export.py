"""
/api/export -- Background table exports.

POST starts a job and returns its id right away. Poll GET ?jobId= until
status is `completed` (then fetch downloadUrl) or `failed`. DELETE cancels
a running job and forgets it.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from bugboy.capture import with_error_capture
from bugboy.deps import get_exports, get_store
from bugboy.errors import BadRequest, Conflict, NotFound
from bugboy.exporter import MEDIA_TYPES, ExportRunner
from bugboy.models.schemas import ExportCreate
from bugboy.responses import ok
from bugboy.store import MockStore

router = APIRouter()


def shape_job(job: dict) -> dict:
    return {
        "id": job["id"],
        "entity": job["entity"],
        "format": job["format"],
        "status": job["status"],
        "progress": job["progress"],
        "downloadUrl": job.get("download_url"),
        "rowCount": job.get("row_count"),
        "createdAt": job["created_at"],
        "completedAt": job.get("completed_at"),
        "error": job.get("error"),
    }


@router.post(
    "/api/export",
    summary="Start an export job",
    tags=["Export"],
)
@with_error_capture
async def create_export(
    body: ExportCreate,
    exports: ExportRunner = Depends(get_exports),
):
    job = await exports.start(body.entity, body.format, body.filters)
    return ok({
        "jobId": job["id"],
        "status": job["status"],
        "message": "Export job created. Poll GET /api/export?jobId=... for status.",
    })


@router.get(
    "/api/export",
    summary="Get export job status",
    description="Without ?jobId= lists every job.",
    tags=["Export"],
)
@with_error_capture
async def get_export(
    job_id: str | None = Query(default=None, alias="jobId"),
    store: MockStore = Depends(get_store),
):
    if not job_id:
        jobs = await store.export_jobs.find_many(order_by=("created_at", "desc"))
        return ok({"jobs": [shape_job(j) for j in jobs or []]})

    job = await store.export_jobs.find_unique(job_id)
    if job is None:
        raise NotFound("Export job not found", jobId=job_id)
    return ok(shape_job(job))


@router.get(
    "/api/export/download/{job_id}",
    summary="Download an export",
    tags=["Export"],
)
@with_error_capture
async def download_export(
    job_id: str,
    store: MockStore = Depends(get_store),
    exports: ExportRunner = Depends(get_exports),
):
    job = await store.export_jobs.find_unique(job_id)
    if job is None:
        raise NotFound("Export job not found", jobId=job_id)
    if job["status"] != "completed":
        raise Conflict("Export is not ready", status=job["status"])

    content = exports.output(job_id)
    if content is None:
        raise NotFound("Export output no longer available", jobId=job_id)

    filename = f"{job['entity']}_{job_id}.{job['format']}"
    return Response(
        content=content,
        media_type=MEDIA_TYPES[job["format"]],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete(
    "/api/export",
    summary="Cancel an export job",
    tags=["Export"],
)
@with_error_capture
async def cancel_export(
    job_id: str | None = Query(default=None, alias="jobId"),
    exports: ExportRunner = Depends(get_exports),
):
    if not job_id:
        raise BadRequest("Job ID is required")

    job = await exports.cancel(job_id)
    if job is None:
        raise NotFound("Export job not found", jobId=job_id)

    return ok({"jobId": job_id, "status": job["status"]}, message="Export job cancelled")
