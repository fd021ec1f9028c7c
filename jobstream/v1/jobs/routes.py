"""
Job API endpoints.

Accepts work, reports status, and cancels jobs. Progress itself is streamed
over the real-time hub, not these endpoints.
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Request, status

from jobstream.config.logging import get_logger
from jobstream.v1.core.exceptions import NotFoundError, create_success_response
from jobstream.v1.jobs.schemas import (
    JobCancelResponse,
    JobCreateRequest,
    JobCreateResponse,
    JobStatusResponse,
)
from jobstream.v1.jobs.store import JobStore
from jobstream.v1.runtime import JobStoreDep

logger = get_logger(__name__)
router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("", response_model=dict, status_code=status.HTTP_202_ACCEPTED)
async def create_job(
    job_request: JobCreateRequest,
    request: Request,
    store: JobStore = JobStoreDep,
) -> dict[str, Any]:
    """Queue a job. Subscribe to the hub with the returned id for progress."""

    job = store.create_job(job_request.input)

    response = JobCreateResponse(
        job_id=job.id,
        status=job.status,
        created_at=job.created_at,
        hub_url=_hub_url(request),
    )

    logger.info("Job created via API", job_id=str(job.id))

    return create_success_response(
        data=response.model_dump(mode="json"),
        request_id=getattr(request.state, "request_id", None),
    )


@router.get("", response_model=dict)
async def list_jobs(store: JobStore = JobStoreDep) -> dict[str, Any]:
    """List every job known to this process, oldest first."""

    jobs = sorted(store.list_jobs(), key=lambda job: job.created_at)
    data = [JobStatusResponse.from_job(job).model_dump(mode="json") for job in jobs]

    return create_success_response(data={"jobs": data, "total": len(data)})


@router.get("/{job_id}", response_model=dict)
async def get_job(job_id: UUID, store: JobStore = JobStoreDep) -> dict[str, Any]:
    """Get a specific job by ID."""

    job = store.get_job(job_id)
    if job is None:
        raise NotFoundError(f"Job {job_id} not found", details={"job_id": str(job_id)})

    return create_success_response(
        data=JobStatusResponse.from_job(job).model_dump(mode="json")
    )


@router.post("/{job_id}/cancel", response_model=dict)
async def cancel_job(job_id: UUID, store: JobStore = JobStoreDep) -> dict[str, Any]:
    """Cancel a queued or processing job."""

    job = store.get_job(job_id)
    if job is None:
        raise NotFoundError(f"Job {job_id} not found", details={"job_id": str(job_id)})

    cancelled = store.cancel_job(job_id)

    response = JobCancelResponse(
        success=cancelled,
        message=(
            "Job cancelled successfully"
            if cancelled
            else f"Job cannot be cancelled. Current status: {job.status.value}"
        ),
    )

    logger.info("Cancel requested via API", job_id=str(job_id), success=cancelled)

    return create_success_response(data=response.model_dump())


def _hub_url(request: Request) -> str:
    url = request.url_for("job_progress_hub")
    scheme = "wss" if url.scheme == "https" else "ws"
    return str(url.replace(scheme=scheme))
