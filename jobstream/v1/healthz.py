from datetime import UTC, datetime

from fastapi import APIRouter
from pydantic import BaseModel

from jobstream.v1.core.exceptions import create_success_response
from jobstream.v1.jobs.models import JobStatus
from jobstream.v1.runtime import JobRuntime, RuntimeDep

router = APIRouter()


class WorkerHealth(BaseModel):
    """Worker health status."""

    running: bool
    active_jobs: int = 0
    queue_depth: int = 0
    registered_cancellations: int = 0


class HubHealth(BaseModel):
    """Real-time hub status."""

    connected_sessions: int = 0
    subscribed_jobs: int = 0
    buffered_notifications: int = 0


class HealthResponse(BaseModel):
    """Health response with worker and hub status."""

    ok: bool
    version: str
    environment: str
    timestamp: str
    jobs_by_status: dict[str, int]
    worker: WorkerHealth
    hub: HubHealth


@router.get("/healthz", response_model=dict)
async def health_check(runtime: JobRuntime = RuntimeDep):
    """Health check endpoint with worker and hub status."""
    settings = runtime.settings

    worker_health = WorkerHealth(
        running=runtime.worker.running,
        active_jobs=len(runtime.worker.active_jobs),
        queue_depth=runtime.store.queue_depth(),
        registered_cancellations=len(runtime.cancellations),
    )
    hub_health = HubHealth(
        connected_sessions=len(runtime.sessions),
        subscribed_jobs=len(runtime.connections),
        buffered_notifications=runtime.notifications.total_pending(),
    )

    by_status = {status.value: 0 for status in JobStatus}
    for job in runtime.store.list_jobs():
        by_status[job.status.value] += 1

    health = HealthResponse(
        ok=worker_health.running,
        version=settings.version,
        environment=settings.environment,
        timestamp=datetime.now(UTC).isoformat(),
        jobs_by_status=by_status,
        worker=worker_health,
        hub=hub_health,
    )

    return create_success_response(data=health.model_dump())
