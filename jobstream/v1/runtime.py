"""
Process-scoped wiring of the job system.

Everything stateful is built once per application lifespan and handed to the
routes through FastAPI dependencies instead of living in module globals.
"""

from dataclasses import dataclass

from fastapi import Depends
from starlette.requests import HTTPConnection

from jobstream.config.logging import get_logger
from jobstream.config.settings import Settings
from jobstream.v1.core.registries import transform_registry
from jobstream.v1.jobs import transforms  # noqa: F401  registers built-in transforms
from jobstream.v1.jobs.cancellation import CancellationRegistry
from jobstream.v1.jobs.store import JobStore
from jobstream.v1.jobs.worker import JobWorker
from jobstream.v1.notifications.connections import ConnectionTracker
from jobstream.v1.notifications.hub import (
    HubJobProgressNotifier,
    HubSessions,
    JobProgressHub,
)
from jobstream.v1.notifications.service import NotificationService

logger = get_logger(__name__)


@dataclass
class JobRuntime:
    settings: Settings
    cancellations: CancellationRegistry
    store: JobStore
    connections: ConnectionTracker
    sessions: HubSessions
    notifications: NotificationService
    hub: JobProgressHub
    worker: JobWorker

    async def start(self) -> None:
        await self.worker.start()

    async def stop(self) -> None:
        await self.worker.stop()


def build_runtime(settings: Settings) -> JobRuntime:
    """Construct every job-system component for one process."""
    cancellations = CancellationRegistry()
    store = JobStore(cancellations)
    connections = ConnectionTracker()
    sessions = HubSessions()
    notifier = HubJobProgressNotifier(sessions, connections)
    notifications = NotificationService(notifier, connections)
    hub = JobProgressHub(
        sessions,
        connections,
        notifications,
        store,
        cancel_on_disconnect=settings.cancel_on_disconnect,
    )
    transform = transform_registry.get(settings.transform.value)
    worker = JobWorker(settings, store, cancellations, notifications, transform)

    logger.info("Job runtime built", transform=settings.transform.value)

    return JobRuntime(
        settings=settings,
        cancellations=cancellations,
        store=store,
        connections=connections,
        sessions=sessions,
        notifications=notifications,
        hub=hub,
        worker=worker,
    )


def get_runtime(connection: HTTPConnection) -> JobRuntime:
    """Dependency returning the runtime attached during application startup."""
    return connection.app.state.runtime


def get_job_store(runtime: JobRuntime = Depends(get_runtime)) -> JobStore:
    return runtime.store


def get_hub(runtime: JobRuntime = Depends(get_runtime)) -> JobProgressHub:
    return runtime.hub


# Convenience type aliases for dependency injection
RuntimeDep = Depends(get_runtime)
JobStoreDep = Depends(get_job_store)
HubDep = Depends(get_hub)
