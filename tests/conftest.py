import asyncio
import time
from collections.abc import AsyncGenerator, Callable, Generator
from uuid import UUID

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from jobstream.config.settings import Settings
from jobstream.main import create_app
from jobstream.v1.core.exceptions import DeliveryError
from jobstream.v1.jobs.cancellation import CancellationRegistry
from jobstream.v1.jobs.store import JobStore
from jobstream.v1.jobs.transforms import frequency_base64
from jobstream.v1.jobs.worker import JobWorker
from jobstream.v1.notifications.connections import ConnectionTracker
from jobstream.v1.notifications.service import NotificationService


class RecordingNotifier:
    """Notifier double that records every outbound call in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, UUID, tuple]] = []
        self.fail_on: set[str] = set()

    async def job_started(self, job_id: UUID) -> None:
        self._record("job_started", job_id)

    async def unit_delivered(self, job_id: UUID, value: str) -> None:
        self._record("unit_delivered", job_id, value)

    async def progress_updated(self, job_id: UUID, percentage: float) -> None:
        self._record("progress_updated", job_id, percentage)

    async def job_completed(self, job_id: UUID, result: str) -> None:
        self._record("job_completed", job_id, result)

    async def job_cancelled(self, job_id: UUID) -> None:
        self._record("job_cancelled", job_id)

    async def job_failed(self, job_id: UUID, message: str) -> None:
        self._record("job_failed", job_id, message)

    def names(self, job_id: UUID | None = None) -> list[str]:
        return [name for name, jid, _ in self.calls if job_id is None or jid == job_id]

    def args(self, name: str, job_id: UUID | None = None) -> list[tuple]:
        return [
            args
            for call, jid, args in self.calls
            if call == name and (job_id is None or jid == job_id)
        ]

    def _record(self, name: str, job_id: UUID, *args) -> None:
        if name in self.fail_on:
            raise DeliveryError(f"{name} failed for {job_id}")
        self.calls.append((name, job_id, args))


@pytest.fixture
def fast_settings() -> Settings:
    """Settings with every delay removed."""
    return Settings(
        job_start_delay_ms=0,
        job_unit_delay_min_ms=0,
        job_unit_delay_max_ms=0,
        job_cancel_grace_ms=0,
        job_shutdown_timeout_s=5.0,
    )


@pytest.fixture
def slow_settings() -> Settings:
    """Settings with a short but real per-unit delay, for cancellation tests."""
    return Settings(
        job_start_delay_ms=0,
        job_unit_delay_min_ms=20,
        job_unit_delay_max_ms=20,
        job_cancel_grace_ms=0,
        job_shutdown_timeout_s=5.0,
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def cancellations() -> CancellationRegistry:
    return CancellationRegistry()


@pytest.fixture
def store(cancellations: CancellationRegistry) -> JobStore:
    return JobStore(cancellations)


@pytest.fixture
def connections() -> ConnectionTracker:
    return ConnectionTracker()


@pytest.fixture
def notifications(
    notifier: RecordingNotifier, connections: ConnectionTracker
) -> NotificationService:
    return NotificationService(notifier, connections)


@pytest.fixture
def make_worker(
    store: JobStore,
    cancellations: CancellationRegistry,
    notifications: NotificationService,
):
    """Factory building a worker over the shared store and notification fixtures."""

    def factory(settings: Settings, transform=frequency_base64) -> JobWorker:
        return JobWorker(settings, store, cancellations, notifications, transform)

    return factory


@pytest.fixture
def wait_until() -> Callable:
    """Poll a predicate on the event loop until it holds or time runs out."""

    async def waiter(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
        deadline = time.monotonic() + timeout
        while not predicate():
            if time.monotonic() > deadline:
                raise AssertionError("Condition not met before timeout")
            await asyncio.sleep(0.005)

    return waiter


@pytest.fixture
async def running_worker(
    make_worker, fast_settings: Settings
) -> AsyncGenerator[JobWorker, None]:
    """A started worker with zero delays, stopped after the test."""
    worker = make_worker(fast_settings)
    await worker.start()
    yield worker
    await worker.stop()


@pytest.fixture
def app(fast_settings: Settings) -> FastAPI:
    """Create a test FastAPI application with zero processing delays."""
    return create_app(fast_settings)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Create a test client; entering it runs the lifespan and starts the worker."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def poll_job(client: TestClient) -> Callable:
    """Poll the status endpoint until the job reaches a terminal status."""

    def poller(job_id: str, timeout: float = 5.0) -> dict:
        deadline = time.monotonic() + timeout
        while True:
            data = client.get(f"/v1/jobs/{job_id}").json()["data"]
            if data["status"] in {"completed", "cancelled", "failed"}:
                return data
            if time.monotonic() > deadline:
                raise AssertionError(f"Job {job_id} still {data['status']}")
            time.sleep(0.01)

    return poller
