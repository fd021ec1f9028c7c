"""
Background worker streaming job results unit by unit.
"""

import asyncio
import random
from uuid import UUID

from jobstream.config.logging import get_logger
from jobstream.config.settings import Settings
from jobstream.v1.core.registries import StringTransform
from jobstream.v1.jobs.cancellation import (
    CancellationHandle,
    CancellationRegistry,
    OperationCancelled,
)
from jobstream.v1.jobs.models import Job, JobStatus
from jobstream.v1.jobs.store import JobStore
from jobstream.v1.notifications.events import (
    JobCancelled,
    JobCompleted,
    JobFailed,
    JobStarted,
    ProgressUpdated,
    UnitDelivered,
)
from jobstream.v1.notifications.service import NotificationService

logger = get_logger(__name__)


class JobWorker:
    """
    Sole consumer of the job queue.

    Features:
    - One dispatcher loop dequeues jobs in FIFO order
    - Every job runs in its own supervised task so jobs never block each other
    - Per-job cancellation handles linked to a process-wide shutdown handle
    - Concurrency limit on in-flight jobs
    - Graceful shutdown that cancels and awaits all outstanding work
    """

    def __init__(
        self,
        settings: Settings,
        store: JobStore,
        cancellations: CancellationRegistry,
        notifications: NotificationService,
        transform: StringTransform,
        rng: random.Random | None = None,
    ):
        self.settings = settings
        self.store = store
        self.cancellations = cancellations
        self.notifications = notifications
        self.transform = transform
        self.rng = rng or random.Random()
        self.running = False
        self.shutdown = CancellationHandle()
        self.active_jobs: dict[UUID, asyncio.Task] = {}
        self._slots = asyncio.Semaphore(settings.job_concurrency)
        self._dispatcher: asyncio.Task | None = None

    async def start(self) -> None:
        """Start the dispatcher loop in the background."""
        if self.running:
            raise RuntimeError("Worker is already running")

        self.running = True
        self.shutdown = CancellationHandle()
        self._dispatcher = asyncio.create_task(self._worker_loop())
        logger.info(
            "Job worker started",
            concurrency=self.settings.job_concurrency,
            unit_delay_ms=(
                self.settings.job_unit_delay_min_ms,
                self.settings.job_unit_delay_max_ms,
            ),
        )

    async def stop(self) -> None:
        """Cancel all in-flight jobs and wait for them to finish."""
        if not self.running:
            return

        logger.info("Stopping job worker", active_jobs=len(self.active_jobs))
        self.shutdown.cancel()

        if self._dispatcher is not None:
            await asyncio.gather(self._dispatcher, return_exceptions=True)
            self._dispatcher = None

        tasks = list(self.active_jobs.values())
        if tasks:
            _, pending = await asyncio.wait(
                tasks, timeout=self.settings.job_shutdown_timeout_s
            )
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
                logger.warning(
                    "Worker stopped with active jobs", active_jobs=len(pending)
                )

        self.running = False
        logger.info("Job worker stopped")

    async def _worker_loop(self) -> None:
        """Dequeue jobs and hand each one to its own task."""
        try:
            while not self.shutdown.is_cancelled:
                await self._slots.acquire()
                job = await self.store.next_job(self.shutdown)
                if job is None:
                    self._slots.release()
                    break

                task = asyncio.create_task(
                    self.process_job(job), name=f"job-{job.id}"
                )
                self.active_jobs[job.id] = task
                task.add_done_callback(
                    lambda t, job_id=job.id: self._job_done(job_id, t)
                )
        except Exception:
            logger.exception("Unexpected error in job worker loop")
            raise
        finally:
            logger.info("Job worker loop exiting")

    def _job_done(self, job_id: UUID, task: asyncio.Task) -> None:
        self.active_jobs.pop(job_id, None)
        self._slots.release()
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Job task crashed",
                job_id=str(job_id),
                error=repr(task.exception()),
            )

    async def process_job(self, job: Job) -> None:
        """Process a single job from claim to terminal notification."""
        handle = self.shutdown.link()
        try:
            self.cancellations.register(job.id, handle)
        except Exception:
            handle.dispose()
            raise
        job_id = str(job.id)

        try:
            if job.is_terminal():
                logger.info(
                    "Skipping job finished before processing",
                    job_id=job_id,
                    status=job.status.value,
                )
                if job.status == JobStatus.CANCELLED:
                    await self.notifications.notify(job.id, JobCancelled(job_id=job.id))
                return

            logger.info("Starting to process job", job_id=job_id)

            result = self.transform(job.input)

            handle.raise_if_cancelled()
            job.start(len(result))
            await handle.sleep(self.settings.job_start_delay_ms / 1000)
            await self.notifications.notify(job.id, JobStarted(job_id=job.id))

            for index, value in enumerate(result):
                handle.raise_if_cancelled()

                await handle.sleep(self._unit_delay())

                await self.notifications.notify(
                    job.id, UnitDelivered(job_id=job.id, value=value)
                )

                job.update_progress(index + 1)
                percentage = job.progress_percentage()
                await self.notifications.notify(
                    job.id, ProgressUpdated(job_id=job.id, percentage=percentage)
                )

                logger.debug(
                    "Unit delivered",
                    job_id=job_id,
                    unit=index + 1,
                    total=job.total_units,
                    progress=percentage,
                )

            handle.raise_if_cancelled()
            job.complete(result)
            await self.notifications.notify(
                job.id, JobCompleted(job_id=job.id, result=result)
            )

            logger.info("Job completed successfully", job_id=job_id)

        except OperationCancelled:
            await self._handle_cancelled(job)

        except Exception as e:
            if handle.is_cancelled:
                # A cancel landed between checks and tripped a state guard.
                await self._handle_cancelled(job)
            else:
                logger.exception("Job processing failed", job_id=job_id)
                await self._handle_failed(job, e)

        finally:
            self.cancellations.unregister(job.id)

    async def _handle_cancelled(self, job: Job) -> None:
        logger.info("Job was cancelled", job_id=str(job.id))

        if not job.is_terminal():
            job.cancel()
        elif job.status != JobStatus.CANCELLED:
            return

        # Let the synchronous cancel response reach the client first.
        if self.settings.job_cancel_grace_ms and not self.shutdown.is_cancelled:
            await asyncio.sleep(self.settings.job_cancel_grace_ms / 1000)

        await self.notifications.notify(job.id, JobCancelled(job_id=job.id))

    async def _handle_failed(self, job: Job, error: Exception) -> None:
        if job.is_terminal():
            logger.warning(
                "Failure ignored for finished job",
                job_id=str(job.id),
                status=job.status.value,
            )
            return

        error_message = f"Job processing failed: {error}"
        job.fail(error_message)
        await self.notifications.notify(
            job.id, JobFailed(job_id=job.id, message=error_message)
        )

    def _unit_delay(self) -> float:
        low = self.settings.job_unit_delay_min_ms
        high = self.settings.job_unit_delay_max_ms
        return self.rng.randint(low, high) / 1000
