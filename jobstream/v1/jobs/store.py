"""
In-memory job store and the queue feeding the background worker.
"""

import asyncio
import uuid
from uuid import UUID

from jobstream.config.logging import get_logger
from jobstream.v1.core.exceptions import JobStoreError, ValidationError
from jobstream.v1.jobs.cancellation import CancellationHandle, CancellationRegistry
from jobstream.v1.jobs.models import Job

logger = get_logger(__name__)


class JobStore:
    """
    Single source of truth for job records.

    Many request handlers create jobs; exactly one worker consumes the queue.
    All methods run on the event loop, so each check-and-set on the job map
    completes without yielding.
    """

    def __init__(self, cancellations: CancellationRegistry):
        self.cancellations = cancellations
        self._jobs: dict[UUID, Job] = {}
        self._queue: asyncio.Queue[Job] = asyncio.Queue()

    def create_job(self, input: str) -> Job:
        """Create a queued job and hand it to the worker."""
        if not input or not input.strip():
            raise ValidationError("Input cannot be null or empty")
        try:
            input.encode("utf-8")
        except UnicodeEncodeError:
            raise ValidationError("Input must be valid UTF-8 text")

        job = Job(id=uuid.uuid4(), input=input)

        if job.id in self._jobs:
            logger.error("Job id collision", job_id=str(job.id))
            raise JobStoreError(
                f"Failed to create job {job.id}", details={"job_id": str(job.id)}
            )
        self._jobs[job.id] = job

        logger.info("Job created", job_id=str(job.id), input_length=len(input))

        self._queue.put_nowait(job)

        logger.info("Job queued for processing", job_id=str(job.id))

        return job

    def get_job(self, job_id: UUID) -> Job | None:
        return self._jobs.get(job_id)

    def list_jobs(self) -> list[Job]:
        return list(self._jobs.values())

    def cancel_job(self, job_id: UUID) -> bool:
        """
        Cancel a queued or processing job.

        Returns False when the job does not exist or already finished. A job
        still waiting in the queue has no handle yet; its status alone tells
        the worker to skip it.
        """
        job = self._jobs.get(job_id)
        if job is None:
            logger.warning("Attempted to cancel non-existent job", job_id=str(job_id))
            return False

        if not job.can_be_cancelled():
            logger.warning(
                "Job cannot be cancelled",
                job_id=str(job_id),
                status=job.status.value,
            )
            return False

        self.cancellations.cancel(job_id)
        job.cancel()

        logger.info("Job cancelled successfully", job_id=str(job_id))

        return True

    async def next_job(self, shutdown: CancellationHandle) -> Job | None:
        """Wait for the next queued job. Returns None once shutdown fires."""
        if shutdown.is_cancelled:
            return None

        get_task = asyncio.ensure_future(self._queue.get())
        stop_task = asyncio.ensure_future(shutdown.wait())
        try:
            await asyncio.wait(
                {get_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            stop_task.cancel()
            if not get_task.done():
                get_task.cancel()

        if get_task.done() and not get_task.cancelled():
            return get_task.result()
        return None

    def queue_depth(self) -> int:
        return self._queue.qsize()

    def __len__(self) -> int:
        return len(self._jobs)
