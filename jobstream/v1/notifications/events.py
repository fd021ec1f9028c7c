"""
Typed job events passed from the worker to whichever transport is in use.
"""

from typing import Any, ClassVar, Protocol
from uuid import UUID

from pydantic import BaseModel, Field


class JobProgressNotifier(Protocol):
    """Outbound transport interface, one call per event kind."""

    async def job_started(self, job_id: UUID) -> None: ...

    async def unit_delivered(self, job_id: UUID, value: str) -> None: ...

    async def progress_updated(self, job_id: UUID, percentage: float) -> None: ...

    async def job_completed(self, job_id: UUID, result: str) -> None: ...

    async def job_cancelled(self, job_id: UUID) -> None: ...

    async def job_failed(self, job_id: UUID, message: str) -> None: ...


class JobEvent(BaseModel):
    """Base class for events emitted while a job is processed."""

    name: ClassVar[str] = "JobEvent"
    terminal: ClassVar[bool] = False

    job_id: UUID

    async def deliver(self, notifier: JobProgressNotifier) -> None:
        raise NotImplementedError

    def to_message(self) -> dict[str, Any]:
        """Wire representation used by the hub."""
        return {"event": self.name, "data": self.model_dump(mode="json")}


class JobStarted(JobEvent):
    name: ClassVar[str] = "JobStarted"

    async def deliver(self, notifier: JobProgressNotifier) -> None:
        await notifier.job_started(self.job_id)


class UnitDelivered(JobEvent):
    name: ClassVar[str] = "ReceiveCharacter"

    value: str

    async def deliver(self, notifier: JobProgressNotifier) -> None:
        await notifier.unit_delivered(self.job_id, self.value)


class ProgressUpdated(JobEvent):
    name: ClassVar[str] = "ProgressUpdated"

    percentage: float = Field(..., ge=0, le=100)

    async def deliver(self, notifier: JobProgressNotifier) -> None:
        await notifier.progress_updated(self.job_id, self.percentage)


class JobCompleted(JobEvent):
    name: ClassVar[str] = "JobCompleted"
    terminal: ClassVar[bool] = True

    result: str

    async def deliver(self, notifier: JobProgressNotifier) -> None:
        await notifier.job_completed(self.job_id, self.result)


class JobCancelled(JobEvent):
    name: ClassVar[str] = "JobCancelled"
    terminal: ClassVar[bool] = True

    async def deliver(self, notifier: JobProgressNotifier) -> None:
        await notifier.job_cancelled(self.job_id)


class JobFailed(JobEvent):
    name: ClassVar[str] = "JobFailed"
    terminal: ClassVar[bool] = True

    message: str

    async def deliver(self, notifier: JobProgressNotifier) -> None:
        await notifier.job_failed(self.job_id, self.message)
