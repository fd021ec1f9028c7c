"""
Job record and lifecycle state machine.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from jobstream.v1.core.exceptions import (
    InvalidJobStateTransition,
    ProgressOutOfRangeError,
    ValidationError,
)


class JobStatus(str, Enum):
    """Job status enumeration."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset(
    {JobStatus.COMPLETED, JobStatus.CANCELLED, JobStatus.FAILED}
)
CANCELLABLE_STATUSES = frozenset({JobStatus.QUEUED, JobStatus.PROCESSING})


@dataclass(eq=False)
class Job:
    """
    One unit-of-work request and its lifecycle.

    Transitions:
    - queued -> processing -> completed | cancelled | failed
    - queued -> cancelled | failed

    Only the job's own processing task mutates it, apart from ``cancel()``
    which the cancellation path may call from a request handler.
    """

    id: UUID
    input: str
    status: JobStatus = JobStatus.QUEUED
    result: str | None = None
    error_message: str | None = None
    total_units: int = 0
    processed_units: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.input or not self.input.strip():
            raise ValidationError("Input cannot be null or empty")

    def start(self, total_units: int) -> None:
        """Move a queued job into processing with a known amount of work."""
        if self.status != JobStatus.QUEUED:
            raise InvalidJobStateTransition(
                f"Cannot start processing job in {self.status.value} state. "
                f"Expected {JobStatus.QUEUED.value}",
                details={"job_id": str(self.id), "status": self.status.value},
            )
        if total_units <= 0:
            raise ValidationError(
                "Total units must be greater than 0",
                details={"total_units": total_units},
            )

        self.status = JobStatus.PROCESSING
        self.started_at = datetime.now(UTC)
        self.total_units = total_units
        self.processed_units = 0

    def update_progress(self, processed_units: int) -> None:
        if self.status != JobStatus.PROCESSING:
            raise InvalidJobStateTransition(
                f"Cannot update progress for job in {self.status.value} state",
                details={"job_id": str(self.id), "status": self.status.value},
            )
        if processed_units < 0 or processed_units > self.total_units:
            raise ProgressOutOfRangeError(
                f"Processed units must be between 0 and {self.total_units}",
                details={
                    "processed_units": processed_units,
                    "total_units": self.total_units,
                },
            )

        self.processed_units = processed_units

    def complete(self, result: str) -> None:
        if self.status != JobStatus.PROCESSING:
            raise InvalidJobStateTransition(
                f"Cannot complete job in {self.status.value} state. "
                f"Expected {JobStatus.PROCESSING.value}",
                details={"job_id": str(self.id), "status": self.status.value},
            )
        if not result:
            raise ValidationError("Result cannot be null or empty")

        self.status = JobStatus.COMPLETED
        self.result = result
        self.completed_at = datetime.now(UTC)
        self.processed_units = self.total_units

    def cancel(self) -> None:
        """Cancel the job. Cancelling a cancelled job is a no-op."""
        if self.status == JobStatus.CANCELLED:
            return
        if self.status in TERMINAL_STATUSES:
            raise InvalidJobStateTransition(
                f"Cannot cancel a {self.status.value} job",
                details={"job_id": str(self.id), "status": self.status.value},
            )

        self.status = JobStatus.CANCELLED
        self.completed_at = datetime.now(UTC)

    def fail(self, message: str) -> None:
        if self.status in TERMINAL_STATUSES:
            raise InvalidJobStateTransition(
                f"Cannot mark a {self.status.value} job as failed",
                details={"job_id": str(self.id), "status": self.status.value},
            )
        if not message or not message.strip():
            raise ValidationError("Error message cannot be null or empty")

        self.status = JobStatus.FAILED
        self.error_message = message
        self.completed_at = datetime.now(UTC)

    def is_terminal(self) -> bool:
        """Check if job is in a terminal state (completed, cancelled, failed)."""
        return self.status in TERMINAL_STATUSES

    def can_be_cancelled(self) -> bool:
        """Check if job is still queued or processing."""
        return self.status in CANCELLABLE_STATUSES

    def progress_percentage(self) -> float:
        """Get progress as a percentage in [0, 100]."""
        if self.total_units == 0:
            return 0.0

        return self.processed_units / self.total_units * 100
