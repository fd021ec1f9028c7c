"""
Job API Pydantic schemas.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from jobstream.v1.jobs.models import Job, JobStatus


class JobCreateRequest(BaseModel):
    """Schema for submitting a job."""

    input: str = Field(..., description="Text to process")

    @field_validator("input")
    @classmethod
    def input_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Input cannot be empty")
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            raise ValueError("Input must be valid UTF-8 text")
        return value


class JobCreateResponse(BaseModel):
    """Handle returned as soon as a job is queued."""

    job_id: UUID
    status: JobStatus
    created_at: datetime
    hub_url: str = Field(..., description="WebSocket endpoint streaming progress")


class JobStatusResponse(BaseModel):
    """Schema for job status API responses."""

    job_id: UUID
    input: str
    status: JobStatus
    result: str | None = None
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None
    total_units: int
    processed_units: int
    progress_percentage: float

    @classmethod
    def from_job(cls, job: Job) -> "JobStatusResponse":
        return cls(
            job_id=job.id,
            input=job.input,
            status=job.status,
            result=job.result,
            created_at=job.created_at,
            started_at=job.started_at,
            completed_at=job.completed_at,
            error_message=job.error_message,
            total_units=job.total_units,
            processed_units=job.processed_units,
            progress_percentage=job.progress_percentage(),
        )


class JobCancelResponse(BaseModel):
    """Schema for cancel responses."""

    success: bool
    message: str
