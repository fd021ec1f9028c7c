"""
Tracks which transport session is subscribed to which job topic.
"""

from uuid import UUID

from jobstream.config.logging import get_logger

logger = get_logger(__name__)


class ConnectionTracker:
    """
    One subscriber session per job.

    A second join for the same job replaces the first session, which then
    stops receiving live traffic for that job.
    """

    def __init__(self) -> None:
        self._sessions_by_job: dict[UUID, str] = {}

    def add(self, job_id: UUID, session_id: str) -> None:
        previous = self._sessions_by_job.get(job_id)
        if previous is not None and previous != session_id:
            logger.warning(
                "Replacing subscriber session",
                job_id=str(job_id),
                old_session_id=previous,
                new_session_id=session_id,
            )
        self._sessions_by_job[job_id] = session_id

    def remove(self, job_id: UUID) -> str | None:
        return self._sessions_by_job.pop(job_id, None)

    def has_active_connection(self, job_id: UUID) -> bool:
        return job_id in self._sessions_by_job

    def get_session(self, job_id: UUID) -> str | None:
        return self._sessions_by_job.get(job_id)

    def jobs_for_session(self, session_id: str) -> list[UUID]:
        return [
            job_id
            for job_id, owner in self._sessions_by_job.items()
            if owner == session_id
        ]

    def __len__(self) -> int:
        return len(self._sessions_by_job)
