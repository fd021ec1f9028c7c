"""
Real-time hub: maps transport sessions to job topics.

Each connected session owns an outbound message channel (``outbox``). The
WebSocket route pumps that channel to the socket; everything else only ever
puts messages on it, so the core never touches a socket directly.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from jobstream.config.logging import get_logger
from jobstream.v1.core.exceptions import DeliveryError
from jobstream.v1.jobs.store import JobStore
from jobstream.v1.notifications.connections import ConnectionTracker
from jobstream.v1.notifications.events import (
    JobCancelled,
    JobCompleted,
    JobEvent,
    JobFailed,
    JobStarted,
    ProgressUpdated,
    UnitDelivered,
)
from jobstream.v1.notifications.service import NotificationService

logger = get_logger(__name__)


@dataclass
class HubSession:
    """One connected client."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    outbox: asyncio.Queue = field(default_factory=asyncio.Queue)

    def send(self, message: dict[str, Any]) -> None:
        self.outbox.put_nowait(message)


class HubSessions:
    """Registry of connected sessions, shared by the hub and its notifier."""

    def __init__(self) -> None:
        self._sessions: dict[str, HubSession] = {}

    def open(self) -> HubSession:
        session = HubSession()
        self._sessions[session.id] = session
        return session

    def close(self, session_id: str) -> HubSession | None:
        return self._sessions.pop(session_id, None)

    def get(self, session_id: str) -> HubSession | None:
        return self._sessions.get(session_id)

    def __len__(self) -> int:
        return len(self._sessions)


class HubJobProgressNotifier:
    """Sends job events to whichever session is subscribed to the job."""

    def __init__(self, sessions: HubSessions, connections: ConnectionTracker):
        self.sessions = sessions
        self.connections = connections

    async def job_started(self, job_id: UUID) -> None:
        logger.info("Notifying job started", job_id=str(job_id))
        self._publish(JobStarted(job_id=job_id))

    async def unit_delivered(self, job_id: UUID, value: str) -> None:
        self._publish(UnitDelivered(job_id=job_id, value=value))

    async def progress_updated(self, job_id: UUID, percentage: float) -> None:
        self._publish(ProgressUpdated(job_id=job_id, percentage=percentage))

    async def job_completed(self, job_id: UUID, result: str) -> None:
        logger.info("Notifying job completed", job_id=str(job_id))
        self._publish(JobCompleted(job_id=job_id, result=result))

    async def job_cancelled(self, job_id: UUID) -> None:
        logger.info("Notifying job cancelled", job_id=str(job_id))
        self._publish(JobCancelled(job_id=job_id))

    async def job_failed(self, job_id: UUID, message: str) -> None:
        logger.error("Notifying job failed", job_id=str(job_id), error=message)
        self._publish(JobFailed(job_id=job_id, message=message))

    def _publish(self, event: JobEvent) -> None:
        self._session_for(event.job_id).send(event.to_message())

    def _session_for(self, job_id: UUID) -> HubSession:
        session_id = self.connections.get_session(job_id)
        session = self.sessions.get(session_id) if session_id else None
        if session is None:
            raise DeliveryError(
                f"No connected session for job {job_id}",
                details={"job_id": str(job_id), "session_id": session_id},
            )
        return session


class JobProgressHub:
    """
    Handles client actions on the hub.

    Clients send ``{"action": "join" | "leave", "job_id": "<uuid>"}``. Joining
    replays anything buffered for the job. Leaving or disconnecting cancels the
    job (when configured) and throws away its backlog, so a client that comes
    back must start fresh.
    """

    def __init__(
        self,
        sessions: HubSessions,
        connections: ConnectionTracker,
        notifications: NotificationService,
        store: JobStore,
        cancel_on_disconnect: bool = True,
    ):
        self.sessions = sessions
        self.connections = connections
        self.notifications = notifications
        self.store = store
        self.cancel_on_disconnect = cancel_on_disconnect

    def connect(self) -> HubSession:
        session = self.sessions.open()
        logger.info("Client connected", session_id=session.id)
        return session

    async def join(self, session_id: str, job_id: UUID) -> int:
        self.connections.add(job_id, session_id)
        logger.info("Client joined job", session_id=session_id, job_id=str(job_id))

        return await self.notifications.flush(job_id)

    async def leave(self, session_id: str, job_id: UUID) -> None:
        logger.info("Client left job", session_id=session_id, job_id=str(job_id))
        if self.connections.get_session(job_id) != session_id:
            # Another session took over the topic; it keeps the job alive.
            return
        self._release(job_id)

    async def disconnect(self, session_id: str) -> None:
        logger.info("Client disconnected", session_id=session_id)
        for job_id in self.connections.jobs_for_session(session_id):
            self._release(job_id)
        self.sessions.close(session_id)

    async def handle_message(self, session: HubSession, message: Any) -> None:
        """Dispatch one client message, replying with an error when malformed."""
        if not isinstance(message, dict):
            session.send(_error_message("Message must be a JSON object"))
            return

        action = message.get("action")
        try:
            job_id = UUID(str(message.get("job_id")))
        except ValueError:
            session.send(_error_message("job_id must be a UUID", action=action))
            return

        if action == "join":
            await self.join(session.id, job_id)
        elif action == "leave":
            await self.leave(session.id, job_id)
        else:
            session.send(_error_message(f"Unknown action: {action}", action=action))

    def _release(self, job_id: UUID) -> None:
        job = self.store.get_job(job_id)
        # Only a job that has not finished will still emit a final event
        unfinished = job is not None and not job.is_terminal()
        if self.cancel_on_disconnect:
            self.store.cancel_job(job_id)
        if unfinished:
            self.notifications.release(job_id)
        else:
            self.notifications.clear(job_id)
        self.connections.remove(job_id)


def _error_message(message: str, **details: Any) -> dict[str, Any]:
    return {"event": "Error", "data": {"message": message, **details}}
