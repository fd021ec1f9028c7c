"""
Live-or-buffered delivery of job events.
"""

from collections import deque
from uuid import UUID

from jobstream.config.logging import get_logger
from jobstream.v1.notifications.connections import ConnectionTracker
from jobstream.v1.notifications.events import JobEvent, JobProgressNotifier

logger = get_logger(__name__)


class NotificationService:
    """
    Delivers job events live when a subscriber is connected and buffers them
    otherwise.

    Buffered events are replayed in order by ``flush`` once a subscriber
    joins. While a backlog exists, new events are appended to it instead of
    going live, so nothing overtakes what is already waiting. Delivery is
    best-effort: failures are logged and never reach the job.
    """

    def __init__(self, notifier: JobProgressNotifier, connections: ConnectionTracker):
        self.notifier = notifier
        self.connections = connections
        self._queues: dict[UUID, deque[JobEvent]] = {}
        # Jobs whose subscriber left; their final event has nowhere to go
        self._released: set[UUID] = set()

    async def notify(self, job_id: UUID, event: JobEvent) -> None:
        connected = self.connections.has_active_connection(job_id)
        if event.terminal and job_id in self._released and not connected:
            self._released.discard(job_id)
            dropped = self.clear(job_id)
            logger.info(
                "Dropped final notification for released job",
                job_id=str(job_id),
                event_name=event.name,
                dropped=dropped,
            )
            return

        if connected and job_id not in self._queues:
            await self._deliver(job_id, event, buffered=False)
            return

        self._queues.setdefault(job_id, deque()).append(event)
        logger.debug(
            "Notification queued",
            job_id=str(job_id),
            event_name=event.name,
            pending=len(self._queues[job_id]),
        )

    async def flush(self, job_id: UUID) -> int:
        """Deliver every buffered event for a job in order. Returns the count."""
        self._released.discard(job_id)
        queue = self._queues.get(job_id)
        if queue is None:
            logger.info("No queued notifications", job_id=str(job_id))
            return 0

        count = 0
        while queue:
            event = queue.popleft()
            if await self._deliver(job_id, event, buffered=True):
                count += 1

        if self._queues.get(job_id) is queue and not queue:
            del self._queues[job_id]

        logger.info("Flushed queued notifications", job_id=str(job_id), count=count)
        return count

    def clear(self, job_id: UUID) -> int:
        """Discard a job's backlog. Returns how many events were dropped."""
        queue = self._queues.pop(job_id, None)
        dropped = len(queue) if queue else 0
        if queue:
            queue.clear()

        logger.info("Cleared notification queue", job_id=str(job_id), dropped=dropped)
        return dropped

    def release(self, job_id: UUID) -> int:
        """
        Discard a job's backlog once its subscriber has gone.

        Later events keep buffering in case someone joins again, but the final
        event drops the job entirely instead of waiting for a reader that will
        not come. Returns how many events were dropped now.
        """
        self._released.add(job_id)
        return self.clear(job_id)

    def pending_count(self, job_id: UUID) -> int:
        queue = self._queues.get(job_id)
        return len(queue) if queue else 0

    def total_pending(self) -> int:
        return sum(len(queue) for queue in self._queues.values())

    async def _deliver(self, job_id: UUID, event: JobEvent, buffered: bool) -> bool:
        try:
            await event.deliver(self.notifier)
        except Exception:
            logger.exception(
                "Error sending notification",
                job_id=str(job_id),
                event_name=event.name,
                buffered=buffered,
            )
            return False
        return True
