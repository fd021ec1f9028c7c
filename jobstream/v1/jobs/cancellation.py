"""
Cooperative cancellation for in-flight jobs.

A ``CancellationHandle`` is a one-shot signal. Handles form a tree: cancelling
a parent cancels every linked child, which is how a process shutdown reaches
all running jobs. Work checks the handle between steps and waits on it during
delays; nothing is interrupted preemptively.
"""

import asyncio
from uuid import UUID

from jobstream.config.logging import get_logger
from jobstream.v1.core.exceptions import CancellationRegistryError

logger = get_logger(__name__)


class OperationCancelled(Exception):
    """Raised at a cancellation check once the handle has been signalled."""


class CancellationHandle:
    """One-shot cancellation signal, optionally linked to a parent."""

    def __init__(self, parent: "CancellationHandle | None" = None):
        self._event = asyncio.Event()
        self._parent = parent
        self._children: set[CancellationHandle] = set()
        self._disposed = False
        if parent is not None:
            parent._attach(self)

    def link(self) -> "CancellationHandle":
        """Create a child handle cancelled whenever this one is."""
        return CancellationHandle(parent=self)

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def cancel(self) -> None:
        if self._event.is_set():
            return
        self._event.set()
        for child in list(self._children):
            child.cancel()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled()

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless cancelled first, then raise."""
        self.raise_if_cancelled()
        if seconds <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except TimeoutError:
            return
        raise OperationCancelled()

    def dispose(self) -> None:
        """Detach from the parent so it stops tracking this handle."""
        if self._disposed:
            return
        self._disposed = True
        if self._parent is not None:
            self._parent._detach(self)
            self._parent = None

    def _attach(self, child: "CancellationHandle") -> None:
        self._children.add(child)
        if self._event.is_set():
            child.cancel()

    def _detach(self, child: "CancellationHandle") -> None:
        self._children.discard(child)


class CancellationRegistry:
    """Maps job ids to the handle of the task currently processing them."""

    def __init__(self) -> None:
        self._handles: dict[UUID, CancellationHandle] = {}

    def register(self, job_id: UUID, handle: CancellationHandle) -> None:
        """
        Register the handle for a job about to be processed.

        A second registration while one is active is rejected rather than
        replacing the first, which would leak it.
        """
        if job_id in self._handles:
            raise CancellationRegistryError(
                f"Cancellation handle already registered for job {job_id}",
                details={"job_id": str(job_id)},
            )
        self._handles[job_id] = handle

    def unregister(self, job_id: UUID) -> None:
        """Remove and dispose the handle for a job, if any."""
        handle = self._handles.pop(job_id, None)
        if handle is not None:
            handle.dispose()

    def cancel(self, job_id: UUID) -> bool:
        """Signal the job's handle. Returns False when none is registered."""
        handle = self._handles.get(job_id)
        if handle is None:
            return False

        logger.info("Signalling cancellation", job_id=str(job_id))
        handle.cancel()
        return True

    def is_registered(self, job_id: UUID) -> bool:
        return job_id in self._handles

    def __len__(self) -> int:
        return len(self._handles)
