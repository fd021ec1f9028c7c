import asyncio
import time
import uuid

import pytest

from jobstream.v1.core.exceptions import CancellationRegistryError
from jobstream.v1.jobs.cancellation import (
    CancellationHandle,
    CancellationRegistry,
    OperationCancelled,
)


class TestCancellationHandle:
    def test_cancel_sets_flag(self):
        handle = CancellationHandle()
        assert not handle.is_cancelled

        handle.cancel()
        handle.cancel()

        assert handle.is_cancelled
        with pytest.raises(OperationCancelled):
            handle.raise_if_cancelled()

    def test_parent_cancels_children(self):
        parent = CancellationHandle()
        first = parent.link()
        second = parent.link()

        parent.cancel()

        assert first.is_cancelled
        assert second.is_cancelled

    def test_child_does_not_cancel_parent_or_siblings(self):
        parent = CancellationHandle()
        first = parent.link()
        second = parent.link()

        first.cancel()

        assert not parent.is_cancelled
        assert not second.is_cancelled

    def test_link_to_cancelled_parent_starts_cancelled(self):
        parent = CancellationHandle()
        parent.cancel()

        assert parent.link().is_cancelled

    def test_disposed_child_is_detached(self):
        parent = CancellationHandle()
        child = parent.link()

        child.dispose()
        child.dispose()
        parent.cancel()

        assert child.is_disposed
        assert not child.is_cancelled

    async def test_sleep_completes_without_cancel(self):
        handle = CancellationHandle()

        await handle.sleep(0.01)

        assert not handle.is_cancelled

    async def test_sleep_interrupted_by_cancel(self):
        handle = CancellationHandle()
        asyncio.get_running_loop().call_later(0.01, handle.cancel)

        started = time.monotonic()
        with pytest.raises(OperationCancelled):
            await handle.sleep(5)

        assert time.monotonic() - started < 1

    async def test_sleep_interrupted_by_parent(self):
        parent = CancellationHandle()
        child = parent.link()
        asyncio.get_running_loop().call_later(0.01, parent.cancel)

        with pytest.raises(OperationCancelled):
            await child.sleep(5)

    async def test_sleep_on_cancelled_handle_raises_immediately(self):
        handle = CancellationHandle()
        handle.cancel()

        with pytest.raises(OperationCancelled):
            await handle.sleep(0)


class TestCancellationRegistry:
    def test_register_and_cancel(self):
        registry = CancellationRegistry()
        job_id = uuid.uuid4()
        handle = CancellationHandle()

        registry.register(job_id, handle)

        assert registry.is_registered(job_id)
        assert len(registry) == 1
        assert registry.cancel(job_id) is True
        assert handle.is_cancelled

    def test_cancel_unknown_job(self):
        registry = CancellationRegistry()

        assert registry.cancel(uuid.uuid4()) is False

    def test_double_register_rejected(self):
        registry = CancellationRegistry()
        job_id = uuid.uuid4()
        first = CancellationHandle()
        registry.register(job_id, first)

        with pytest.raises(CancellationRegistryError):
            registry.register(job_id, CancellationHandle())

        registry.cancel(job_id)
        assert first.is_cancelled

    def test_unregister_disposes_handle(self):
        registry = CancellationRegistry()
        job_id = uuid.uuid4()
        parent = CancellationHandle()
        handle = parent.link()
        registry.register(job_id, handle)

        registry.unregister(job_id)
        registry.unregister(job_id)

        assert not registry.is_registered(job_id)
        assert handle.is_disposed
        assert len(registry) == 0
        assert registry.cancel(job_id) is False

    def test_register_after_unregister(self):
        registry = CancellationRegistry()
        job_id = uuid.uuid4()
        registry.register(job_id, CancellationHandle())
        registry.unregister(job_id)

        registry.register(job_id, CancellationHandle())

        assert registry.is_registered(job_id)
