"""Unit tests for PeriodicTask."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from moms_kitchen_client.services.scheduler import PeriodicTask


@pytest.mark.unit
class TestPeriodicTask:
    """Test suite for PeriodicTask."""

    def test_rejects_non_positive_interval(self) -> None:
        """Test the interval must be positive."""
        with pytest.raises(ValueError):
            PeriodicTask(MagicMock(), interval_seconds=0)

    def test_start_requires_running_loop(self) -> None:
        """Test starting outside an event loop fails."""
        task = PeriodicTask(MagicMock(), interval_seconds=1)

        with pytest.raises(RuntimeError):
            task.start()

    @pytest.mark.asyncio
    async def test_ticks_immediately_then_on_interval(self) -> None:
        """Test the callback runs at start and then repeatedly."""
        callback = MagicMock()
        task = PeriodicTask(callback, interval_seconds=0.01)

        task.start()
        await asyncio.sleep(0.05)
        await task.wait_stopped()

        assert callback.call_count >= 2

    @pytest.mark.asyncio
    async def test_async_callback_is_awaited(self) -> None:
        """Test coroutine callbacks are awaited."""
        callback = AsyncMock()

        async with PeriodicTask(callback, interval_seconds=10):
            await asyncio.sleep(0)

        callback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stop_halts_ticking(self) -> None:
        """Test no ticks happen after stop."""
        callback = MagicMock()
        task = PeriodicTask(callback, interval_seconds=0.01)
        task.start()
        await asyncio.sleep(0.02)

        await task.wait_stopped()
        calls = callback.call_count
        await asyncio.sleep(0.03)

        assert task.is_running is False
        assert callback.call_count == calls

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_ticking(self) -> None:
        """Test an exception in one tick does not end the loop."""
        calls: list[int] = []

        def flaky() -> None:
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")

        callback = MagicMock(side_effect=flaky)
        task = PeriodicTask(callback, interval_seconds=0.01)

        task.start()
        await asyncio.sleep(0.05)

        assert task.is_running is True
        await task.wait_stopped()
        assert callback.call_count >= 2

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self) -> None:
        """Test starting a running task does not spawn a second loop."""
        callback = MagicMock()
        task = PeriodicTask(callback, interval_seconds=10)

        task.start()
        task.start()
        await asyncio.sleep(0)
        await task.wait_stopped()

        callback.assert_called_once()

    def test_stop_when_never_started(self) -> None:
        """Test stop is safe on a stopped task."""
        task = PeriodicTask(MagicMock(), interval_seconds=1)

        task.stop()

        assert task.is_running is False
