"""
Tests for the polling wait primitive.
"""
import asyncio

import pytest

from tailwind_connect._wait import wait_for_condition


class TestWaitForCondition:

    @pytest.mark.asyncio
    async def test_true_immediately_does_not_sleep(self):
        with pytest.MonkeyPatch.context() as mp:
            sleeps = []

            async def fake_sleep(delay):
                sleeps.append(delay)

            mp.setattr(asyncio, "sleep", fake_sleep)
            assert await wait_for_condition(lambda: True, 0.1) == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_counts_checks(self):
        results = iter([False, False, True])
        assert await wait_for_condition(lambda: next(results), 0.001) == 3

    @pytest.mark.asyncio
    async def test_timeout(self):
        with pytest.raises(TimeoutError):
            await wait_for_condition(lambda: False, 0.005, timeout=0.02)

    @pytest.mark.asyncio
    async def test_zero_timeout_checks_once(self):
        checks = []

        def predicate():
            checks.append(1)
            return False

        with pytest.raises(TimeoutError):
            await wait_for_condition(predicate, 0.01, timeout=0)
        assert len(checks) == 1

    @pytest.mark.asyncio
    async def test_cancellation_stops_polling(self):
        checks = []

        def predicate():
            checks.append(1)
            return False

        task = asyncio.create_task(wait_for_condition(predicate, 0.005))
        await asyncio.sleep(0.02)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        seen = len(checks)
        await asyncio.sleep(0.02)
        assert len(checks) == seen

    @pytest.mark.asyncio
    @pytest.mark.parametrize("interval,timeout", [(0, None), (-1, None), (0.1, -1)])
    async def test_invalid_arguments(self, interval, timeout):
        with pytest.raises(ValueError):
            await wait_for_condition(lambda: True, interval, timeout)
