"""Tests for the rate-limited task queue."""

import asyncio
from unittest.mock import AsyncMock, call

import pytest

from modules.rate_limiter import RateLimitedTaskQueue, RateLimitError


class FlakyTask:
    """Fails with the given error a number of times, then returns a value."""

    def __init__(self, failures: int, error: Exception, value="ok"):
        self.failures = failures
        self.error = error
        self.value = value
        self.attempts = 0

    async def __call__(self):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise self.error
        return self.value


class TestOrdering:
    async def test_runs_tasks_one_at_a_time_in_submission_order(self):
        queue = RateLimitedTaskQueue(requests_per_second=1000)
        active = 0
        max_active = 0
        order = []

        def make(i):
            async def task():
                nonlocal active, max_active
                active += 1
                max_active = max(max_active, active)
                order.append(i)
                await asyncio.sleep(0.001)
                active -= 1
                return i * 10
            return task

        results = await asyncio.gather(*[queue.submit(make(i)) for i in range(5)])

        assert results == [0, 10, 20, 30, 40]
        assert order == [0, 1, 2, 3, 4]
        assert max_active == 1

    async def test_task_starts_are_spaced_by_the_rate(self):
        rate = 50
        queue = RateLimitedTaskQueue(requests_per_second=rate)
        loop = asyncio.get_running_loop()
        starts = []

        async def task():
            starts.append(loop.time())

        await asyncio.gather(*[queue.submit(task) for _ in range(4)])

        interval = 1 / rate
        for n, started in enumerate(starts):
            # small allowance for event-loop clock resolution
            assert started - starts[0] >= n * interval - 0.002

    async def test_waits_only_for_the_rest_of_the_interval(self):
        sleep = AsyncMock()
        queue = RateLimitedTaskQueue(requests_per_second=2, sleep=sleep)

        async def task():
            return None

        await asyncio.gather(queue.submit(task), queue.submit(task))

        assert sleep.await_count == 1
        (waited,), _ = sleep.await_args
        assert 0.4 < waited <= 0.5

    async def test_first_task_starts_immediately(self):
        sleep = AsyncMock()
        queue = RateLimitedTaskQueue(requests_per_second=1, sleep=sleep)

        result = await queue.submit(FlakyTask(0, RateLimitError()))

        assert result == "ok"
        sleep.assert_not_awaited()

    async def test_spacing_holds_after_queue_goes_idle(self):
        sleep = AsyncMock()
        queue = RateLimitedTaskQueue(requests_per_second=1, sleep=sleep)

        assert await queue.submit(FlakyTask(0, RateLimitError(), value=1)) == 1
        await asyncio.sleep(0)
        assert not queue.is_draining

        assert await queue.submit(FlakyTask(0, RateLimitError(), value=2)) == 2

        assert sleep.await_count == 1
        (waited,), _ = sleep.await_args
        assert 0.9 < waited <= 1.0

    async def test_sequential_submissions_are_spaced_by_the_rate(self):
        rate = 5
        queue = RateLimitedTaskQueue(requests_per_second=rate)
        loop = asyncio.get_running_loop()
        starts = []

        async def task():
            starts.append(loop.time())

        for _ in range(3):
            await queue.submit(task)

        gaps = [later - earlier for earlier, later in zip(starts, starts[1:])]
        assert len(gaps) == 2
        for gap in gaps:
            # small allowance for event-loop clock resolution
            assert gap >= 1 / rate - 0.002

    async def test_no_wait_once_interval_has_passed(self):
        sleep = AsyncMock()
        queue = RateLimitedTaskQueue(requests_per_second=100, sleep=sleep)

        await queue.submit(FlakyTask(0, RateLimitError()))
        await asyncio.sleep(0.05)
        await queue.submit(FlakyTask(0, RateLimitError()))

        sleep.assert_not_awaited()


class TestDraining:
    async def test_submission_during_drain_joins_active_loop(self):
        queue = RateLimitedTaskQueue(requests_per_second=1000)
        release = asyncio.Event()

        async def blocking():
            await release.wait()
            return "first"

        first = queue.submit(blocking)
        await asyncio.sleep(0)
        assert queue.is_draining

        second = queue.submit(FlakyTask(0, RateLimitError(), value="second"))
        assert queue.pending == 1

        release.set()
        assert await first == "first"
        assert await second == "second"

        await asyncio.sleep(0)
        assert not queue.is_draining
        assert queue.pending == 0

    async def test_restarts_after_going_idle(self):
        queue = RateLimitedTaskQueue(requests_per_second=1000)

        assert await queue.submit(FlakyTask(0, RateLimitError(), value=1)) == 1
        await asyncio.sleep(0)
        assert not queue.is_draining

        assert await queue.submit(FlakyTask(0, RateLimitError(), value=2)) == 2

    async def test_failure_does_not_stop_later_tasks(self):
        queue = RateLimitedTaskQueue(requests_per_second=1000, max_retries=0)

        failing = queue.submit(FlakyTask(1, ValueError("boom")))
        passing = queue.submit(FlakyTask(0, ValueError("unused"), value="fine"))

        results = await asyncio.gather(failing, passing, return_exceptions=True)

        assert isinstance(results[0], ValueError)
        assert results[1] == "fine"


class TestRetries:
    async def test_retries_rate_limited_task_with_doubling_backoff(self):
        sleep = AsyncMock()
        queue = RateLimitedTaskQueue(
            requests_per_second=1000, max_retries=3, initial_backoff=0.5, sleep=sleep
        )
        task = FlakyTask(2, RateLimitError("429"))

        assert await queue.submit(task) == "ok"

        assert task.attempts == 3
        assert sleep.await_args_list == [call(0.5), call(1.0)]

    async def test_gives_up_after_max_retries(self):
        sleep = AsyncMock()
        queue = RateLimitedTaskQueue(
            requests_per_second=1000, max_retries=3, initial_backoff=0.5, sleep=sleep
        )
        task = FlakyTask(100, RateLimitError("429"))

        with pytest.raises(RateLimitError):
            await queue.submit(task)

        assert task.attempts == 4
        assert sleep.await_args_list == [call(0.5), call(1.0), call(2.0)]

    async def test_zero_retries_fails_on_first_rate_limit(self):
        sleep = AsyncMock()
        queue = RateLimitedTaskQueue(requests_per_second=1000, max_retries=0, sleep=sleep)
        task = FlakyTask(1, RateLimitError("429"))

        with pytest.raises(RateLimitError):
            await queue.submit(task)

        assert task.attempts == 1
        sleep.assert_not_awaited()

    async def test_other_errors_are_not_retried(self):
        sleep = AsyncMock()
        queue = RateLimitedTaskQueue(requests_per_second=1000, max_retries=3, sleep=sleep)
        task = FlakyTask(1, ConnectionError("down"))

        with pytest.raises(ConnectionError):
            await queue.submit(task)

        assert task.attempts == 1
        sleep.assert_not_awaited()

    async def test_custom_retry_exceptions(self):
        sleep = AsyncMock()
        queue = RateLimitedTaskQueue(
            requests_per_second=1000, max_retries=1, initial_backoff=0.5,
            retry_on=(TimeoutError,), sleep=sleep,
        )
        task = FlakyTask(1, TimeoutError())

        assert await queue.submit(task) == "ok"
        assert task.attempts == 2


class TestConfiguration:
    def test_rejects_non_positive_rate(self):
        with pytest.raises(ValueError):
            RateLimitedTaskQueue(requests_per_second=0)

    def test_rejects_negative_retries(self):
        with pytest.raises(ValueError):
            RateLimitedTaskQueue(max_retries=-1)

    def test_interval_from_rate(self):
        assert RateLimitedTaskQueue(requests_per_second=4).interval == 0.25
