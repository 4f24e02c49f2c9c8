"""
Rate Limiter Module
-------------------
Serializes calls to a rate-limited API: one task at a time, a minimum gap
between task starts, and exponential backoff when the API signals that the
rate limit was hit.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimitError(Exception):
    """Raised by a task when the remote API rejected it for exceeding its rate."""


@dataclass
class QueuedTask:
    """A deferred coroutine factory and the future its caller is awaiting."""
    factory: Callable[[], Awaitable[Any]]
    future: asyncio.Future


class RateLimitedTaskQueue:
    """
    Runs submitted tasks strictly one after another in submission order.

    Task N+1 starts only after task N has settled and at least
    ``1 / requests_per_second`` seconds after task N started. A task failing
    with one of ``retry_on`` is retried up to ``max_retries`` times, waiting
    ``initial_backoff * 2 ** retry_count`` seconds before each retry. Any other
    exception is delivered to the caller straight away.
    """

    def __init__(
        self,
        requests_per_second: float = 1.0,
        max_retries: int = 3,
        initial_backoff: float = 1.0,
        retry_on: tuple[type[BaseException], ...] = (RateLimitError,),
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the queue.

        Args:
            requests_per_second: Maximum task start rate
            max_retries: Retries allowed per task after the first attempt
            initial_backoff: Delay in seconds before the first retry
            retry_on: Exception types that count as a rate-limit signal
            sleep: Coroutine used for every wait (replaceable in tests)
        """
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        if max_retries < 0:
            raise ValueError("max_retries cannot be negative")

        self.interval = 1.0 / requests_per_second
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self.retry_on = retry_on
        self._sleep = sleep
        self._queue: deque[QueuedTask] = deque()
        self._draining = False
        self._drain_task: asyncio.Task | None = None
        self._last_start: float | None = None

    @property
    def pending(self) -> int:
        """Number of tasks waiting to start."""
        return len(self._queue)

    @property
    def is_draining(self) -> bool:
        return self._draining

    def submit(self, factory: Callable[[], Awaitable[T]]) -> "asyncio.Future[T]":
        """
        Queue a task and return the future that settles with its outcome.

        Args:
            factory: Zero-argument callable returning a fresh awaitable each
                time it is invoked (it is called again on every retry)

        Returns:
            Future resolved with the task result or its final exception
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._queue.append(QueuedTask(factory=factory, future=future))

        if not self._draining:
            self._draining = True
            self._drain_task = loop.create_task(self._drain())

        return future

    async def _drain(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            while self._queue:
                # spacing carries across idle periods
                if self._last_start is not None:
                    remaining = self.interval - (loop.time() - self._last_start)
                    if remaining > 0:
                        await self._sleep(remaining)

                task = self._queue.popleft()
                self._last_start = loop.time()
                await self._run(task)
        finally:
            self._draining = False

    async def _run(self, task: QueuedTask) -> None:
        retry_count = 0
        while True:
            try:
                result = await task.factory()
            except self.retry_on as e:
                if retry_count >= self.max_retries:
                    logger.error(f"Rate limit retries exhausted after {retry_count} retries: {e}")
                    self._settle(task, exception=e)
                    return
                delay = self.initial_backoff * 2 ** retry_count
                retry_count += 1
                logger.warning(
                    f"Rate limit hit, retry {retry_count}/{self.max_retries} in {delay:.2f}s"
                )
                await self._sleep(delay)
            except Exception as e:
                self._settle(task, exception=e)
                return
            else:
                self._settle(task, result=result)
                return

    @staticmethod
    def _settle(task: QueuedTask, result: Any = None, exception: BaseException | None = None) -> None:
        if task.future.done():
            return
        if exception is not None:
            task.future.set_exception(exception)
        else:
            task.future.set_result(result)
