"""Marshaling of collaborator events onto the owner event loop.

Collaborators (IDE hooks, test runners, result stores) may raise events
from any thread. The tree, run counters and runner state may only be
touched by the owner loop, so every event is queued here and handled by
a single consumer task, one handler at a time.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .models import TestState
from .ports import ExplorerEventPort

logger = logging.getLogger(__name__)

_Handler = Callable[..., Awaitable[None]]


class EventDispatcher:
    """Thread-safe facade that feeds ExplorerEventPort handlers in order.

    Every public event method may be called from any thread. Handlers run
    on the owner loop in submission order and never overlap.
    """

    def __init__(
        self,
        target: ExplorerEventPort,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        """Initialize dispatcher.

        Args:
            target: Handler implementation (usually TestExplorer).
            loop: Owner event loop. If None, the running loop is used
                when start() is called.
        """
        self.target = target
        self._loop = loop
        self._queue: asyncio.Queue[tuple[_Handler, tuple[Any, ...]]] | None = None
        self._task: asyncio.Task[None] | None = None
        self.handled_count = 0
        self.failed_count = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start consuming events on the current (owner) loop."""
        if self.running:
            logger.warning("Event dispatcher already running")
            return

        running_loop = asyncio.get_running_loop()
        if self._loop is None:
            self._loop = running_loop
        elif self._loop is not running_loop:
            raise RuntimeError("EventDispatcher must be started on its owner loop")

        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(self._consume())
        logger.debug("Event dispatcher started")

    async def stop(self) -> None:
        """Stop consuming; queued but unhandled events are discarded."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

        assert self._queue is not None
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
        # Late cross-thread posts land in the dropped queue
        self._queue = None
        logger.debug("Event dispatcher stopped")

    async def join(self) -> None:
        """Wait until every event submitted so far has been handled."""
        if self._queue is not None:
            # Let callbacks posted from other threads reach the queue first
            await asyncio.sleep(0)
            await self._queue.join()

    # ------------------------------------------------------------------
    # Events (callable from any thread)
    # ------------------------------------------------------------------

    def solution_opened(self) -> None:
        self._post(self.target.solution_opened)

    def solution_closing(self) -> None:
        self._post(self.target.solution_closing)

    def build_started(self) -> None:
        self._post(self.target.build_started)

    def build_finished(self) -> None:
        self._post(self.target.build_finished)

    def tests_started(self) -> None:
        self._post(self.target.tests_started)

    def test_executed(self, path: str, outcome: TestState) -> None:
        self._post(self.target.test_executed, path, outcome)

    def test_log_added(self, text: str) -> None:
        self._post(self.target.test_log_added, text)

    def tests_finished(self) -> None:
        self._post(self.target.tests_finished)

    def results_updated(self) -> None:
        self._post(self.target.results_updated)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _post(self, handler: _Handler, *args: Any) -> None:
        if not self.running or self._loop is None or self._queue is None:
            raise RuntimeError("EventDispatcher is not running")
        self._loop.call_soon_threadsafe(self._queue.put_nowait, (handler, args))

    async def _consume(self) -> None:
        queue = self._queue
        assert queue is not None
        while True:
            handler, args = await queue.get()
            try:
                await handler(*args)
                self.handled_count += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.failed_count += 1
                logger.error(
                    f"Error handling {handler.__name__} event: {e}", exc_info=True
                )
            finally:
                queue.task_done()
