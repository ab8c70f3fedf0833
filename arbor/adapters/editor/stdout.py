"""Stdout editor adapter.

Implements EditorContextPort for headless use: the test log goes to the
terminal and navigation requests are only logged. There is no compiler
behind build_solution; it reports an immediate build start/finish so the
explorer re-discovers the inventory.
"""

import asyncio
import logging
from typing import Any

from arbor.core.dispatcher import EventDispatcher
from arbor.core.ports import EditorContextPort

logger = logging.getLogger(__name__)


class StdoutEditorAdapter(EditorContextPort):
    """Headless editor context that prints the test log to stdout."""

    def __init__(
        self,
        solution: Any = None,
        events: EventDispatcher | None = None,
        verbose: bool = False,
    ):
        """Initialize stdout editor adapter.

        Args:
            solution: Solution handle passed to the test provider
                (e.g. a path to the project root).
            events: Dispatcher used to report build progress (can be set
                later, once the explorer is wired).
            verbose: If True, print a banner when the log is cleared.
        """
        self._solution = solution
        self.events = events
        self.verbose = verbose

    @property
    def solution(self) -> Any:
        return self._solution

    async def build_solution(self) -> None:
        """Report an immediate build start and finish."""
        if self.events is None:
            raise ValueError("events must be set before building")

        logger.info(f"Build requested for {self._solution!r}")
        self.events.build_started()
        self.events.build_finished()

    async def navigate_to_class(self, project: str, full_name: str) -> None:
        logger.info(f"Navigate to class {full_name} in project {project}")

    async def navigate_to_method(
        self, project: str, class_full_name: str, method_name: str
    ) -> None:
        logger.info(
            f"Navigate to method {class_full_name}.{method_name} in project {project}"
        )

    async def clear_log(self) -> None:
        if self.verbose:
            await asyncio.to_thread(print, self._format_banner())

    async def write_to_log(self, text: str) -> None:
        await asyncio.to_thread(print, text.rstrip("\n"))

    async def activate_log(self) -> None:
        logger.debug("Test log activated")

    def _format_banner(self) -> str:
        """Format the separator printed when a new run starts."""
        lines = [
            "=" * 80,
            "TEST OUTPUT",
            "=" * 80,
        ]
        return "\n".join(lines)
