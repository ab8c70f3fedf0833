"""Fake TestRunnerPort implementation for testing."""

from arbor.core.models import TestItem
from arbor.core.ports import TestRunnerPort


class FakeTestRunner(TestRunnerPort):
    """Captures run requests without executing anything.

    Tests drive the run themselves by sending execution events.
    """

    def __init__(self) -> None:
        """Initialize with no recorded runs."""
        self.run_items: list[TestItem] = []
        self.should_fail: bool = False
        self.fail_message: str = "Runner crashed"

    async def run_tests(self, item: TestItem) -> None:
        """Record the run request."""
        self.run_items.append(item)

        if self.should_fail:
            raise RuntimeError(self.fail_message)

    @property
    def run_count(self) -> int:
        return len(self.run_items)
