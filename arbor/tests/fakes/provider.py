"""Fake TestProviderPort implementation for testing."""

from typing import Any

from arbor.core.models import TestItem
from arbor.core.ports import TestProviderPort


class FakeTestProvider(TestProviderPort):
    """Returns a configurable inventory snapshot.

    Tests replace `inventory` between calls to simulate rebuilds.
    """

    def __init__(self, inventory: TestItem | None = None):
        """Initialize with an optional inventory."""
        self.inventory = inventory
        self.requested_solutions: list[Any] = []
        self.should_fail: bool = False
        self.fail_message: str = "Discovery failed"

    async def get_test_solution(self, solution: Any) -> TestItem | None:
        """Return the configured inventory."""
        self.requested_solutions.append(solution)

        if self.should_fail:
            raise RuntimeError(self.fail_message)

        return self.inventory

    @property
    def call_count(self) -> int:
        return len(self.requested_solutions)
