"""Port interfaces for the Arbor test explorer.

These abstract base classes define the boundaries between core
domain logic and external collaborators. Implementations live in the
adapters/ package (or in the host IDE integration).

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - EditorContextPort: Build, navigate, and write the test log
   - TestProviderPort: Discover the test inventory
   - TestRunnerPort: Execute tests
   - ResultProviderPort: Look up previously stored results

2. **Driving Ports** (adapters/external systems call into core)
   - ExplorerEventPort: Collaborator lifecycle events
"""

from abc import ABC, abstractmethod
from typing import Any

from .models import TestItem, TestResult, TestState


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class EditorContextPort(ABC):
    """Port for the host editor or IDE.

    The editor owns the solution, performs builds, navigates to source
    and hosts the test output log. Build progress is reported back to
    the core through ExplorerEventPort.build_started/build_finished.
    """

    @property
    @abstractmethod
    def solution(self) -> Any:
        """Opaque handle of the currently open solution, passed to the provider."""

    @abstractmethod
    async def build_solution(self) -> None:
        """Start a build of the open solution.

        Returns once the build has been requested; completion is
        signalled separately.
        """

    @abstractmethod
    async def navigate_to_class(self, project: str, full_name: str) -> None:
        """Open the source of a test class.

        Args:
            project: Name of the project containing the class.
            full_name: Fully qualified class name.
        """

    @abstractmethod
    async def navigate_to_method(
        self, project: str, class_full_name: str, method_name: str
    ) -> None:
        """Open the source of a test method.

        Args:
            project: Name of the project containing the method.
            class_full_name: Fully qualified name of the declaring class.
            method_name: Short name of the method.
        """

    @abstractmethod
    async def clear_log(self) -> None:
        """Empty the test output log."""

    @abstractmethod
    async def write_to_log(self, text: str) -> None:
        """Append text to the test output log."""

    @abstractmethod
    async def activate_log(self) -> None:
        """Bring the test output log into view."""


class TestProviderPort(ABC):
    """Port for discovering the test inventory of a solution."""

    __test__ = False  # not a pytest test class

    @abstractmethod
    async def get_test_solution(self, solution: Any) -> TestItem | None:
        """Discover every test in the solution.

        Args:
            solution: Solution handle from EditorContextPort.solution.

        Returns:
            Root TestItem of kind SOLUTION, or None if nothing could be
            discovered. Items that did not change since the previous call
            should be returned as the same objects.

        Raises:
            Exception: If discovery fails. The core does not retry.
        """


class TestRunnerPort(ABC):
    """Port for executing tests.

    Progress is reported back through ExplorerEventPort.tests_started,
    test_executed, test_log_added and tests_finished.
    """

    __test__ = False

    @abstractmethod
    async def run_tests(self, item: TestItem) -> None:
        """Run every test under item.

        Fire-and-forget from the core's perspective; the run only ends
        when tests_finished is signalled. Runs cannot be cancelled.
        """


class ResultProviderPort(ABC):
    """Port for looking up stored results of earlier runs.

    Implementations must be safe to call concurrently from worker
    threads: the core resolves results for many methods in parallel.
    """

    @abstractmethod
    def get_test_result(self, item: TestItem) -> TestResult | None:
        """Return the latest stored result for a test method.

        Returns:
            The stored TestResult, or None if no result exists.

        Raises:
            Exception: If the result store is unavailable.
        """


# ============================================================================
# DRIVING PORTS (Adapters/external systems call into core)
# ============================================================================


class ExplorerEventPort(ABC):
    """Port for collaborator lifecycle events.

    Implemented by the core's TestExplorer. Handlers mutate the tree and
    must only run on the owner event loop; adapters deliver events
    through EventDispatcher, which marshals them onto that loop.
    """

    @abstractmethod
    async def solution_opened(self) -> None:
        """A solution was opened in the editor."""

    @abstractmethod
    async def solution_closing(self) -> None:
        """The open solution is about to close."""

    @abstractmethod
    async def build_started(self) -> None:
        """A build of the solution started."""

    @abstractmethod
    async def build_finished(self) -> None:
        """The build finished (successfully or not)."""

    @abstractmethod
    async def tests_started(self) -> None:
        """The test runner started executing tests."""

    @abstractmethod
    async def test_executed(self, path: str, outcome: TestState) -> None:
        """A test item finished with the given outcome.

        Args:
            path: Dotted path of the item, e.g. "ProjectA.ClassB.MethodC".
            outcome: Outcome reported by the runner.
        """

    @abstractmethod
    async def test_log_added(self, text: str) -> None:
        """The test runner produced log output."""

    @abstractmethod
    async def tests_finished(self) -> None:
        """The test run ended."""

    @abstractmethod
    async def results_updated(self) -> None:
        """The result store has new results available."""
