"""Build/test run orchestration for the test explorer.

TestExplorer owns the live test tree and drives it from collaborator
events:

    READY --build_started--> BUILDING --build_finished--> READY
    READY --run_tests / tests_started--> TESTING --tests_finished--> READY

While TESTING, execution events are routed by dotted path to tree nodes,
rolled up through the tree, grouped by outcome and counted for progress.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from .enricher import ResultEnricher
from .events import Observable
from .groups import StateGroup, StateGroupIndex
from .models import (
    STATUS_BUILDING,
    STATUS_DONE,
    STATUS_EXECUTING,
    STATUS_GENERATING_COVERAGE,
    STATUS_INITIALIZING,
    STATUS_READY,
    RunnerState,
    RunSession,
    TestItem,
    TestItemKind,
    TestState,
)
from .ports import (
    EditorContextPort,
    ExplorerEventPort,
    TestProviderPort,
    TestRunnerPort,
)
from .sync import TreeSynchronizer
from .tree import TestTreeNode

logger = logging.getLogger(__name__)


class TestExplorer(ExplorerEventPort, Observable):
    """Implements the explorer's run state machine.

    This service orchestrates:
    - Synchronizing the tree after solution load and every build
    - Preparing and launching test runs for the selected node
    - Routing execution events to nodes and tracking progress
    - Attaching stored results when the result store updates

    All methods must be called on the owner event loop. Collaborators
    reach the event handlers through EventDispatcher.
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        editor: EditorContextPort,
        provider: TestProviderPort,
        runner: TestRunnerPort,
        enricher: ResultEnricher,
        auto_run_on_build: bool = False,
    ):
        Observable.__init__(self)
        self.editor = editor
        self.provider = provider
        self.runner = runner
        self.enricher = enricher
        self.state_groups = StateGroupIndex()
        self.session = RunSession()

        self._auto_run_on_build = auto_run_on_build
        self._runner_state = RunnerState.READY
        self._status_message = STATUS_READY
        self._progress = 0.0
        self._is_progress_indeterminate = False
        self._is_solution_loaded = False
        self._test_solution: TestTreeNode | None = None
        self._selected_node: TestTreeNode | None = None
        self._run_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Exposed state
    # ------------------------------------------------------------------

    @property
    def runner_state(self) -> RunnerState:
        return self._runner_state

    @property
    def is_busy(self) -> bool:
        return self._runner_state in {RunnerState.BUILDING, RunnerState.TESTING}

    @property
    def is_testing(self) -> bool:
        return self._runner_state == RunnerState.TESTING

    @property
    def status_message(self) -> str:
        return self._status_message

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def is_progress_indeterminate(self) -> bool:
        return self._is_progress_indeterminate

    @property
    def is_solution_loaded(self) -> bool:
        return self._is_solution_loaded

    @property
    def test_solution(self) -> TestTreeNode | None:
        return self._test_solution

    @property
    def selected_node(self) -> TestTreeNode | None:
        return self._selected_node

    @property
    def is_item_selected(self) -> bool:
        return self._selected_node is not None

    @property
    def auto_run_on_build(self) -> bool:
        return self._auto_run_on_build

    @auto_run_on_build.setter
    def auto_run_on_build(self, value: bool) -> None:
        self._set("auto_run_on_build", value)

    @property
    def can_build(self) -> bool:
        return not self.is_busy

    @property
    def can_run_tests(self) -> bool:
        return not self.is_busy and self._selected_node is not None

    def _set(self, name: str, value: Any, *derived: str) -> None:
        """Assign a private attribute and notify it plus derived names."""
        setattr(self, f"_{name}", value)
        self.notify(name)
        for derived_name in derived:
            self.notify(derived_name)

    def _set_runner_state(self, state: RunnerState) -> None:
        if state != self._runner_state:
            logger.info(
                f"Runner state {self._runner_state.name} -> {state.name}"
            )
        self._set(
            "runner_state",
            state,
            "is_busy",
            "is_testing",
            "can_build",
            "can_run_tests",
        )

    def _set_status(self, message: str) -> None:
        self._set("status_message", message)

    def _set_progress(self, progress: float, indeterminate: bool) -> None:
        self._set("progress", progress)
        self._set("is_progress_indeterminate", indeterminate)

    # ------------------------------------------------------------------
    # Commands (invoked by the UI layer)
    # ------------------------------------------------------------------

    def select(self, node: TestTreeNode | None) -> None:
        """Make node the target of the next test run."""
        self._set("selected_node", node, "is_item_selected", "can_run_tests")

    def select_state_group(self, group: StateGroup) -> None:
        """Toggle the exclusive selection of an outcome group."""
        self.state_groups.toggle_select(group)

    def expand_all(self) -> None:
        if self._test_solution is not None:
            self._test_solution.expand_all()

    def collapse_all(self) -> None:
        if self._test_solution is not None:
            self._test_solution.collapse_all()

    async def build(self) -> None:
        """Ask the editor to build the solution.

        Raises:
            RuntimeError: If a build or test run is already in progress.
        """
        if not self.can_build:
            raise RuntimeError(
                f"Cannot build while {self._runner_state.name.lower()}"
            )
        await self.editor.build_solution()

    async def run_tests(self) -> None:
        """Run the tests under the selected node.

        Prepares the tree for the run and launches the runner in the
        background. The run ends when tests_finished is signalled.

        Raises:
            RuntimeError: If busy or no node is selected.
        """
        if not self.can_run_tests:
            if self.is_busy:
                raise RuntimeError(
                    f"Cannot run tests while {self._runner_state.name.lower()}"
                )
            raise RuntimeError("Cannot run tests: no test item selected")

        node = self._selected_node
        assert node is not None
        await self._begin_run(node)
        self._run_task = asyncio.create_task(self._invoke_runner(node.item))

    async def navigate_to(self, node: TestTreeNode) -> bool:
        """Open the source of a class or method node in the editor.

        Returns:
            True if a navigation request was sent, False for node kinds
            that have no source location.
        """
        project = node.find_ancestor(TestItemKind.PROJECT)
        project_name = project.name if project is not None else ""

        if node.kind == TestItemKind.CLASS:
            await self.editor.navigate_to_class(project_name, node.item.full_name)
            return True

        if node.kind == TestItemKind.METHOD:
            declaring_class = node.find_ancestor(TestItemKind.CLASS)
            class_full_name = (
                declaring_class.item.full_name if declaring_class is not None else ""
            )
            await self.editor.navigate_to_method(
                project_name, class_full_name, node.name
            )
            return True

        return False

    # ------------------------------------------------------------------
    # Collaborator events (ExplorerEventPort)
    # ------------------------------------------------------------------

    async def solution_opened(self) -> None:
        await self._load_inventory()
        self._set("is_solution_loaded", True)

    async def solution_closing(self) -> None:
        logger.info("Solution closing, tearing down test tree")
        self._set("is_solution_loaded", False)
        self._set("test_solution", None)
        self.select(None)
        self.state_groups.clear()

    async def build_started(self) -> None:
        self._set_progress(self._progress, indeterminate=True)
        self._set_status(STATUS_BUILDING)
        self._set_runner_state(RunnerState.BUILDING)

    async def build_finished(self) -> None:
        self._set_progress(self._progress, indeterminate=False)
        self._set_status(STATUS_DONE)
        self._set_runner_state(RunnerState.READY)
        self._set("is_solution_loaded", True)

        await self._load_inventory()

        if self._auto_run_on_build and self.can_run_tests:
            logger.info("Running tests automatically after build")
            await self.run_tests()

    async def tests_started(self) -> None:
        if self._runner_state == RunnerState.TESTING:
            logger.debug("Test runner started")
            return

        if self._runner_state == RunnerState.BUILDING:
            logger.warning("Test run started during a build, ignoring")
            return

        if self._selected_node is None:
            logger.warning("Test run started with no test item selected, ignoring")
            return

        # Run launched outside the explorer: prepare the tree the same way
        await self._begin_run(self._selected_node)

    async def test_executed(self, path: str, outcome: TestState) -> None:
        if self._runner_state != RunnerState.TESTING:
            logger.debug(f"Ignoring execution event for {path!r} outside a run")
            return

        node = None
        if self._test_solution is not None:
            node = self._test_solution.find_by_path(path)

        if node is None:
            logger.debug(f"No test item matches execution path {path!r}")
            return

        node.state = outcome
        self.session.executed_count += 1
        self.state_groups.record_outcome(node)
        self._update_progress()

    async def test_log_added(self, text: str) -> None:
        await self.editor.write_to_log(text)

    async def tests_finished(self) -> None:
        self._set_progress(0.0, indeterminate=False)
        self._set_status(STATUS_DONE)
        self._set_runner_state(RunnerState.READY)

        summary = ", ".join(
            f"{group.count} {group.state.name.lower()}" for group in self.state_groups
        )
        logger.info(
            f"Test run finished: {self.session.executed_count} of "
            f"{self.session.total_leaves} executed ({summary or 'no outcomes'})"
        )

    async def results_updated(self) -> None:
        await self.enricher.enrich(self._test_solution)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load_inventory(self) -> None:
        """Fetch a fresh inventory and synchronize the tree with it."""
        inventory = await self.provider.get_test_solution(self.editor.solution)
        root = TreeSynchronizer.sync(self._test_solution, inventory)
        if root is not self._test_solution:
            self._set("test_solution", root)

        if self._selected_node is not None and not self._selected_node.is_attached_to(
            root
        ):
            logger.info("Selected test item no longer exists, clearing selection")
            self.select(None)

    async def _begin_run(self, node: TestTreeNode) -> None:
        """Reset counters, stale states and groups, then schedule node."""
        self.session = RunSession(
            total_leaves=node.item.test_count,
            executed_count=0,
            started_at=datetime.now(timezone.utc),
        )
        self.notify("session")
        self._set_progress(0.0, indeterminate=True)
        self._set_status(STATUS_INITIALIZING)
        self._set_runner_state(RunnerState.TESTING)

        if self._test_solution is not None:
            self._test_solution.reset_all()
        self.state_groups.clear()

        await self.editor.clear_log()
        await self.editor.activate_log()

        node.schedule_all()
        logger.info(
            f"Starting test run for {node.item.full_name!r} "
            f"({self.session.total_leaves} tests)"
        )

    async def _invoke_runner(self, item: TestItem) -> None:
        try:
            await self.runner.run_tests(item)
        except Exception as e:
            logger.error(f"Test runner failed for {item.full_name}: {e}", exc_info=True)

    def _update_progress(self) -> None:
        executed = self.session.executed_count
        total = self.session.total_leaves

        if executed < total:
            self._set_progress(self.session.progress_fraction, indeterminate=False)
            self._set_status(STATUS_EXECUTING.format(executed=executed, total=total))
        else:
            self._set_progress(self._progress, indeterminate=True)
            self._set_status(STATUS_GENERATING_COVERAGE)
