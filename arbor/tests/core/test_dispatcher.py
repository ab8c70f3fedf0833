"""Tests for EventDispatcher marshaling of collaborator events."""

import asyncio
import threading

import pytest

from arbor.core.dispatcher import EventDispatcher
from arbor.core.enricher import ResultEnricher
from arbor.core.explorer import TestExplorer
from arbor.core.models import RunnerState, TestState
from arbor.core.ports import ExplorerEventPort
from arbor.tests.fakes import (
    FakeEditorContext,
    FakeResultProvider,
    FakeTestProvider,
    FakeTestRunner,
    make_class,
    make_project,
    make_solution,
)


class RecordingExplorer(ExplorerEventPort):
    """Event handler that records calls, threads and overlap."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []
        self.thread_ids: set[int] = set()
        self.fail_on: set[str] = set()
        self.active = 0
        self.max_active = 0

    async def _record(self, name: str, *args) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            self.thread_ids.add(threading.get_ident())
            # Yield so overlapping handlers would be observable
            await asyncio.sleep(0)
            self.calls.append((name, args))
            if name in self.fail_on:
                raise RuntimeError(f"{name} handler failed")
        finally:
            self.active -= 1

    async def solution_opened(self) -> None:
        await self._record("solution_opened")

    async def solution_closing(self) -> None:
        await self._record("solution_closing")

    async def build_started(self) -> None:
        await self._record("build_started")

    async def build_finished(self) -> None:
        await self._record("build_finished")

    async def tests_started(self) -> None:
        await self._record("tests_started")

    async def test_executed(self, path: str, outcome: TestState) -> None:
        await self._record("test_executed", path, outcome)

    async def test_log_added(self, text: str) -> None:
        await self._record("test_log_added", text)

    async def tests_finished(self) -> None:
        await self._record("tests_finished")

    async def results_updated(self) -> None:
        await self._record("results_updated")


def _post_from_thread(produce) -> None:
    thread = threading.Thread(target=produce, name="collaborator")
    thread.start()
    thread.join()


@pytest.mark.asyncio
async def test_foreign_thread_events_run_on_loop_in_order() -> None:
    target = RecordingExplorer()
    dispatcher = EventDispatcher(target)
    await dispatcher.start()
    try:

        def produce() -> None:
            dispatcher.tests_started()
            for i in range(5):
                dispatcher.test_executed(f"ProjectA.ClassB.M{i}", TestState.PASSED)
            dispatcher.test_log_added("done")
            dispatcher.tests_finished()

        _post_from_thread(produce)
        await dispatcher.join()
    finally:
        await dispatcher.stop()

    assert [name for name, _ in target.calls] == [
        "tests_started",
        *["test_executed"] * 5,
        "test_log_added",
        "tests_finished",
    ]
    assert [args[0] for name, args in target.calls if name == "test_executed"] == [
        f"ProjectA.ClassB.M{i}" for i in range(5)
    ]
    assert target.thread_ids == {threading.get_ident()}
    assert target.max_active == 1
    assert dispatcher.handled_count == 8
    assert dispatcher.failed_count == 0


@pytest.mark.asyncio
async def test_handler_failure_does_not_stop_consumer() -> None:
    target = RecordingExplorer()
    target.fail_on.add("build_started")
    dispatcher = EventDispatcher(target)
    await dispatcher.start()
    try:
        dispatcher.build_started()
        dispatcher.build_finished()
        dispatcher.results_updated()
        await dispatcher.join()

        assert dispatcher.running is True
    finally:
        await dispatcher.stop()

    assert [name for name, _ in target.calls] == [
        "build_started",
        "build_finished",
        "results_updated",
    ]
    assert dispatcher.failed_count == 1
    assert dispatcher.handled_count == 2


@pytest.mark.asyncio
async def test_post_before_start_raises() -> None:
    dispatcher = EventDispatcher(RecordingExplorer())

    with pytest.raises(RuntimeError, match="not running"):
        dispatcher.solution_opened()


@pytest.mark.asyncio
async def test_start_and_stop() -> None:
    dispatcher = EventDispatcher(RecordingExplorer())
    await dispatcher.stop()  # never started
    assert dispatcher.running is False

    await dispatcher.start()
    await dispatcher.start()  # already running
    assert dispatcher.running is True

    await dispatcher.stop()
    assert dispatcher.running is False


@pytest.mark.asyncio
async def test_post_after_stop_raises() -> None:
    target = RecordingExplorer()
    dispatcher = EventDispatcher(target)
    await dispatcher.start()
    await dispatcher.stop()

    with pytest.raises(RuntimeError, match="not running"):
        dispatcher.build_started()

    await asyncio.wait_for(dispatcher.join(), timeout=1.0)
    assert target.calls == []


@pytest.mark.asyncio
async def test_restart_after_stop() -> None:
    target = RecordingExplorer()
    dispatcher = EventDispatcher(target)
    await dispatcher.start()
    await dispatcher.stop()

    await dispatcher.start()
    try:
        dispatcher.results_updated()
        await dispatcher.join()
    finally:
        await dispatcher.stop()

    assert [name for name, _ in target.calls] == ["results_updated"]


@pytest.mark.asyncio
async def test_start_on_foreign_loop_raises() -> None:
    other_loop = asyncio.new_event_loop()
    try:
        dispatcher = EventDispatcher(RecordingExplorer(), loop=other_loop)
        with pytest.raises(RuntimeError, match="owner loop"):
            await dispatcher.start()
    finally:
        other_loop.close()


@pytest.mark.asyncio
async def test_drives_explorer_from_collaborator_thread() -> None:
    inventory = make_solution(
        make_project(
            "ProjectA",
            make_class("ProjectA.ClassB", "MethodC", "MethodD"),
            make_class("ProjectA.ClassE", "MethodF"),
        )
    )
    runner = FakeTestRunner()
    explorer = TestExplorer(
        editor=FakeEditorContext(),
        provider=FakeTestProvider(inventory),
        runner=runner,
        enricher=ResultEnricher(FakeResultProvider()),
    )
    dispatcher = EventDispatcher(explorer)
    await dispatcher.start()
    try:
        _post_from_thread(dispatcher.solution_opened)
        await dispatcher.join()

        root = explorer.test_solution
        assert root is not None
        explorer.select(root)
        await explorer.run_tests()

        def run() -> None:
            dispatcher.tests_started()
            dispatcher.test_executed("ProjectA.ClassB.MethodC", TestState.PASSED)
            dispatcher.test_executed("ProjectA.ClassB.MethodD", TestState.FAILED)
            dispatcher.test_executed("ProjectA.ClassE.MethodF", TestState.PASSED)
            dispatcher.tests_finished()

        _post_from_thread(run)
        await dispatcher.join()
    finally:
        await dispatcher.stop()

    assert runner.run_items == [inventory]
    assert explorer.runner_state == RunnerState.READY
    assert explorer.session.executed_count == 3
    assert root.find_by_path("ProjectA.ClassB").state == TestState.FAILED
    assert root.find_by_path("ProjectA.ClassE").state == TestState.PASSED
    assert root.state == TestState.FAILED
    assert dispatcher.failed_count == 0
