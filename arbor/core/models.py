"""Domain models for the Arbor test explorer.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum


class TestItemKind(Enum):
    """Levels of the discovered test hierarchy."""

    __test__ = False  # not a pytest test class

    SOLUTION = "solution"
    PROJECT = "project"
    CLASS = "class"
    METHOD = "method"


class TestState(IntEnum):
    """Outcome of running a test item, ranked for rollup.

    The integer value is the rank: a parent node always shows the
    highest-ranked state reported by any of its descendants.

    Ranking:
    - UNKNOWN: never run since the node was created
    - SCHEDULED: queued in the current run, no outcome yet
    - PASSED < SKIPPED < INCONCLUSIVE < FAILED: executed outcomes,
      ordered from best to worst
    """

    __test__ = False

    UNKNOWN = 0
    SCHEDULED = 1
    PASSED = 2
    SKIPPED = 3
    INCONCLUSIVE = 4
    FAILED = 5


class RunnerState(Enum):
    """Lifecycle states of the build/test run state machine."""

    READY = "ready"
    BUILDING = "building"
    TESTING = "testing"


# Status messages exposed to the UI layer
STATUS_READY = "Ready"
STATUS_BUILDING = "Building"
STATUS_DONE = "Done"
STATUS_INITIALIZING = "Initializing test runner"
STATUS_EXECUTING = "Executing {executed} of {total}"
STATUS_GENERATING_COVERAGE = "Generating coverage report"


@dataclass(frozen=True, eq=False)
class TestItem:
    """One node of a discovered test inventory snapshot.

    Items are compared by identity: the same object appearing in two
    consecutive snapshots means the item did not change between them.
    """

    __test__ = False  # not a pytest test class

    kind: TestItemKind
    name: str
    full_name: str
    children: tuple["TestItem", ...] = ()

    def __post_init__(self) -> None:
        """Validate item invariants on creation."""
        if not self.name:
            raise ValueError("name must be a non-empty string")
        if self.kind == TestItemKind.METHOD and self.children:
            raise ValueError(f"Method item {self.full_name} cannot have children")

    @property
    def test_count(self) -> int:
        """Number of test methods in this item's subtree."""
        if self.kind == TestItemKind.METHOD:
            return 1
        return sum(child.test_count for child in self.children)

    def iter_items(self) -> Iterator["TestItem"]:
        """Yield this item and every item below it, depth first."""
        yield self
        for child in self.children:
            yield from child.iter_items()


@dataclass(frozen=True)
class TestResult:
    """Previously recorded result of a single test method."""

    __test__ = False

    outcome: TestState
    duration_ms: float = 0.0
    message: str = ""
    stack_trace: str = ""
    recorded_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate result invariants on creation."""
        if self.duration_ms < 0:
            raise ValueError(
                f"duration_ms must be non-negative, got {self.duration_ms}"
            )


@dataclass
class RunSession:
    """Progress counters for the test run in flight.

    Note: This dataclass is intentionally mutable; the explorer bumps
    executed_count as execution events are routed to tree nodes.
    """

    total_leaves: int = 0
    executed_count: int = 0
    started_at: datetime | None = field(default=None, compare=False)

    @property
    def progress_fraction(self) -> float:
        """Fraction of scheduled tests that have reported an outcome."""
        if self.total_leaves <= 0:
            return 0.0
        return self.executed_count / self.total_leaves

    @property
    def is_complete(self) -> bool:
        """True once every scheduled test has reported."""
        return self.executed_count >= self.total_leaves
