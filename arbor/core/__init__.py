"""Core domain logic for the Arbor test explorer.

This package contains zero external dependencies and represents
the pure logic of the explorer: the live test tree, its synchronization
and state rollup, outcome grouping, the run state machine and result
enrichment. All collaborators are reached through the ports module.
"""

from .models import (
    RunnerState,
    RunSession,
    TestItem,
    TestItemKind,
    TestResult,
    TestState,
)
from .tree import TestTreeNode

__all__ = [
    "RunnerState",
    "RunSession",
    "TestItem",
    "TestItemKind",
    "TestResult",
    "TestState",
    "TestTreeNode",
]
