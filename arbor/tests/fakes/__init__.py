"""Fake implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without a real IDE, discovery backend, runner or result store:

- FakeEditorContext: Captured builds, navigation and log output
- FakeTestProvider: Canned inventory snapshots
- FakeTestRunner: Captured run requests
- FakeResultProvider: In-memory stored results, safe across threads
"""

from .editor import FakeEditorContext
from .inventory import make_class, make_project, make_solution
from .provider import FakeTestProvider
from .results import FakeResultProvider
from .runner import FakeTestRunner

__all__ = [
    "FakeEditorContext",
    "FakeResultProvider",
    "FakeTestProvider",
    "FakeTestRunner",
    "make_class",
    "make_project",
    "make_solution",
]
