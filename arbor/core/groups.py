"""Outcome groupings for the test run in progress.

Every node that reports an outcome during a run is appended to the group
for that outcome, giving the UI a flat "Passed (12) / Failed (3)" view
next to the tree.
"""

from collections.abc import Iterator

from .events import Observable
from .models import TestState
from .tree import TestTreeNode


class StateGroup(Observable):
    """Nodes that most recently transitioned to one exact state."""

    def __init__(self, state: TestState):
        super().__init__()
        self.state = state
        self.items: list[TestTreeNode] = []
        self._is_selected = False

    def __repr__(self) -> str:
        return f"StateGroup({self.state.name}, {len(self.items)} items)"

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def is_selected(self) -> bool:
        return self._is_selected

    @is_selected.setter
    def is_selected(self, value: bool) -> None:
        self._is_selected = value
        self.notify("is_selected")

    def add(self, node: TestTreeNode) -> None:
        self.items.append(node)
        self.notify("items")


class StateGroupIndex(Observable):
    """Ordered collection of StateGroups with single selection.

    Groups are created lazily the first time a state is recorded and are
    kept in creation order. At most one group is selected at a time.
    """

    def __init__(self) -> None:
        super().__init__()
        self.groups: list[StateGroup] = []

    def __len__(self) -> int:
        return len(self.groups)

    def __iter__(self) -> Iterator[StateGroup]:
        return iter(self.groups)

    def get(self, state: TestState) -> StateGroup | None:
        """Return the group for state, if one has been created."""
        for group in self.groups:
            if group.state == state:
                return group
        return None

    def clear(self) -> None:
        """Drop every group; called at the start of each run."""
        for group in self.groups:
            group.property_changed.disconnect(self._on_group_changed)
        self.groups.clear()
        self.notify("groups")
        self.notify("is_group_selected")

    def record_outcome(self, node: TestTreeNode) -> StateGroup:
        """Append node to the group matching its current state."""
        group = self.get(node.state)
        if group is None:
            group = StateGroup(node.state)
            group.property_changed.connect(self._on_group_changed)
            self.groups.append(group)
            self.notify("groups")
        group.add(node)
        return group

    def toggle_select(self, group: StateGroup) -> None:
        """Select group exclusively, or clear selection if it was selected."""
        was_selected = group.is_selected
        for other in self.groups:
            other.is_selected = False
        group.is_selected = not was_selected

    @property
    def selected_group(self) -> StateGroup | None:
        for group in self.groups:
            if group.is_selected:
                return group
        return None

    @property
    def is_group_selected(self) -> bool:
        return any(group.is_selected for group in self.groups)

    def _on_group_changed(self, group: StateGroup, name: str) -> None:
        if name == "is_selected":
            self.notify("is_group_selected")
