"""Live test tree nodes and state rollup.

Each TestTreeNode wraps the TestItem it currently represents and carries
the run state, staleness flag, expansion flag and stored result that the
UI displays. Setting a node's state rolls it up through its ancestors.
"""

import logging
from collections.abc import Iterator

from .events import Observable
from .models import TestItem, TestItemKind, TestResult, TestState

logger = logging.getLogger(__name__)


def sort_key(name: str) -> str:
    """Case-insensitive ordinal ordering key for sibling names."""
    return name.upper()


class TestTreeNode(Observable):
    """Mutable counterpart of a TestItem in the live tree.

    Children are owned by their parent and kept sorted by case-insensitive
    item name. The parent reference is a non-owning back link used for
    upward rollup only.
    """

    __test__ = False  # not a pytest test class

    def __init__(self, parent: "TestTreeNode | None", item: TestItem | None):
        if item is None:
            raise ValueError("Cannot create a tree node without a test item")
        super().__init__()
        self.item = item
        self.parent = parent
        self.children: list[TestTreeNode] = []
        self._state = TestState.UNKNOWN
        self._is_state_current = False
        self._is_expanded = False
        self._result: TestResult | None = None

        for child_item in item.children:
            self.add_child(child_item)

    def __repr__(self) -> str:
        return (
            f"TestTreeNode({self.item.kind.value} {self.item.full_name!r}, "
            f"state={self._state.name})"
        )

    @property
    def name(self) -> str:
        return self.item.name

    @property
    def kind(self) -> TestItemKind:
        return self.item.kind

    # ------------------------------------------------------------------
    # State rollup
    # ------------------------------------------------------------------

    @property
    def state(self) -> TestState:
        return self._state

    @state.setter
    def state(self, value: TestState) -> None:
        """Set this node's state and roll it up through every ancestor.

        An ancestor takes the new state when its own state is stale or
        ranks lower. The walk always reaches the root; ancestors holding a
        higher-ranked state from another branch are left alone.
        """
        self._state = value
        self.is_state_current = True
        self.notify("state")

        for ancestor in self.iter_ancestors():
            if not ancestor.is_state_current or ancestor.state < value:
                ancestor.state = value

    @property
    def is_state_current(self) -> bool:
        return self._is_state_current

    @is_state_current.setter
    def is_state_current(self, value: bool) -> None:
        self._is_state_current = value
        self.notify("is_state_current")

    def reset_all(self) -> None:
        """Mark this subtree's states as stale without clearing them."""
        self.is_state_current = False
        for child in self.children:
            child.reset_all()

    def schedule_all(self) -> None:
        """Set SCHEDULED on this node and, top-down, on every descendant."""
        self.state = TestState.SCHEDULED
        for child in self.children:
            child.schedule_all()

    # ------------------------------------------------------------------
    # Result and expansion
    # ------------------------------------------------------------------

    @property
    def result(self) -> TestResult | None:
        return self._result

    @result.setter
    def result(self, value: TestResult | None) -> None:
        self._result = value
        self.notify("result")

    @property
    def is_expanded(self) -> bool:
        return self._is_expanded

    @is_expanded.setter
    def is_expanded(self, value: bool) -> None:
        """Expand or collapse; a sole child follows its parent."""
        self._is_expanded = value
        self.notify("is_expanded")
        if len(self.children) == 1:
            self.children[0].is_expanded = value

    def expand_all(self) -> None:
        self.is_expanded = True
        for child in self.children:
            child.expand_all()

    def collapse_all(self) -> None:
        self.is_expanded = False
        for child in self.children:
            child.collapse_all()

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def add_child(self, item: TestItem) -> "TestTreeNode":
        """Create a node for item and insert it in sorted position.

        The new node goes before the first existing child whose name
        compares greater, ignoring case. Names are compared upper-cased,
        so "_" sorts after letters ("TestBar" before "Test_Foo").
        """
        child = TestTreeNode(self, item)
        key = sort_key(item.name)

        index = len(self.children)
        for i, existing in enumerate(self.children):
            if sort_key(existing.item.name) > key:
                index = i
                break

        self.children.insert(index, child)
        self.notify("children")
        return child

    def remove_child(self, child: "TestTreeNode") -> None:
        """Drop a child node and detach it from this tree."""
        self.children.remove(child)
        child.parent = None
        self.notify("children")

    def iter_ancestors(self) -> Iterator["TestTreeNode"]:
        """Yield the parent, grandparent, ... up to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def iter_descendants(self) -> Iterator["TestTreeNode"]:
        """Yield every node below this one, depth first."""
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def iter_leaves(self) -> Iterator["TestTreeNode"]:
        """Yield every test method node below this one."""
        for node in self.iter_descendants():
            if node.kind == TestItemKind.METHOD:
                yield node

    def find_ancestor(self, kind: TestItemKind) -> "TestTreeNode | None":
        """Return the nearest ancestor of the given kind, if any."""
        for ancestor in self.iter_ancestors():
            if ancestor.kind == kind:
                return ancestor
        return None

    def is_attached_to(self, root: "TestTreeNode | None") -> bool:
        """True if walking up from this node reaches root."""
        if root is None:
            return False
        node: TestTreeNode | None = self
        while node is not None:
            if node is root:
                return True
            node = node.parent
        return False

    def find_by_path(self, path: str) -> "TestTreeNode | None":
        """Route a dotted execution path to a node below this one.

        Segments are consumed left to right and accumulated into a
        candidate name. Whenever a child of the current node has exactly
        that name, routing descends into it and the candidate restarts.
        Names containing dots (e.g. nested namespaces) are matched by
        accumulating several segments.

        Returns:
            The matched node, or None if unmatched text is left over.
        """
        if not path:
            return None

        node = self
        candidate = ""
        for segment in path.split("."):
            candidate = f"{candidate}.{segment}" if candidate else segment
            for child in node.children:
                if child.item.name == candidate:
                    node = child
                    candidate = ""
                    break

        if candidate or node is self:
            return None
        return node
