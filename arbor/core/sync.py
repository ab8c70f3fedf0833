"""Reconciliation of the live tree against fresh inventory snapshots.

After every rebuild the test provider returns a new TestItem tree. Items
that did not change are the same objects as in the previous snapshot, so
matching by reference keeps the corresponding tree nodes (and their state
and results) alive while new items get fresh nodes.
"""

import logging
from dataclasses import dataclass

from .models import TestItem
from .tree import TestTreeNode

logger = logging.getLogger(__name__)


@dataclass
class SyncStats:
    """Counts of structural changes made by one synchronization."""

    added: int = 0
    removed: int = 0
    kept: int = 0


class TreeSynchronizer:
    """Keeps a TestTreeNode tree in step with the test inventory.

    No external dependencies; all methods are static as the class
    carries no state.
    """

    @staticmethod
    def sync(
        root: TestTreeNode | None, inventory: TestItem | None
    ) -> TestTreeNode | None:
        """Reconcile root against inventory and return the live root.

        Args:
            root: Current tree root, or None if no tree exists yet.
            inventory: Freshly discovered inventory root, or None when
                the solution has no tests (the tree is torn down).

        Returns:
            None if inventory is None, a new tree if root is None,
            otherwise root itself, updated in place.
        """
        if inventory is None:
            return None

        if root is None:
            root = TestTreeNode(None, inventory)
            logger.debug(
                f"Built test tree for {inventory.full_name!r} "
                f"({inventory.test_count} tests)"
            )
            return root

        stats = SyncStats()
        TreeSynchronizer.update_node(root, inventory, stats)
        logger.debug(
            f"Synchronized test tree for {inventory.full_name!r}: "
            f"{stats.added} added, {stats.removed} removed, {stats.kept} kept"
        )
        return root

    @staticmethod
    def update_node(
        node: TestTreeNode, item: TestItem, stats: SyncStats | None = None
    ) -> None:
        """Point node at item and reconcile its children recursively.

        Existing children are matched by item identity; unmatched items
        get new nodes in sorted position and leftover nodes are removed.
        """
        if stats is None:
            stats = SyncStats()

        node.item = item
        node.notify("item")

        to_delete = list(node.children)
        for child_item in item.children:
            match = next(
                (child for child in to_delete if child.item is child_item), None
            )
            if match is not None:
                stats.kept += 1
                TreeSynchronizer.update_node(match, child_item, stats)
                to_delete.remove(match)
            else:
                stats.added += 1
                node.add_child(child_item)

        for stale in to_delete:
            stats.removed += 1
            node.remove_child(stale)
