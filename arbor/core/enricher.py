"""Attachment of stored results to test method nodes.

Looking up results is read-only and may be slow, so it fans out across a
thread pool. Writing results to the tree is not: every result found is
buffered and applied in one batch on the owner event loop.
"""

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from .models import TestResult
from .ports import ResultProviderPort
from .tree import TestTreeNode

logger = logging.getLogger(__name__)


class ResultBuffer:
    """Lock-guarded node -> result mapping filled by worker threads.

    Keyed by node identity; a second write for the same node replaces
    the first.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._results: dict[TestTreeNode, TestResult] = {}

    def put(self, node: TestTreeNode, result: TestResult) -> None:
        with self._lock:
            self._results[node] = result

    def items(self) -> list[tuple[TestTreeNode, TestResult]]:
        with self._lock:
            return list(self._results.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)


class ResultEnricher:
    """Resolves stored results for every method node and applies them."""

    def __init__(self, results: ResultProviderPort, max_workers: int = 8):
        if max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        self.results = results
        self.max_workers = max_workers

    async def enrich(self, root: TestTreeNode | None) -> int:
        """Look up and attach results for all method nodes under root.

        Must be awaited on the owner loop. Lookups run on worker threads;
        assignments happen afterwards on the calling loop, with no await
        between them.

        Returns:
            Number of nodes that received a result.
        """
        if root is None:
            return 0

        leaves = list(root.iter_leaves())
        if not leaves:
            return 0

        buffer = ResultBuffer()
        loop = asyncio.get_running_loop()
        workers = min(self.max_workers, len(leaves))

        pool = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="arbor-results"
        )
        try:
            await asyncio.gather(
                *(
                    loop.run_in_executor(pool, self._resolve, node, buffer)
                    for node in leaves
                )
            )
        finally:
            # Never block the loop on in-flight lookups (e.g. when cancelled)
            pool.shutdown(wait=False, cancel_futures=True)

        applied = buffer.items()
        for node, result in applied:
            node.result = result

        logger.info(
            f"Attached stored results to {len(applied)} of {len(leaves)} tests"
        )
        return len(applied)

    def _resolve(self, node: TestTreeNode, buffer: ResultBuffer) -> None:
        """Worker body: query one method, buffer any result found."""
        try:
            result = self.results.get_test_result(node.item)
        except Exception as e:
            logger.error(
                f"Failed to look up stored result for {node.item.full_name}: {e}",
                exc_info=True,
            )
            return

        if result is not None:
            buffer.put(node, result)
