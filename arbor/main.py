"""Composition root for the Arbor test explorer.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. The host integration (an IDE
plugin, or a headless harness) supplies the editor, test provider and
test runner; everything else is wired here.

Module Structure:
- Logging configuration
- Result provider selection from settings
- Core service initialization and dependency injection
"""

import asyncio
import logging
import sys

from arbor.adapters.editor.stdout import StdoutEditorAdapter
from arbor.adapters.results.http import HTTPResultProvider
from arbor.config import Settings, load_settings
from arbor.core.dispatcher import EventDispatcher
from arbor.core.enricher import ResultEnricher
from arbor.core.explorer import TestExplorer
from arbor.core.models import TestItem, TestResult
from arbor.core.ports import (
    EditorContextPort,
    ResultProviderPort,
    TestProviderPort,
    TestRunnerPort,
)


class NullResultProvider(ResultProviderPort):
    """Result provider used when no result service is configured."""

    def get_test_result(self, item: TestItem) -> TestResult | None:
        return None


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def create_result_provider(settings: Settings) -> HTTPResultProvider | None:
    """Build the HTTP result provider if a service URL is configured."""
    if not settings.result_service_url:
        return None
    return HTTPResultProvider(
        api_url=settings.result_service_url,
        timeout=settings.result_service_timeout_seconds,
        api_key=settings.result_service_api_key,
    )


def create_explorer(
    editor: EditorContextPort,
    provider: TestProviderPort,
    runner: TestRunnerPort,
    results: ResultProviderPort | None = None,
    settings: Settings | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> tuple[TestExplorer, EventDispatcher]:
    """Wire the explorer core to its collaborators.

    Args:
        editor: Host editor context.
        provider: Test discovery backend.
        runner: Test execution backend.
        results: Stored result lookup. If None, the result service from
            settings is used, or no results at all when none is configured.
        settings: Application settings (loaded from environment if None).
        loop: Owner event loop for the dispatcher (running loop if None).

    Returns:
        The explorer and the dispatcher collaborators must send events to.
        The dispatcher still has to be started on the owner loop.
    """
    if settings is None:
        settings = load_settings()
    logger = logging.getLogger(__name__)

    if results is None:
        results = create_result_provider(settings)
        if results is not None:
            logger.info(f"Result provider: HTTP ({settings.result_service_url})")
        else:
            logger.info("Result provider: none configured")
            results = NullResultProvider()

    enricher = ResultEnricher(results, max_workers=settings.result_workers)
    explorer = TestExplorer(
        editor=editor,
        provider=provider,
        runner=runner,
        enricher=enricher,
        auto_run_on_build=settings.auto_run_on_build,
    )
    dispatcher = EventDispatcher(explorer, loop=loop)

    # The headless editor reports build progress through the dispatcher
    if isinstance(editor, StdoutEditorAdapter) and editor.events is None:
        editor.events = dispatcher

    logger.info("Test explorer initialized")
    return explorer, dispatcher
