"""Process-wide collector registry.

Applications and the pytest plugin obtain the session collector explicitly:

    collector = init_collector(config)   # start a session
    ...                                   # instrumented code records into it
    teardown_collector()                  # final analytics push, forget it

The query functions below forward to the registered collector. Before
``init_collector`` (or after teardown) they return empty results instead of
raising, so reporting code can run unconditionally.

Tests can also create ``BranchCollector`` instances directly and never touch
the registry.
"""

from __future__ import annotations

import atexit
import logging
from typing import TYPE_CHECKING, Any

from pytest_hotpath.config import HotpathConfig
from pytest_hotpath.reporting.summary import ExecutionSummary
from pytest_hotpath.runtime.analytics import AnalyticsReporter
from pytest_hotpath.runtime.collector import BranchCollector


if TYPE_CHECKING:
    from collections.abc import Mapping

    from pytest_hotpath.runtime.collector import BranchRecord


logger = logging.getLogger(__name__)

_collector: BranchCollector | None = None
_reporter: AnalyticsReporter | None = None
_atexit_registered = False


def init_collector(config: HotpathConfig | None = None) -> BranchCollector | None:
    """Create the process collector, replacing any existing one.

    Starts periodic analytics when ``send_to_analytics`` is set and an
    endpoint is configured.

    Args:
        config: Configuration for the session. Defaults to HotpathConfig().

    Returns:
        The new collector, or None when collection is disabled.
    """
    global _collector, _reporter, _atexit_registered  # noqa: PLW0603

    config = config if config is not None else HotpathConfig()
    teardown_collector()
    if not config.enabled:
        logger.debug('Branch collection disabled, no collector created')
        return None

    _collector = BranchCollector(config)
    if config.send_to_analytics and config.analytics_endpoint:
        _reporter = AnalyticsReporter(_collector)
        _reporter.start()

    if not _atexit_registered:
        atexit.register(teardown_collector)
        _atexit_registered = True

    logger.debug('Started branch collection session %s', _collector.session_id)
    return _collector


def get_collector() -> BranchCollector | None:
    """Return the registered collector, or None."""
    return _collector


def teardown_collector() -> None:
    """End the current session.

    Stops analytics after a final push and forgets the collector. Safe to
    call when no collector is registered.
    """
    global _collector, _reporter  # noqa: PLW0603

    if _reporter is not None:
        _reporter.stop(flush=True)
    _reporter = None
    _collector = None


def get_branch_stats() -> dict[str, BranchRecord]:
    """Return the current table, or an empty one without a collector."""
    if _collector is None:
        return {}
    return _collector.get_branch_stats()


def get_execution_summary() -> ExecutionSummary:
    """Return the current summary, or a zeroed one without a collector."""
    if _collector is None:
        return ExecutionSummary()
    return _collector.get_execution_summary()


def clear_stats() -> None:
    """Clear the current table, if any."""
    if _collector is not None:
        _collector.clear_stats()


def export_data() -> dict[str, Any]:
    """Export the current session, or an empty export without a collector."""
    if _collector is None:
        return {
            'branchStats': {},
            'executionSummary': ExecutionSummary().to_dict(),
            'config': None,
            'sessionId': None,
        }
    return _collector.export_data()


def update_config(partial: Mapping[str, Any]) -> HotpathConfig | None:
    """Update the current collector's configuration, if any."""
    if _collector is None:
        return None
    return _collector.update_config(partial)
