"""Runtime collection of branch events.

Exports:
    BranchCollector: Owns the statistics table of one session
    BranchRecord: Observed statistics of one branch
    SamplingGate: Deterministic sampling and rate limiting
    AnalyticsReporter: Pushes snapshots to a remote endpoint
    init_collector / get_collector / teardown_collector: Session registry
"""

from __future__ import annotations

from pytest_hotpath.runtime.analytics import AnalyticsReporter
from pytest_hotpath.runtime.collector import BranchCollector, BranchRecord
from pytest_hotpath.runtime.registry import (
    clear_stats,
    export_data,
    get_branch_stats,
    get_collector,
    get_execution_summary,
    init_collector,
    teardown_collector,
    update_config,
)
from pytest_hotpath.runtime.sampling import SamplingGate


__all__ = [
    'AnalyticsReporter',
    'BranchCollector',
    'BranchRecord',
    'SamplingGate',
    'clear_stats',
    'export_data',
    'get_branch_stats',
    'get_collector',
    'get_execution_summary',
    'init_collector',
    'teardown_collector',
    'update_config',
]
