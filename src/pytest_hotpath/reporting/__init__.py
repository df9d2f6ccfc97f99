"""Reporting of branch execution results.

This package derives summaries from a statistics table and presents them
in various formats (console, JSON).
"""

from pytest_hotpath.reporting.console import ConsoleReporter
from pytest_hotpath.reporting.insights import (
    find_cold_paths,
    find_dead_branches,
    find_hot_paths,
    find_unreached,
    generate_report,
)
from pytest_hotpath.reporting.json_reporter import JsonReporter
from pytest_hotpath.reporting.summary import BranchClass, ExecutionSummary, classify, summarize


__all__ = [
    'BranchClass',
    'ConsoleReporter',
    'ExecutionSummary',
    'JsonReporter',
    'classify',
    'find_cold_paths',
    'find_dead_branches',
    'find_hot_paths',
    'find_unreached',
    'generate_report',
    'summarize',
]
