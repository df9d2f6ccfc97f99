"""Instrumentation of conditional branches.

This package finds the conditional constructs of a Python module, gives each
one a stable branch id, and rewrites it so that every evaluation is reported
to a collector without changing what the code does.

Example usage:
    >>> source = '''
    ... def label(age):
    ...     if age >= 18:
    ...         return 'adult'
    ...     return 'minor'
    ... '''
    >>> branches, tree = transform_source(source, 'example.py')
    >>> [b.branch_id for b in branches]
    ['example.py:3:5:if#0']

The instrumented code calls ``__hotpath_record__`` and
``__hotpath_record_condition__``, which the import hooks bind to the session
collector.
"""

from __future__ import annotations

from pytest_hotpath.instrumentation.branch import BranchPoint, BranchType, make_branch_id, parse_branch_id
from pytest_hotpath.instrumentation.import_hooks import (
    InstrumentedModule,
    register_import_hooks,
    unregister_import_hooks,
)
from pytest_hotpath.instrumentation.locator import InstrumentationContext
from pytest_hotpath.instrumentation.patterns import should_instrument
from pytest_hotpath.instrumentation.transformer import (
    RECORD_CONDITION_FUNCTION_NAME,
    RECORD_FUNCTION_NAME,
    collect_branches,
    instrument_file,
    recording_functions,
    transform_source,
)


__all__ = [
    'RECORD_CONDITION_FUNCTION_NAME',
    'RECORD_FUNCTION_NAME',
    'BranchPoint',
    'BranchType',
    'InstrumentationContext',
    'InstrumentedModule',
    'collect_branches',
    'instrument_file',
    'make_branch_id',
    'parse_branch_id',
    'recording_functions',
    'register_import_hooks',
    'should_instrument',
    'transform_source',
    'unregister_import_hooks',
]
