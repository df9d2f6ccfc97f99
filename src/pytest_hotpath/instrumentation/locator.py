"""Branch locator: ids, positions and condition snippets.

The locator owns no global state. Every instrumentation pass over one file
creates a fresh InstrumentationContext, which carries the file path, the
source text and the running ordinal counter, and is handed to the locator
functions explicitly. Several files can therefore be instrumented in
parallel without sharing anything mutable.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field

from pytest_hotpath.instrumentation.branch import BranchPoint, BranchType, make_branch_id


@dataclass
class InstrumentationContext:
    """Short-lived traversal state for instrumenting a single file.

    Attributes:
        file_path: Path of the file relative to the project root (POSIX).
        source: Original source text, used to slice condition snippets.
        collect_execution_time: Ask the collector to time each recorded event.
        branches: Branch points located so far, in visitation order.
    """

    file_path: str
    source: str | None = None
    collect_execution_time: bool = False
    branches: list[BranchPoint] = field(default_factory=list)
    _ordinal: int = field(default=0, init=False, repr=False)

    def next_ordinal(self) -> int:
        """Return the next ordinal for this file and advance the counter."""
        ordinal = self._ordinal
        self._ordinal += 1
        return ordinal


def node_position(node: ast.AST) -> tuple[int, int]:
    """Return the 1-based (line, column) of a node, or (0, 0) if unknown."""
    line = getattr(node, 'lineno', None)
    col_offset = getattr(node, 'col_offset', None)
    if line is None or col_offset is None:
        return 0, 0
    return line, col_offset + 1


def source_snippet(context: InstrumentationContext, node: ast.AST) -> str:
    """Return the verbatim source text of ``node``.

    Falls back to ``ast.unparse`` when the source or the node location is not
    available.
    """
    if context.source is not None:
        segment = ast.get_source_segment(context.source, node)
        if segment is not None:
            return segment
    return ast.unparse(node)


def locate(
    context: InstrumentationContext,
    node: ast.AST,
    branch_type: BranchType,
    condition: str,
) -> BranchPoint:
    """Assign an id to a construct and remember it in the context.

    Args:
        context: The per-file traversal context.
        node: The node whose position identifies the branch.
        branch_type: The kind of construct.
        condition: Source text of the tested expression.

    Returns:
        The new BranchPoint.
    """
    line, column = node_position(node)
    branch_id = make_branch_id(context.file_path, line, column, branch_type, context.next_ordinal())
    point = BranchPoint(
        branch_id=branch_id,
        file=context.file_path,
        line=line,
        column=column,
        branch_type=branch_type,
        condition=condition,
    )
    context.branches.append(point)
    return point


def case_condition(context: InstrumentationContext, case: ast.match_case) -> str:
    """Describe a match case as ``case <pattern>`` (plus its guard)."""
    text = f'case {source_snippet(context, case.pattern)}'
    if case.guard is not None:
        text += f' if {source_snippet(context, case.guard)}'
    return text


def is_default_case(case: ast.match_case) -> bool:
    """Return True for the unguarded wildcard ``case _:``."""
    pattern = case.pattern
    return isinstance(pattern, ast.MatchAs) and pattern.pattern is None and pattern.name is None and case.guard is None
