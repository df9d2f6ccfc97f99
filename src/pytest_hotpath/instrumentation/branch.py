"""Branch identity: types, static branch points and the branch id format.

A branch id has the form ``<file>:<line>:<column>:<type>#<ordinal>``, e.g.
``app/views.py:45:8:if#0``. Ids are stable across runs only while the
structure of the source file is unchanged.

Example:
    >>> make_branch_id('app/views.py', 45, 8, BranchType.IF, 0)
    'app/views.py:45:8:if#0'
    >>> parse_branch_id('app/views.py:45:8:if#0')
    ('app/views.py', 45, 8, 'if', 0)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BranchType(str, Enum):
    """Kinds of conditional constructs that get instrumented.

    Attributes:
        IF: The test of an ``if`` / ``elif`` statement.
        TERNARY: The test of a conditional expression (``a if test else b``).
        SWITCH_CASE: A ``case`` block of a ``match`` statement.
        LOGICAL: The left operand of an ``and`` / ``or`` expression.
        JSX_CONDITIONAL: An ``and`` guard that fills a whole f-string
            replacement field, the rendered-expression slot of Python.
        JSX_TERNARY: A conditional expression that fills a whole f-string
            replacement field.
    """

    IF = 'if'
    TERNARY = 'ternary'
    SWITCH_CASE = 'switch-case'
    LOGICAL = 'logical'
    JSX_CONDITIONAL = 'jsx-conditional'
    JSX_TERNARY = 'jsx-ternary'

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BranchPoint:
    """A conditional construct found and instrumented in a source file.

    Attributes:
        branch_id: Unique identifier within the session.
        file: Path of the source file relative to the project root.
        line: 1-based line of the construct, 0 when unknown.
        column: 1-based column of the construct, 0 when unknown.
        branch_type: The kind of construct.
        condition: Verbatim source text of the tested expression.
    """

    branch_id: str
    file: str
    line: int
    column: int
    branch_type: BranchType
    condition: str


def make_branch_id(file: str, line: int, column: int, branch_type: BranchType | str, ordinal: int) -> str:
    """Build a branch id string.

    Args:
        file: Relative path of the source file.
        line: 1-based line number (0 when unknown).
        column: 1-based column number (0 when unknown).
        branch_type: Kind of construct.
        ordinal: Per-file visitation counter.

    Returns:
        The branch id.
    """
    return f'{file}:{line}:{column}:{branch_type}#{ordinal}'


def parse_branch_id(branch_id: str) -> tuple[str, int, int, str, int]:
    """Split a branch id into its components.

    The file part may itself contain ``:`` (e.g. Windows drive letters), so
    the id is split from the right.

    Args:
        branch_id: A string produced by ``make_branch_id``.

    Returns:
        Tuple of (file, line, column, type, ordinal). Numeric parts that do
        not parse are returned as 0.
    """
    head, _, ordinal = branch_id.rpartition('#')
    if not head:
        head, ordinal = branch_id, ''
    parts = head.rsplit(':', 3)
    while len(parts) < 4:
        parts.append('')
    file, line, column, branch_type = parts
    return file, _to_int(line), _to_int(column), branch_type, _to_int(ordinal)


def _to_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0
