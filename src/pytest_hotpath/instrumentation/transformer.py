"""AST transformer that embeds branch recording.

Each tested expression ``E`` is replaced by a call that records the outcome
and hands a value back::

    if user.is_admin():          ->  if __hotpath_record_condition__('app.py:3:5:if#0', 'if',
                                                                     'user.is_admin()', user.is_admin()):

``E`` is evaluated exactly once, before the recording call runs. Where only
the truth of ``E`` is consumed (``if``, conditional expressions and their
f-string form) the call returns the bool it computed, so a user ``__bool__``
runs once per evaluation. The left operand of ``and`` / ``or`` must keep its
value, so ``__hotpath_record__`` returns ``E`` itself and the operator tests
its truth a second time.
For ``match`` statements a recording statement is inserted at the top of each
case body instead.
"""

from __future__ import annotations

import ast
import copy
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pytest_hotpath.instrumentation.branch import BranchPoint, BranchType
from pytest_hotpath.instrumentation.locator import (
    InstrumentationContext,
    case_condition,
    is_default_case,
    locate,
    source_snippet,
)
from pytest_hotpath.instrumentation.patterns import should_instrument


if TYPE_CHECKING:
    from collections.abc import Callable

    from pytest_hotpath.config import HotpathConfig


logger = logging.getLogger(__name__)

RECORD_FUNCTION_NAME = '__hotpath_record__'
RECORD_CONDITION_FUNCTION_NAME = '__hotpath_record_condition__'

# Constructs whose tested value is only used for its truth.
CONDITION_BRANCH_TYPES = frozenset(
    {BranchType.IF, BranchType.TERNARY, BranchType.JSX_TERNARY, BranchType.SWITCH_CASE}
)


def recording_functions(recorder: Any) -> dict[str, Callable[..., Any]]:
    """Map the names instrumented code calls to ``recorder``'s methods.

    Args:
        recorder: Object with ``record_hit`` and ``record_condition``,
            normally a BranchCollector.

    Returns:
        Names to bind in the namespace of an instrumented module.
    """
    return {
        RECORD_FUNCTION_NAME: recorder.record_hit,
        RECORD_CONDITION_FUNCTION_NAME: recorder.record_condition,
    }


def build_record_call(point: BranchPoint, value: ast.expr, collect_execution_time: bool = False) -> ast.Call:
    """Build the recording call that wraps a tested expression.

    The generated code is equivalent to::

        __hotpath_record__('<branch id>', '<type>', '<condition>', value)

    with a trailing ``True`` argument when execution time is collected.
    Condition branch types call ``__hotpath_record_condition__`` instead.

    Args:
        point: The located branch.
        value: The expression whose value is recorded and returned.
        collect_execution_time: Ask the collector to time this event.

    Returns:
        An ast.Call node positioned at ``value``.
    """
    args: list[ast.expr] = [
        ast.Constant(value=point.branch_id),
        ast.Constant(value=point.branch_type.value),
        ast.Constant(value=point.condition),
        value,
    ]
    if collect_execution_time:
        args.append(ast.Constant(value=True))

    if point.branch_type in CONDITION_BRANCH_TYPES:
        function_name = RECORD_CONDITION_FUNCTION_NAME
    else:
        function_name = RECORD_FUNCTION_NAME
    call = ast.Call(
        func=ast.Name(id=function_name, ctx=ast.Load()),
        args=args,
        keywords=[],
    )
    return ast.copy_location(call, value)


class BranchInstrumentingTransformer(ast.NodeTransformer):
    """Rewrites conditional constructs so they report to the collector.

    Ids are assigned when a construct is entered, before its children are
    visited, so ordinals follow a pre-order walk of the tree.
    """

    def __init__(self, context: InstrumentationContext) -> None:
        self.context = context

    def _wrap(self, point: BranchPoint, value: ast.expr) -> ast.Call:
        return build_record_call(point, value, self.context.collect_execution_time)

    def visit_If(self, node: ast.If) -> ast.If:
        """Record the test of ``if`` and ``elif`` statements."""
        point = locate(self.context, node, BranchType.IF, source_snippet(self.context, node.test))
        self.generic_visit(node)
        node.test = self._wrap(point, node.test)
        return node

    def visit_IfExp(self, node: ast.IfExp) -> ast.IfExp:
        """Record the test of conditional expressions."""
        point = locate(self.context, node, BranchType.TERNARY, source_snippet(self.context, node.test))
        self.generic_visit(node)
        node.test = self._wrap(point, node.test)
        return node

    def visit_BoolOp(self, node: ast.BoolOp) -> ast.BoolOp:
        """Record the left operand of ``and`` / ``or`` expressions."""
        point = locate(self.context, node, BranchType.LOGICAL, source_snippet(self.context, node.values[0]))
        self.generic_visit(node)
        node.values[0] = self._wrap(point, node.values[0])
        return node

    def visit_Match(self, node: ast.Match) -> ast.Match:
        """Insert a recording statement at the top of each non-default case."""
        points: list[BranchPoint | None] = []
        for case in node.cases:
            if is_default_case(case):
                points.append(None)
            else:
                points.append(
                    locate(self.context, case.pattern, BranchType.SWITCH_CASE, case_condition(self.context, case))
                )

        self.generic_visit(node)

        for case, point in zip(node.cases, points, strict=True):
            if point is None:
                continue
            marker = ast.copy_location(ast.Constant(value=True), case.pattern)
            statement = ast.Expr(value=self._wrap(point, marker))
            case.body.insert(0, ast.copy_location(statement, case.body[0]))
        return node

    def visit_FormattedValue(self, node: ast.FormattedValue) -> ast.FormattedValue:
        """Record guards that fill a whole f-string replacement field.

        ``f'{ok and label}'`` is recorded as a jsx-conditional branch and
        ``f'{a if ok else b}'`` as a jsx-ternary branch, in place of the
        logical / ternary ids the expressions would otherwise get.
        """
        value = node.value
        if isinstance(value, ast.BoolOp) and isinstance(value.op, ast.And):
            point = locate(
                self.context, node, BranchType.JSX_CONDITIONAL, source_snippet(self.context, value.values[0])
            )
            value.values = [self.visit(operand) for operand in value.values]
            value.values[0] = self._wrap(point, value.values[0])
        elif isinstance(value, ast.IfExp):
            point = locate(self.context, node, BranchType.JSX_TERNARY, source_snippet(self.context, value.test))
            value.test = self.visit(value.test)
            value.body = self.visit(value.body)
            value.orelse = self.visit(value.orelse)
            value.test = self._wrap(point, value.test)
        else:
            node.value = self.visit(value)

        if node.format_spec is not None:
            node.format_spec = self.visit(node.format_spec)
        return node


def instrument_tree(tree: ast.Module, context: InstrumentationContext) -> ast.Module:
    """Instrument a parsed module in place.

    Args:
        tree: The module AST. It is modified.
        context: A fresh context for this file; collects the branch points.

    Returns:
        The instrumented module with locations filled in.
    """
    transformer = BranchInstrumentingTransformer(context)
    new_tree = transformer.visit(tree)
    if not isinstance(new_tree, ast.Module):
        raise TypeError(f'Expected ast.Module, got {type(new_tree).__name__}')
    return ast.fix_missing_locations(new_tree)


def transform_source(
    source: str,
    file_path: str,
    *,
    collect_execution_time: bool = False,
) -> tuple[list[BranchPoint], ast.Module]:
    """Transform source code by embedding branch recording.

    This is the main entry point for instrumenting Python source code.

    Args:
        source: The Python source code to transform.
        file_path: Relative path of the source file, used in branch ids.
        collect_execution_time: Ask the collector to time each event.

    Returns:
        Tuple of (list of branch points, instrumented AST).
    """
    tree = ast.parse(source)
    context = InstrumentationContext(
        file_path=file_path,
        source=source,
        collect_execution_time=collect_execution_time,
    )
    new_tree = instrument_tree(tree, context)
    return context.branches, new_tree


def collect_branches(source: str, file_path: str) -> tuple[list[BranchPoint], ast.Module]:
    """Find branch points without modifying the code.

    The ids match those ``transform_source`` assigns for the same source.

    Args:
        source: The Python source code to analyze.
        file_path: Relative path of the source file, used in branch ids.

    Returns:
        Tuple of (list of branch points, original unmodified AST).
    """
    tree = ast.parse(source)
    context = InstrumentationContext(file_path=file_path, source=source)
    instrument_tree(copy.deepcopy(tree), context)
    return context.branches, tree


def relative_source_path(path: Path, rootdir: Path) -> str:
    """Return ``path`` relative to ``rootdir`` in POSIX form.

    Files outside ``rootdir`` keep their full path.
    """
    try:
        return path.resolve().relative_to(rootdir.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def instrument_file(
    path: Path,
    rootdir: Path,
    config: HotpathConfig,
) -> tuple[list[BranchPoint], ast.Module] | None:
    """Read, select and instrument one source file.

    Args:
        path: The source file.
        rootdir: Project root; branch ids use paths relative to it.
        config: Active configuration.

    Returns:
        Tuple of (branch points, instrumented AST), or None if the file is
        excluded or cannot be read or parsed.
    """
    relative = relative_source_path(path, rootdir)
    if not should_instrument(relative, config):
        logger.debug('Skipping excluded file %s', relative)
        return None

    try:
        source = Path(path).read_text(encoding='utf-8')
        return transform_source(
            source,
            relative,
            collect_execution_time=config.sampling.collect_execution_time,
        )
    except (OSError, UnicodeDecodeError, SyntaxError, ValueError) as exc:
        logger.warning('Could not instrument %s: %s', relative, exc)
        return None
