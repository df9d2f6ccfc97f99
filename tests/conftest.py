"""Shared pytest configuration and fixtures for pytest-hotpath tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from pytest_hotpath.instrumentation.import_hooks import unregister_import_hooks
from pytest_hotpath.instrumentation.transformer import recording_functions, transform_source
from pytest_hotpath.runtime.collector import BranchCollector, BranchRecord
from pytest_hotpath.runtime.registry import teardown_collector


if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from pytest_hotpath.instrumentation.branch import BranchPoint


# Register markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line('markers', 'small: Fast, isolated unit tests (< 100ms)')
    config.addinivalue_line('markers', 'medium: Integration tests with real resources (< 10s)')
    config.addinivalue_line('markers', 'large: End-to-end system tests (< 60s)')


SIZE_MARKERS = ('small', 'medium', 'large')


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Mark unmarked tests by the size directory they live in."""
    for item in items:
        if any(item.get_closest_marker(name) for name in SIZE_MARKERS):
            continue
        size = next((part for part in item.path.parts if part in SIZE_MARKERS), None)
        if size is not None:
            item.add_marker(getattr(pytest.mark, size))


@pytest.fixture(autouse=True)
def _isolated_session() -> Generator[None, None, None]:
    """Make sure no collector or import hook leaks between tests."""
    yield
    unregister_import_hooks()
    teardown_collector()


@pytest.fixture
def collector() -> BranchCollector:
    """A fresh collector with default configuration."""
    return BranchCollector()


@pytest.fixture
def run_instrumented() -> Callable[..., tuple[list[BranchPoint], dict[str, Any]]]:
    """Factory fixture that instruments source and executes it.

    The instrumented module records into the given collector. Returns the
    branch points and the module namespace after execution.
    """

    def _run(
        source: str,
        collector: BranchCollector,
        file_path: str = 'example.py',
    ) -> tuple[list[BranchPoint], dict[str, Any]]:
        branches, tree = transform_source(source, file_path)
        namespace: dict[str, Any] = {**recording_functions(collector), '__name__': 'instrumented'}
        exec(compile(tree, file_path, 'exec'), namespace)  # noqa: S102
        return branches, namespace

    return _run


@pytest.fixture
def make_record() -> Callable[..., BranchRecord]:
    """Factory fixture for creating branch records."""
    counter = 0

    def _make_record(
        file: str = 'app.py',
        hits: int = 0,
        misses: int = 0,
        line: int = 1,
        branch_type: str = 'if',
        condition: str = 'x',
    ) -> BranchRecord:
        nonlocal counter
        branch_id = f'{file}:{line}:1:{branch_type}#{counter}'
        counter += 1
        return BranchRecord(
            branch_id=branch_id,
            file=file,
            line=line,
            column=1,
            type=branch_type,
            condition=condition,
            hit_count=hits,
            miss_count=misses,
        )

    return _make_record
