"""pytest plugin for runtime branch statistics.

This module provides the pytest plugin hooks that instrument the project's
source files before tests import them, and report the collected branch
statistics at the end of the session.

Modules imported before ``pytest_configure`` runs (for example by a
conftest.py) are not instrumented.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import io
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from pytest_hotpath.config import load_config, merge_configs
from pytest_hotpath.instrumentation.import_hooks import (
    InstrumentedModule,
    register_import_hooks,
    unregister_import_hooks,
)
from pytest_hotpath.instrumentation.transformer import instrument_file, recording_functions
from pytest_hotpath.reporting.console import ConsoleReporter
from pytest_hotpath.reporting.json_reporter import JsonReporter
from pytest_hotpath.runtime.registry import init_collector, teardown_collector


if TYPE_CHECKING:
    from pytest_hotpath.config import HotpathConfig
    from pytest_hotpath.instrumentation.branch import BranchPoint
    from pytest_hotpath.runtime.collector import BranchCollector


logger = logging.getLogger(__name__)

DEFAULT_JSON_OUTPUT = 'hotpath-report.json'
REPORT_FORMATS = ('console', 'json')


@dataclass
class HotpathSession:
    """State of one instrumented pytest run."""

    collector: BranchCollector
    config: HotpathConfig
    modules: dict[str, InstrumentedModule] = field(default_factory=dict)
    branch_points: list[BranchPoint] = field(default_factory=list)


session_key = pytest.StashKey[HotpathSession]()


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add command-line options for pytest-hotpath."""
    group = parser.getgroup('hotpath', 'runtime branch statistics')
    group.addoption(
        '--hotpath',
        action='store_true',
        default=False,
        dest='hotpath',
        help='Instrument source branches and report how often each was taken',
    )
    group.addoption(
        '--hotpath-targets',
        action='store',
        default=None,
        dest='hotpath_targets',
        help='Comma-separated list of source paths to instrument',
    )
    group.addoption(
        '--hotpath-report',
        action='store',
        default='console',
        choices=REPORT_FORMATS,
        dest='hotpath_report',
        help='Report format: console, json (default: console)',
    )
    group.addoption(
        '--hotpath-output',
        action='store',
        default=DEFAULT_JSON_OUTPUT,
        dest='hotpath_output',
        help=f'Output path for the json report (default: {DEFAULT_JSON_OUTPUT})',
    )
    group.addoption(
        '--hotpath-sample-rate',
        action='store',
        type=float,
        default=None,
        dest='hotpath_sample_rate',
        help='Enable sampling and keep this fraction of branch events (0 to 1)',
    )


def pytest_configure(config: pytest.Config) -> None:
    """Instrument target sources and start a collection session."""
    if not config.option.hotpath:
        return

    rootdir = Path(config.rootpath)
    hotpath_config = merge_configs(
        load_config(rootdir),
        cli_targets=config.option.hotpath_targets,
        cli_sample_rate=config.option.hotpath_sample_rate,
    )

    collector = init_collector(hotpath_config)
    if collector is None:
        return

    session = HotpathSession(collector=collector, config=hotpath_config)
    for source_path in _discover_source_files(rootdir, hotpath_config.paths):
        result = instrument_file(source_path, rootdir, hotpath_config)
        if result is None:
            continue
        branch_points, tree = result
        module_name = _path_to_module_name(source_path, rootdir)
        session.modules[module_name] = InstrumentedModule(
            tree=tree,
            origin=str(source_path),
            is_package=source_path.name == '__init__.py',
        )
        session.branch_points.extend(branch_points)

    register_import_hooks(session.modules, recording_functions(collector))
    config.stash[session_key] = session
    logger.debug(
        'Instrumented %d branches in %d modules',
        len(session.branch_points),
        len(session.modules),
    )


def pytest_terminal_summary(
    terminalreporter: pytest.TerminalReporter,
    exitstatus: int,  # noqa: ARG001
    config: pytest.Config,
) -> None:
    """Write the branch report after the test run."""
    session = config.stash.get(session_key, None)
    if session is None:
        return

    if config.option.hotpath_report == 'json':
        output_path = Path(config.option.hotpath_output)
        JsonReporter().write_report(session.collector.export_data(), output_path, session.branch_points)
        terminalreporter.write_line(f'pytest-hotpath: branch report written to {output_path}')
        return

    buffer = io.StringIO()
    ConsoleReporter(buffer).write_report(
        session.collector.get_execution_summary(),
        session.collector.get_branch_stats(),
        session.branch_points,
        session.config.thresholds,
    )
    terminalreporter.write(buffer.getvalue())


def pytest_unconfigure(config: pytest.Config) -> None:
    """Remove the import hooks and end the collection session."""
    session = config.stash.get(session_key, None)
    if session is None:
        return
    unregister_import_hooks()
    teardown_collector()
    del config.stash[session_key]


SKIPPED_DIRECTORIES = frozenset({'__pycache__', 'site-packages', 'node_modules', 'venv', 'build', 'dist'})


def _in_project_directory(path: Path, rootdir: Path | None = None) -> bool:
    """Return False for files below hidden, environment or build directories.

    Only directories below ``rootdir`` are considered. File names are left to
    the include and exclude patterns.
    """
    parts = path.parts
    if rootdir is not None:
        try:
            parts = path.relative_to(rootdir).parts
        except ValueError:
            pass
    directories = parts[:-1]
    return not any(part in SKIPPED_DIRECTORIES or part.startswith('.') for part in directories)


def _discover_source_files(rootdir: Path, paths: list[str] | None) -> list[Path]:
    """List the Python files under the configured target paths.

    Args:
        rootdir: Project root; relative targets are resolved against it.
        paths: Target files or directories. None means the project root.

    Returns:
        Sorted, de-duplicated list of candidate source files.
    """
    targets = [rootdir / p for p in paths] if paths else [rootdir]
    found: set[Path] = set()
    for target in targets:
        if target.is_file() and target.suffix == '.py':
            found.add(target)
        elif target.is_dir():
            found.update(p for p in target.rglob('*.py') if _in_project_directory(p, target))
        else:
            logger.warning('pytest-hotpath target %s does not exist', target)
    return sorted(found)


def _path_to_module_name(path: Path, rootdir: Path) -> str:
    """Convert a source file path to its importable module name.

    A leading ``src`` directory is dropped since it is a layout convention,
    and ``pkg/__init__.py`` maps to ``pkg``.
    """
    try:
        relative = path.resolve().relative_to(rootdir.resolve())
    except ValueError:
        return path.stem

    parts = list(relative.with_suffix('').parts)
    if parts and parts[0] == 'src':
        parts = parts[1:]
    if len(parts) > 1 and parts[-1] == '__init__':
        parts = parts[:-1]
    return '.'.join(parts)
