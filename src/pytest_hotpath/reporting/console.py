"""Console reporter for branch execution results.

Produces human-readable output for terminal display with summary
statistics, the top hot and dead files, and branches that never ran.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

from pytest_hotpath.reporting.insights import find_hot_paths, find_unreached


if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from pytest_hotpath.config import ClassificationThresholds
    from pytest_hotpath.instrumentation.branch import BranchPoint
    from pytest_hotpath.reporting.summary import ExecutionSummary, FileRanking
    from pytest_hotpath.runtime.collector import BranchRecord


class ConsoleReporter:
    """Reporter that writes branch execution results to the console.

    Produces output in the following format:

        ================= pytest-hotpath branch report =================

        Branches observed: 42 (coverage 88%)
        Hot: 3  Cold: 7  Dead: 0

        Hottest branches:
          src/auth.py:42    if      user.is_active     (512 evaluations, 97% true)

        Never reached (5):
          src/auth.py:57    switch-case  case 'admin'

        Run with --hotpath-report=json for the full data.
        ================================================================

    Attributes:
        output: The file-like object to write to.
    """

    BORDER_CHAR = '='
    BORDER_WIDTH = 70
    LIST_LIMIT = 10

    def __init__(self, output: TextIO | None = None) -> None:
        """Initialize the console reporter.

        Args:
            output: File-like object to write to. Defaults to sys.stdout.
        """
        self.output = output or sys.stdout

    def write_report(
        self,
        summary: ExecutionSummary,
        stats: Mapping[str, BranchRecord],
        branch_points: Sequence[BranchPoint] = (),
        thresholds: ClassificationThresholds | None = None,
    ) -> None:
        """Write the branch report to the output.

        Args:
            summary: Summary of the session.
            stats: The statistics table.
            branch_points: All instrumented branch points, used to list
                branches that never ran.
            thresholds: Hot/cold thresholds.
        """
        self._write_header()
        self._write_blank_line()

        if summary.summary.total_branches == 0 and not branch_points:
            self._write_line('No branches recorded.')
        else:
            self._write_summary(summary)
            self._write_rankings('Files with most dead branches:', summary.top_dead_code_files)
            self._write_rankings('Files with most hot branches:', summary.top_hot_path_files)
            self._write_hot_branches(stats, thresholds)
            self._write_unreached(branch_points, stats)

        self._write_hint()
        self._write_footer()

    def _write_header(self) -> None:
        title = ' pytest-hotpath branch report '
        border_len = (self.BORDER_WIDTH - len(title)) // 2
        header = f'{self.BORDER_CHAR * border_len}{title}{self.BORDER_CHAR * border_len}'
        self._write_line(header)

    def _write_footer(self) -> None:
        self._write_line(self.BORDER_CHAR * self.BORDER_WIDTH)

    def _write_summary(self, summary: ExecutionSummary) -> None:
        counts = summary.summary
        coverage_pct = round(counts.coverage_rate * 100)
        self._write_line(f'Branches observed: {counts.total_branches} (coverage {coverage_pct}%)')
        self._write_line(f'Hot: {counts.hot_branches}  Cold: {counts.cold_branches}  Dead: {counts.dead_branches}')

    def _write_rankings(self, title: str, rankings: Sequence[FileRanking]) -> None:
        if not rankings:
            return
        self._write_blank_line()
        self._write_line(title)
        for ranking in rankings:
            self._write_line(f'  {ranking.file:<40} {ranking.count}/{ranking.total_branches}')

    def _write_hot_branches(
        self,
        stats: Mapping[str, BranchRecord],
        thresholds: ClassificationThresholds | None,
    ) -> None:
        hot = find_hot_paths(stats, thresholds)[: self.LIST_LIMIT]
        if not hot:
            return
        self._write_blank_line()
        self._write_line('Hottest branches:')
        for record in hot:
            location = f'{record.file}:{record.line}'
            observations = record.hit_count + record.miss_count
            rate = round(record.hit_count / observations * 100)
            self._write_line(
                f'  {location:<24} {record.type:<12} {record.condition:<24} '
                f'({observations} evaluations, {rate}% true)'
            )

    def _write_unreached(self, branch_points: Sequence[BranchPoint], stats: Mapping[str, BranchRecord]) -> None:
        unreached = find_unreached(branch_points, stats)
        if not unreached:
            return
        self._write_blank_line()
        self._write_line(f'Never reached ({len(unreached)}):')
        for point in unreached[: self.LIST_LIMIT]:
            location = f'{point.file}:{point.line}'
            self._write_line(f'  {location:<24} {point.branch_type.value:<12} {point.condition}')

    def _write_hint(self) -> None:
        self._write_blank_line()
        self._write_line('Run with --hotpath-report=json for the full data.')

    def _write_blank_line(self) -> None:
        self.output.write('\n')

    def _write_line(self, text: str) -> None:
        self.output.write(text + '\n')
