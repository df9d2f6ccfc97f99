"""Tests for the console reporter."""

from __future__ import annotations

from io import StringIO

import pytest

from pytest_hotpath.instrumentation.branch import BranchPoint, BranchType
from pytest_hotpath.reporting.console import ConsoleReporter
from pytest_hotpath.reporting.summary import summarize


@pytest.fixture
def render():
    """Render a report for a list of records and return the text."""

    def _render(records, branch_points=(), thresholds=None) -> str:
        output = StringIO()
        stats = {record.branch_id: record for record in records}
        ConsoleReporter(output=output).write_report(summarize(stats, thresholds), stats, branch_points, thresholds)
        return output.getvalue()

    return _render


class TestConsoleReporter:
    """Tests for ConsoleReporter."""

    def test_header_and_footer(self, render):
        lines = render([]).splitlines()

        assert 'pytest-hotpath branch report' in lines[0]
        assert lines[0].startswith('=')
        assert lines[-1] == '=' * ConsoleReporter.BORDER_WIDTH

    def test_empty_session(self, render):
        text = render([])

        assert 'No branches recorded.' in text
        assert 'Branches observed' not in text

    def test_summary_lines(self, render, make_record):
        records = [make_record(hits=1), make_record(hits=0, misses=0), make_record(hits=300)]

        text = render(records)

        assert 'Branches observed: 3 (coverage 67%)' in text
        assert 'Hot: 1  Cold: 1  Dead: 1' in text

    def test_lists_hottest_branches(self, render, make_record):
        record = make_record(file='src/auth.py', line=42, hits=180, misses=20, condition='user.is_active')

        text = render([record])

        assert 'Hottest branches:' in text
        assert 'src/auth.py:42' in text
        assert '(200 evaluations, 90% true)' in text

    def test_hottest_branches_include_threshold_boundary(self, render, make_record):
        boundary = make_record(file='edge.py', line=7, hits=80, misses=20)
        below = make_record(file='below.py', line=9, hits=79, misses=21)

        text = render([boundary, below])

        assert 'edge.py:7' in text
        assert '(100 evaluations, 80% true)' in text
        assert 'below.py:9' not in text

    def test_no_hottest_section_without_hot_branches(self, render, make_record):
        text = render([make_record(hits=150, misses=50)])

        assert 'Hottest branches:' not in text

    def test_lists_file_rankings(self, render, make_record):
        text = render([make_record(file='legacy.py'), make_record(file='legacy.py', hits=1)])

        assert 'Files with most dead branches:' in text
        assert 'legacy.py' in text
        assert '1/2' in text
        assert 'Files with most hot branches:' not in text

    def test_lists_unreached_branch_points(self, render):
        point = BranchPoint('src/auth.py:57:9:switch-case#3', 'src/auth.py', 57, 9, BranchType.SWITCH_CASE, "case 'admin'")

        text = render([], branch_points=[point])

        assert 'Never reached (1):' in text
        assert "src/auth.py:57" in text
        assert "case 'admin'" in text
        assert 'No branches recorded.' not in text

    def test_reached_points_are_not_listed(self, render, make_record):
        record = make_record(hits=1)
        point = BranchPoint(record.branch_id, record.file, 1, 1, BranchType.IF, 'x')

        assert 'Never reached' not in render([record], branch_points=[point])

    def test_hint_at_end(self, render):
        assert 'Run with --hotpath-report=json for the full data.' in render([])

    def test_defaults_to_stdout(self, capsys):
        ConsoleReporter().write_report(summarize({}), {})

        assert 'pytest-hotpath branch report' in capsys.readouterr().out
