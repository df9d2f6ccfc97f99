"""Tests for branch classification and the execution summary."""

from __future__ import annotations

import pytest

from pytest_hotpath.config import ClassificationThresholds
from pytest_hotpath.reporting.summary import (
    TOP_FILES_LIMIT,
    BranchClass,
    BranchSummary,
    ExecutionSummary,
    FileStats,
    classify,
    rank_files,
    summarize,
)


class TestClassify:
    """Test the single classification predicate."""

    @pytest.mark.parametrize(
        ('hits', 'misses', 'expected'),
        [
            (0, 0, BranchClass.DEAD),
            (0, 1, BranchClass.COLD),
            (3, 2, BranchClass.COLD),
            (3, 3, BranchClass.NORMAL),
            (80, 20, BranchClass.HOT),
            (79, 21, BranchClass.NORMAL),
            (99, 0, BranchClass.NORMAL),
            (500, 0, BranchClass.HOT),
        ],
    )
    def test_default_thresholds(self, make_record, hits, misses, expected):
        assert classify(make_record(hits=hits, misses=misses)) is expected

    def test_always_false_branch_is_not_dead(self, make_record):
        assert classify(make_record(hits=0, misses=1000)) is BranchClass.NORMAL

    def test_hot_boundary_is_inclusive(self, make_record):
        assert classify(make_record(hits=80, misses=20)) is BranchClass.HOT
        assert classify(make_record(hits=79, misses=20)) is BranchClass.NORMAL
        assert classify(make_record(hits=99, misses=1)) is BranchClass.HOT

    def test_custom_thresholds(self, make_record):
        thresholds = ClassificationThresholds(hot_min_observations=10, hot_min_hit_rate=0.5, cold_max_observations=1)

        assert classify(make_record(hits=5, misses=5), thresholds) is BranchClass.HOT
        assert classify(make_record(hits=1, misses=0), thresholds) is BranchClass.COLD
        assert classify(make_record(hits=1, misses=1), thresholds) is BranchClass.NORMAL


class TestBranchSummary:
    """Test the coverage rate."""

    def test_coverage_rate(self):
        assert BranchSummary(total_branches=4, hit_branches=3).coverage_rate == 0.75

    def test_coverage_rate_of_empty_table_is_zero(self):
        assert BranchSummary().coverage_rate == 0.0


class TestSummarize:
    """Test summarizing a table."""

    def test_empty_table(self):
        result = summarize({})

        assert result == ExecutionSummary()
        assert result.summary.coverage_rate == 0.0

    def test_counts_classes(self, make_record):
        records = [
            make_record(hits=0, misses=0),
            make_record(hits=0, misses=3),
            make_record(hits=100, misses=0),
            make_record(hits=10, misses=10),
        ]

        result = summarize(records).summary

        assert result.total_branches == 4
        assert result.hit_branches == 2
        assert result.dead_branches == 1
        assert result.hot_branches == 1
        assert result.cold_branches == 1
        assert result.coverage_rate == 0.5

    def test_accepts_mapping(self, make_record):
        record = make_record(hits=1)

        assert summarize({record.branch_id: record}).summary.total_branches == 1

    def test_per_file_rollup(self, make_record):
        records = [
            make_record(file='a.py', hits=0),
            make_record(file='a.py', hits=1),
            make_record(file='b.py', hits=200),
        ]

        file_stats = summarize(records).file_stats

        assert file_stats['a.py'] == FileStats(total=2, hit=1, dead=1, cold=1)
        assert file_stats['b.py'] == FileStats(total=1, hit=1, hot=1)

    def test_classes_partition_every_file(self, make_record):
        records = [make_record(file='a.py', hits=h, misses=m) for h, m in [(0, 0), (1, 0), (50, 50), (300, 1)]]

        stats = summarize(records).file_stats['a.py']

        assert stats.dead + stats.hot + stats.cold + stats.normal == stats.total

    def test_top_files(self, make_record):
        records = [
            make_record(file='one.py'),
            make_record(file='two.py'),
            make_record(file='two.py'),
            make_record(file='hot.py', hits=150),
        ]

        result = summarize(records)

        assert [(r.file, r.count, r.total_branches) for r in result.top_dead_code_files] == [
            ('two.py', 2, 2),
            ('one.py', 1, 1),
        ]
        assert [r.file for r in result.top_hot_path_files] == ['hot.py']

    def test_does_not_modify_records(self, make_record):
        record = make_record(hits=3, misses=1)

        summarize([record])

        assert (record.hit_count, record.miss_count) == (3, 1)

    def test_wire_form(self, make_record):
        result = summarize([make_record(file='a.py', hits=1)]).to_dict()

        assert result['summary'] == {
            'totalBranches': 1,
            'hitBranches': 1,
            'deadBranches': 0,
            'hotBranches': 0,
            'coldBranches': 1,
            'coverageRate': 1.0,
        }
        assert result['fileStats']['a.py']['cold'] == 1
        assert result['topDeadCodeFiles'] == []


class TestRankFiles:
    """Test file rankings."""

    def test_limits_entries(self):
        file_stats = {f'f{i:02d}.py': FileStats(total=5, dead=i + 1) for i in range(15)}

        rankings = rank_files(file_stats, 'dead')

        assert len(rankings) == TOP_FILES_LIMIT
        assert rankings[0].file == 'f14.py'

    def test_ties_sorted_by_file_name(self):
        file_stats = {'b.py': FileStats(total=1, hot=1), 'a.py': FileStats(total=1, hot=1)}

        assert [r.file for r in rank_files(file_stats, 'hot')] == ['a.py', 'b.py']

    def test_zero_counts_left_out(self):
        assert rank_files({'a.py': FileStats(total=3)}, 'dead') == ()
