"""Execution summary: coverage rate, branch classes and per-file rankings.

Every branch in the table falls into exactly one class, decided by a single
predicate (``classify``) that all summaries and queries share:

    dead    never evaluated (no hits and no misses)
    hot     observed at least ``hot_min_observations`` times and true for at
            least ``hot_min_hit_rate`` of them
    cold    otherwise, observed at most ``cold_max_observations`` times
    normal  everything else

A branch that was evaluated but always false is not dead: it was reached.

    coverage_rate = hit_branches / total_branches   (0.0 for an empty table)
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pytest_hotpath.config import ClassificationThresholds


if TYPE_CHECKING:
    from collections.abc import Iterable

    from pytest_hotpath.runtime.collector import BranchRecord


TOP_FILES_LIMIT = 10


class BranchClass(Enum):
    """Classification of an observed branch."""

    DEAD = 'dead'
    HOT = 'hot'
    COLD = 'cold'
    NORMAL = 'normal'


def classify(record: BranchRecord, thresholds: ClassificationThresholds | None = None) -> BranchClass:
    """Classify one branch record.

    Args:
        record: The record to classify.
        thresholds: Hot/cold thresholds. Defaults to ClassificationThresholds().

    Returns:
        The branch class.
    """
    thresholds = thresholds or ClassificationThresholds()
    observations = record.hit_count + record.miss_count
    if observations == 0:
        return BranchClass.DEAD
    if (
        observations >= thresholds.hot_min_observations
        and record.hit_count / observations >= thresholds.hot_min_hit_rate
    ):
        return BranchClass.HOT
    if observations <= thresholds.cold_max_observations:
        return BranchClass.COLD
    return BranchClass.NORMAL


@dataclass(frozen=True)
class BranchSummary:
    """Table-wide branch counts."""

    total_branches: int = 0
    hit_branches: int = 0
    dead_branches: int = 0
    hot_branches: int = 0
    cold_branches: int = 0

    @property
    def coverage_rate(self) -> float:
        """Fraction of branches with at least one hit, 0.0 when empty."""
        if self.total_branches == 0:
            return 0.0
        return self.hit_branches / self.total_branches


@dataclass
class FileStats:
    """Per-file rollup.

    Attributes:
        total: Branches in the file.
        hit: Branches with at least one hit.
        dead: Dead branches.
        hot: Hot branches.
        cold: Cold branches.
        normal: Branches in none of the other classes.
    """

    total: int = 0
    hit: int = 0
    dead: int = 0
    hot: int = 0
    cold: int = 0
    normal: int = 0


@dataclass(frozen=True)
class FileRanking:
    """One entry of a top-files list."""

    file: str
    count: int
    total_branches: int


@dataclass(frozen=True)
class ExecutionSummary:
    """Everything the summary engine derives from a statistics table."""

    summary: BranchSummary = field(default_factory=BranchSummary)
    file_stats: dict[str, FileStats] = field(default_factory=dict)
    top_dead_code_files: tuple[FileRanking, ...] = ()
    top_hot_path_files: tuple[FileRanking, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Return the wire form used by exports and reporters."""
        return {
            'summary': {
                'totalBranches': self.summary.total_branches,
                'hitBranches': self.summary.hit_branches,
                'deadBranches': self.summary.dead_branches,
                'hotBranches': self.summary.hot_branches,
                'coldBranches': self.summary.cold_branches,
                'coverageRate': self.summary.coverage_rate,
            },
            'fileStats': {
                file: {
                    'total': stats.total,
                    'hit': stats.hit,
                    'dead': stats.dead,
                    'hot': stats.hot,
                    'cold': stats.cold,
                    'normal': stats.normal,
                }
                for file, stats in self.file_stats.items()
            },
            'topDeadCodeFiles': [_ranking_to_dict(r) for r in self.top_dead_code_files],
            'topHotPathFiles': [_ranking_to_dict(r) for r in self.top_hot_path_files],
        }


def _ranking_to_dict(ranking: FileRanking) -> dict[str, Any]:
    return {'file': ranking.file, 'count': ranking.count, 'totalBranches': ranking.total_branches}


def rank_files(
    file_stats: Mapping[str, FileStats],
    attribute: str,
    limit: int = TOP_FILES_LIMIT,
) -> tuple[FileRanking, ...]:
    """Rank files by one FileStats counter.

    Files with a zero count are left out. Ties are broken by file name.

    Args:
        file_stats: Per-file rollup.
        attribute: Name of the FileStats counter to rank by.
        limit: Maximum number of entries.

    Returns:
        Rankings sorted by count, highest first.
    """
    rankings = [
        FileRanking(file=file, count=getattr(stats, attribute), total_branches=stats.total)
        for file, stats in file_stats.items()
        if getattr(stats, attribute) > 0
    ]
    rankings.sort(key=lambda r: (-r.count, r.file))
    return tuple(rankings[:limit])


def summarize(
    records: Mapping[str, BranchRecord] | Iterable[BranchRecord],
    thresholds: ClassificationThresholds | None = None,
) -> ExecutionSummary:
    """Compute the execution summary of a statistics table.

    This is a pure function; the records are not modified.

    Args:
        records: The table (branch id to record) or an iterable of records.
        thresholds: Hot/cold thresholds.

    Returns:
        The ExecutionSummary.
    """
    values = list(records.values()) if isinstance(records, Mapping) else list(records)
    thresholds = thresholds or ClassificationThresholds()

    counts: dict[BranchClass, int] = defaultdict(int)
    file_stats: dict[str, FileStats] = {}
    hit_branches = 0

    for record in values:
        branch_class = classify(record, thresholds)
        counts[branch_class] += 1

        stats = file_stats.setdefault(record.file, FileStats())
        stats.total += 1
        if record.hit_count > 0:
            hit_branches += 1
            stats.hit += 1
        if branch_class is BranchClass.DEAD:
            stats.dead += 1
        elif branch_class is BranchClass.HOT:
            stats.hot += 1
        elif branch_class is BranchClass.COLD:
            stats.cold += 1
        else:
            stats.normal += 1

    summary = BranchSummary(
        total_branches=len(values),
        hit_branches=hit_branches,
        dead_branches=counts[BranchClass.DEAD],
        hot_branches=counts[BranchClass.HOT],
        cold_branches=counts[BranchClass.COLD],
    )
    return ExecutionSummary(
        summary=summary,
        file_stats=file_stats,
        top_dead_code_files=rank_files(file_stats, 'dead'),
        top_hot_path_files=rank_files(file_stats, 'hot'),
    )
