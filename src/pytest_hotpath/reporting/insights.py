"""Branch queries and recommendations built on the summary classification."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from pytest_hotpath.reporting.summary import BranchClass, classify, summarize


if TYPE_CHECKING:
    from collections.abc import Iterable

    from pytest_hotpath.config import ClassificationThresholds
    from pytest_hotpath.instrumentation.branch import BranchPoint
    from pytest_hotpath.runtime.collector import BranchRecord


def _records(stats: Mapping[str, BranchRecord] | Iterable[BranchRecord]) -> list[BranchRecord]:
    return list(stats.values()) if isinstance(stats, Mapping) else list(stats)


def find_branches(
    stats: Mapping[str, BranchRecord] | Iterable[BranchRecord],
    branch_class: BranchClass,
    thresholds: ClassificationThresholds | None = None,
) -> list[BranchRecord]:
    """Return the records that fall into ``branch_class``."""
    return [record for record in _records(stats) if classify(record, thresholds) is branch_class]


def find_dead_branches(stats: Mapping[str, BranchRecord] | Iterable[BranchRecord]) -> list[BranchRecord]:
    """Return records with neither hits nor misses."""
    return find_branches(stats, BranchClass.DEAD)


def find_hot_paths(
    stats: Mapping[str, BranchRecord] | Iterable[BranchRecord],
    thresholds: ClassificationThresholds | None = None,
) -> list[BranchRecord]:
    """Return hot records, most observed first."""
    hot = find_branches(stats, BranchClass.HOT, thresholds)
    return sorted(hot, key=lambda r: (-(r.hit_count + r.miss_count), r.branch_id))


def find_cold_paths(
    stats: Mapping[str, BranchRecord] | Iterable[BranchRecord],
    thresholds: ClassificationThresholds | None = None,
) -> list[BranchRecord]:
    """Return cold records, least observed first."""
    cold = find_branches(stats, BranchClass.COLD, thresholds)
    return sorted(cold, key=lambda r: (r.hit_count + r.miss_count, r.branch_id))


def find_unreached(branch_points: Iterable[BranchPoint], stats: Mapping[str, BranchRecord]) -> list[BranchPoint]:
    """Return instrumented branch points that never produced a record.

    These are branches whose code never ran during the observed session,
    for example a ``case`` that was never selected.
    """
    return [point for point in branch_points if point.branch_id not in stats]


def generate_report(
    stats: Mapping[str, BranchRecord],
    thresholds: ClassificationThresholds | None = None,
) -> dict[str, Any]:
    """Build a report with dead-code and hot-path recommendations.

    Args:
        stats: The statistics table.
        thresholds: Hot/cold thresholds.

    Returns:
        Dict with ``generatedAt``, ``summary``, ``recommendations``,
        ``deadCodeFiles`` and ``hotPathFiles``.
    """
    recommendations: list[dict[str, Any]] = []
    dead_files: dict[str, None] = {}
    hot_files: dict[str, None] = {}

    for record in find_dead_branches(stats):
        dead_files[record.file] = None
        recommendations.append(
            {
                'type': 'dead-code',
                'file': record.file,
                'line': record.line,
                'condition': record.condition,
                'message': f'Consider removing unused branch condition: {record.condition}',
            }
        )

    for record in find_hot_paths(stats, thresholds):
        hot_files[record.file] = None
        recommendations.append(
            {
                'type': 'hot-path',
                'file': record.file,
                'line': record.line,
                'condition': record.condition,
                'executionCount': record.hit_count + record.miss_count,
                'message': f'High-frequency branch - consider performance optimization: {record.condition}',
            }
        )

    return {
        'generatedAt': datetime.now(timezone.utc).isoformat(),
        'summary': summarize(stats, thresholds).to_dict(),
        'recommendations': recommendations,
        'deadCodeFiles': list(dead_files),
        'hotPathFiles': list(hot_files),
    }
