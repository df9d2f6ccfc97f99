"""JSON reporter for branch execution results.

Produces machine-readable JSON output for CI integration and for external
viewers of the branch data.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

    from pytest_hotpath.instrumentation.branch import BranchPoint


class JsonReporter:
    """Reporter that produces JSON output.

    JSON structure:
        {
            "sessionId": "session_1718000000000_a1b2c3d4e",
            "branchStats": {
                "src/auth.py:42:5:if#0": {
                    "branchId": "src/auth.py:42:5:if#0",
                    "file": "src/auth.py",
                    "line": 42,
                    "column": 5,
                    "type": "if",
                    "condition": "user.is_active",
                    "hitCount": 12,
                    "missCount": 3,
                    "timestamp": 1532.7
                },
                ...
            },
            "executionSummary": {"summary": {...}, "fileStats": {...}, ...},
            "config": {...},
            "unreached": [
                {"branchId": "...", "file": "...", "line": 57, "type": "switch-case", "condition": "case 'admin'"}
            ]
        }
    """

    def to_json(self, export: Mapping[str, Any], branch_points: Sequence[BranchPoint] = ()) -> str:
        """Convert an export snapshot to a JSON string.

        Args:
            export: Result of ``BranchCollector.export_data()``.
            branch_points: Instrumented branch points; those without a record
                are listed under ``unreached``.

        Returns:
            Pretty-printed JSON string.
        """
        return json.dumps(self._build_report_data(export, branch_points), indent=2)

    def write_report(
        self,
        export: Mapping[str, Any],
        output_path: Path,
        branch_points: Sequence[BranchPoint] = (),
    ) -> None:
        """Write the report to a JSON file.

        Args:
            export: Result of ``BranchCollector.export_data()``.
            output_path: Path to the output JSON file.
            branch_points: Instrumented branch points.
        """
        output_path.write_text(self.to_json(export, branch_points))

    def _build_report_data(self, export: Mapping[str, Any], branch_points: Sequence[BranchPoint]) -> dict[str, Any]:
        branch_stats = export.get('branchStats', {})
        return {
            'sessionId': export.get('sessionId'),
            'branchStats': branch_stats,
            'executionSummary': export.get('executionSummary', {}),
            'config': export.get('config'),
            'unreached': [self._build_point(p) for p in branch_points if p.branch_id not in branch_stats],
        }

    def _build_point(self, point: BranchPoint) -> dict[str, Any]:
        return {
            'branchId': point.branch_id,
            'file': point.file,
            'line': point.line,
            'column': point.column,
            'type': point.branch_type.value,
            'condition': point.condition,
        }
