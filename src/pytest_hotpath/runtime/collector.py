"""BranchCollector: the statistics table for one collection session.

Instrumented code calls ``record_hit`` or ``record_condition`` inline for every
branch evaluation. Both are synchronous and perform no I/O. ``record_hit``
returns the value it was given and ``record_condition`` returns its truth
value, so either can wrap the tested expression directly.

Example:
    >>> collector = BranchCollector()
    >>> for outcome in (True, False, True):
    ...     _ = collector.record_hit('Dashboard.py:45:8:if#0', 'if', 'user.active', outcome)
    >>> record = collector.get_branch_stats()['Dashboard.py:45:8:if#0']
    >>> (record.hit_count, record.miss_count)
    (2, 1)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
import threading
import time
from typing import TYPE_CHECKING, Any, TypeVar
import uuid

from pytest_hotpath.config import HotpathConfig
from pytest_hotpath.instrumentation.branch import parse_branch_id
from pytest_hotpath.reporting.summary import ExecutionSummary, summarize
from pytest_hotpath.runtime.sampling import SamplingGate, monotonic_ms


if TYPE_CHECKING:
    from collections.abc import Callable


T = TypeVar('T')


@dataclass
class BranchRecord:
    """Observed statistics of one branch.

    Attributes:
        branch_id: The branch id.
        file: Source file, taken from the id.
        line: 1-based line, taken from the id.
        column: 1-based column, taken from the id.
        type: Kind of construct, e.g. ``'if'``.
        condition: Source text of the tested expression.
        hit_count: Number of truthy evaluations (or case executions).
        miss_count: Number of falsy evaluations.
        timestamp: Monotonic time (ms) of the most recent recorded event.
        execution_time: Duration (ms) of the last timed event, if any.
    """

    branch_id: str
    file: str
    line: int
    column: int
    type: str
    condition: str
    hit_count: int = 0
    miss_count: int = 0
    timestamp: float = 0.0
    execution_time: float | None = None

    @classmethod
    def from_branch_id(cls, branch_id: str, branch_type: str, condition: str, timestamp: float) -> BranchRecord:
        """Create an empty record, filling position fields from the id."""
        file, line, column, _, _ = parse_branch_id(branch_id)
        return cls(
            branch_id=branch_id,
            file=file,
            line=line,
            column=column,
            type=branch_type,
            condition=condition,
            timestamp=timestamp,
        )

    @property
    def observations(self) -> int:
        """Total recorded evaluations."""
        return self.hit_count + self.miss_count

    @property
    def hit_rate(self) -> float:
        """Fraction of evaluations that were truthy, 0.0 when never evaluated."""
        if self.observations == 0:
            return 0.0
        return self.hit_count / self.observations

    def to_dict(self) -> dict[str, Any]:
        """Return the wire form of this record."""
        data: dict[str, Any] = {
            'branchId': self.branch_id,
            'file': self.file,
            'line': self.line,
            'column': self.column,
            'type': self.type,
            'condition': self.condition,
            'hitCount': self.hit_count,
            'missCount': self.miss_count,
            'timestamp': self.timestamp,
        }
        if self.execution_time is not None:
            data['executionTime'] = self.execution_time
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BranchRecord:
        """Rebuild a record from its wire form."""
        return cls(
            branch_id=data['branchId'],
            file=data['file'],
            line=data['line'],
            column=data['column'],
            type=data['type'],
            condition=data['condition'],
            hit_count=data.get('hitCount', 0),
            miss_count=data.get('missCount', 0),
            timestamp=data.get('timestamp', 0.0),
            execution_time=data.get('executionTime'),
        )


def _new_session_id() -> str:
    return f'session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}'


class BranchCollector:
    """Owns the branch statistics of one collection session.

    The table and the sampling counters are guarded by a re-entrant lock so that
    instrumented code running on several threads does not lose updates. Tested
    values are converted to bool before the lock is taken, so a ``__bool__``
    that records, or waits on another recording thread, cannot block.

    Attributes:
        session_id: Opaque id, unique per collector.
        created_at: Creation time, epoch milliseconds.
    """

    def __init__(
        self,
        config: HotpathConfig | None = None,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        """Create a collector with an empty table.

        Args:
            config: Configuration snapshot. Defaults to HotpathConfig().
            clock: Monotonic clock in milliseconds.
        """
        self._config = config if config is not None else HotpathConfig()
        self._clock = clock
        self._gate = SamplingGate(self._config.sampling)
        self._stats: dict[str, BranchRecord] = {}
        self._lock = threading.RLock()
        self.session_id = _new_session_id()
        self.created_at = int(time.time() * 1000)

    @property
    def config(self) -> HotpathConfig:
        """The configuration in force."""
        return self._config

    @property
    def gate(self) -> SamplingGate:
        """The sampling gate applied to incoming events."""
        return self._gate

    def __len__(self) -> int:
        return len(self._stats)

    def record_hit(
        self,
        branch_id: str,
        branch_type: str,
        condition: str,
        result: T,
        measure_time: bool = False,
    ) -> T:
        """Record one evaluation of a branch and return its value unchanged.

        Used where the caller needs the tested value itself, such as the left
        operand of ``and`` / ``or``.

        Args:
            branch_id: Id of the evaluated branch.
            branch_type: Kind of construct.
            condition: Source text of the tested expression.
            result: Value the tested expression produced.
            measure_time: Store how long recording took as execution_time.

        Returns:
            ``result``, untouched, whether or not the event was sampled.
        """
        self._record(branch_id, branch_type, condition, bool(result), measure_time)
        return result

    def record_condition(
        self,
        branch_id: str,
        branch_type: str,
        condition: str,
        result: object,
        measure_time: bool = False,
    ) -> bool:
        """Record one evaluation of a branch and return its truth value.

        ``bool(result)`` is computed once, so a custom ``__bool__`` runs once
        per evaluation when the caller branches on the returned value.

        Args:
            branch_id: Id of the evaluated branch.
            branch_type: Kind of construct.
            condition: Source text of the tested expression.
            result: Value the tested expression produced.
            measure_time: Store how long recording took as execution_time.

        Returns:
            ``bool(result)``, whether or not the event was sampled.
        """
        truthy = bool(result)
        self._record(branch_id, branch_type, condition, truthy, measure_time)
        return truthy

    def _record(self, branch_id: str, branch_type: str, condition: str, truthy: bool, measure_time: bool) -> None:
        # Callers convert to bool before this point: user code must not run under the lock.
        now = self._clock()
        with self._lock:
            if self._config.sampling.enabled and not self._gate.admit(now):
                return

            record = self._stats.get(branch_id)
            if record is None:
                record = BranchRecord.from_branch_id(branch_id, branch_type, condition, now)
                self._stats[branch_id] = record

            if truthy:
                record.hit_count += 1
            else:
                record.miss_count += 1
            record.timestamp = now

            if measure_time:
                record.execution_time = self._clock() - now

    def get_branch_stats(self) -> dict[str, BranchRecord]:
        """Return an independent copy of the statistics table."""
        with self._lock:
            return {branch_id: replace(record) for branch_id, record in self._stats.items()}

    def get_execution_summary(self) -> ExecutionSummary:
        """Summarize the current table."""
        return summarize(self.get_branch_stats(), self._config.thresholds)

    def clear_stats(self) -> None:
        """Drop every record and reset the sampling gate."""
        with self._lock:
            self._stats = {}
            self._gate.reset()

    def update_config(self, partial: Mapping[str, Any]) -> HotpathConfig:
        """Merge ``partial`` into the configuration.

        Sampling counters are kept; the new sampling settings apply from the
        next event on.

        Args:
            partial: Field names mapped to new values; ``sampling`` and
                ``thresholds`` may be partial mappings.

        Returns:
            The new configuration.
        """
        with self._lock:
            self._config = self._config.merged(partial)
            self._gate.config = self._config.sampling
            return self._config

    def import_data(self, data: Mapping[str, Any]) -> None:
        """Merge previously exported branch statistics into the table.

        Imported records replace existing records with the same id.

        Args:
            data: A mapping with a ``branchStats`` entry in wire form, as
                produced by ``export_data``.
        """
        records = {
            branch_id: record if isinstance(record, BranchRecord) else BranchRecord.from_dict(record)
            for branch_id, record in data.get('branchStats', {}).items()
        }
        with self._lock:
            self._stats.update(records)

    def export_data(self) -> dict[str, Any]:
        """Return a JSON-ready snapshot of the session.

        Returns:
            Dict with ``branchStats``, ``executionSummary``, ``config`` and
            ``sessionId``.
        """
        stats = self.get_branch_stats()
        return {
            'branchStats': {branch_id: record.to_dict() for branch_id, record in stats.items()},
            'executionSummary': summarize(stats, self._config.thresholds).to_dict(),
            'config': self._config.to_dict(),
            'sessionId': self.session_id,
        }
