"""Analytics reporter: pushes session snapshots to a remote endpoint.

Snapshots are sent periodically from a daemon thread and once more when the
reporter is stopped. Sending is best effort: network and HTTP errors are
logged as warnings and never reach the instrumented application.

Event payload::

    {
        "type": "execution-summary",
        "data": {"<branch id>": {...branch record...}, ...},
        "timestamp": 1718000000000,
        "sessionId": "session_1718000000000_a1b2c3d4e"
    }
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Any

import requests


if TYPE_CHECKING:
    from pytest_hotpath.runtime.collector import BranchCollector


logger = logging.getLogger(__name__)

EVENT_TYPE = 'execution-summary'
REQUEST_TIMEOUT = 10


class AnalyticsReporter:
    """Sends execution-summary events for one collector.

    Attributes:
        collector: The collector whose table is reported.
        interval: Seconds between periodic sends.
    """

    def __init__(
        self,
        collector: BranchCollector,
        interval: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the reporter.

        Args:
            collector: The collector to snapshot.
            interval: Seconds between sends. Defaults to the collector's
                ``analytics_interval`` setting.
            session: Optional requests session, e.g. with custom auth.
        """
        self.collector = collector
        self.interval = interval if interval is not None else collector.config.analytics_interval
        self._session = session
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        """Return True while the periodic thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def build_event(self) -> dict[str, Any] | None:
        """Snapshot the collector into an event.

        Returns:
            The event payload, or None when there is nothing to report.
        """
        stats = self.collector.get_branch_stats()
        if not stats:
            return None
        return {
            'type': EVENT_TYPE,
            'data': {branch_id: record.to_dict() for branch_id, record in stats.items()},
            'timestamp': int(time.time() * 1000),
            'sessionId': self.collector.session_id,
        }

    def send(self) -> bool:
        """Send one snapshot.

        Returns:
            True if an event was delivered, False if there was nothing to
            send, no endpoint, or the request failed.
        """
        endpoint = self.collector.config.analytics_endpoint
        if not endpoint:
            return False

        event = self.build_event()
        if event is None:
            return False

        post = self._session.post if self._session is not None else requests.post
        try:
            response = post(endpoint, json=event, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning('Failed to send analytics to %s: %s', endpoint, exc)
            return False

        logger.debug('Sent %d branch records to %s', len(event['data']), endpoint)
        return True

    def start(self) -> None:
        """Start sending periodically in a daemon thread."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name='hotpath-analytics', daemon=True)
        self._thread.start()

    def stop(self, flush: bool = True) -> None:
        """Stop the periodic thread.

        Args:
            flush: Send a final snapshot after stopping.
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=REQUEST_TIMEOUT + 1)
            self._thread = None
        if flush:
            self.send()

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.send()
