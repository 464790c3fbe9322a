"""
Monitor state machine: polls the quote source and turns significant moves into alerts.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..config.models import WatcherConfig
from ..data_source import QuoteFetcher, Snapshot, calculate_change_percent, reaches
from ..errors import FetchError, SendError
from ..notifier import Notifier
from .models import MonitorState, MonitorStatus, TickOutcome


logger = logging.getLogger(__name__)


# A repeat alert inside the cooldown needs the move to grow by at least this many points
DEDUP_COOLDOWN = timedelta(minutes=5)
DEDUP_ESCALATION = 0.2

ALERT_TEMPLATE = """
{emoji} Index Move Alert {emoji}

Index: {name}
Current: {current:.2f}
Change: {direction} {magnitude:.2f}% ({change_amount:.2f} pts)
Open: {open:.2f}
High: {high:.2f}
Low: {low:.2f}
Time: {time}
Threshold: {threshold:.2f}%

Statistics:
- Change vs previous close: {magnitude:.2f}%
- Change vs open: {open_change:.2f}%
- Intraday max move vs open: {max_change:.2f}%

Mind the risk!
"""


class StockMonitor:
    """Polls one index and sends deduplicated alerts for significant moves."""

    def __init__(
        self,
        config: WatcherConfig,
        notifier: Notifier,
        fetcher: Optional[QuoteFetcher] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the monitor.

        Args:
            config: Watcher configuration
            notifier: Where alerts are delivered
            fetcher: Quote fetcher (optional, creates default if None)
            clock: Wall-clock source for the alert window (optional, uses datetime.now if None)
        """
        self.config = config
        self.notifier = notifier
        self._clock = clock or datetime.now

        if fetcher is None:
            names = config.names
            names[config.stock.code] = config.display_name
            fetcher = QuoteFetcher(names=names, clock=self._clock)
        self.fetcher = fetcher

        self._state = MonitorState()
        self._state_lock = threading.Lock()
        self._status = MonitorStatus.IDLE
        self._status_lock = threading.Lock()
        self._stop_event = threading.Event()

        logger.debug(f"StockMonitor initialized for {config.stock.code}")

    @property
    def status(self) -> MonitorStatus:
        with self._status_lock:
            return self._status

    @property
    def state(self) -> MonitorState:
        """A copy of the current state; changing it does not affect the monitor."""
        with self._state_lock:
            return self._state.model_copy(deep=True)

    def start(self) -> None:
        """
        Run the poll loop until stop() is called.

        Polls once immediately, then once per configured interval. Blocks the
        calling thread, so run it on a worker thread.

        Raises:
            RuntimeError: If the monitor is already running.
        """
        with self._status_lock:
            if self._status is MonitorStatus.RUNNING:
                raise RuntimeError("Monitor is already running")
            if self._status is MonitorStatus.STOPPED:
                logger.info("Monitor was stopped before it started, not polling")
                return
            self._status = MonitorStatus.RUNNING

        interval = self.config.monitor.interval
        logger.info(f"Monitoring {self.config.stock.code} every {interval:g}s")

        try:
            while not self._stop_event.is_set():
                self._run_tick()
                if self._stop_event.wait(interval):
                    break
        finally:
            with self._status_lock:
                self._status = MonitorStatus.STOPPED
            logger.info("Monitor stopped")

    def stop(self) -> None:
        """
        Ask the poll loop to exit at the next tick boundary. Safe to call repeatedly.

        A running monitor reports STOPPED once its loop has exited. An idle
        monitor becomes STOPPED at once and will not poll.
        """
        with self._status_lock:
            if self._stop_event.is_set():
                logger.debug("Stop requested on a monitor that is already stopping")
                return
            self._stop_event.set()
            if self._status is MonitorStatus.IDLE:
                self._status = MonitorStatus.STOPPED

        logger.info("Monitor stop requested")

    def _run_tick(self) -> None:
        try:
            self.check_stock()
        except Exception:
            logger.exception("Unexpected error during poll tick")

    def check_stock(self) -> TickOutcome:
        """
        Run a single poll tick.

        Returns:
            What the tick did, mainly useful for diagnostics and tests
        """
        try:
            snapshot = self.fetcher.fetch(self.config.stock.code)
        except FetchError as e:
            logger.error(f"Failed to fetch quote for {self.config.stock.code}: {e}")
            return TickOutcome.FETCH_FAILED

        with self._state_lock:
            return self._evaluate(snapshot)

    def _evaluate(self, snapshot: Snapshot) -> TickOutcome:
        state = self._state

        if state.last_snapshot is None:
            state.day_open = snapshot.open
            state.last_snapshot = snapshot
            state.max_change = 0.0
            state.min_change = 0.0
            logger.info(
                f"Initial data: {snapshot.name} current {snapshot.current:.2f} open {snapshot.open:.2f}"
            )
            return TickOutcome.INITIALIZED

        change = snapshot.change_percent
        open_change = calculate_change_percent(state.day_open, snapshot.current)

        state.max_change = max(state.max_change, abs(open_change))
        state.min_change = min(state.min_change, abs(open_change))

        logger.info(
            f"{snapshot.name}: current {snapshot.current:.2f} previous close {snapshot.previous:.2f} "
            f"open {snapshot.open:.2f} change {change:.2f}% (vs close) {open_change:.2f}% (vs open)"
        )

        try:
            if reaches(abs(change), self.config.stock.threshold):
                return self._deliver(snapshot, change)
            return TickOutcome.BELOW_THRESHOLD
        finally:
            state.last_snapshot = snapshot

    def _deliver(self, snapshot: Snapshot, change: float) -> TickOutcome:
        # No log outside the window
        if not self.is_within_alert_window():
            return TickOutcome.OUTSIDE_WINDOW

        if not self.should_send_alert(snapshot, change):
            logger.debug(
                f"Suppressed repeat alert: {abs(change):.2f}% vs last {self._state.last_alert_change:.2f}%"
            )
            return TickOutcome.DEDUPLICATED

        message = self.format_alert_message(snapshot, change)
        try:
            self.notifier.send(message)
        except SendError as e:
            logger.error(f"Failed to send alert: {e}")
            return TickOutcome.SEND_FAILED

        self._state.last_alert_time = snapshot.timestamp
        self._state.last_alert_change = abs(change)
        logger.info(f"Sent {abs(change):.2f}% move alert")
        return TickOutcome.SENT

    def is_within_alert_window(self) -> bool:
        """Check the current wall-clock time against the configured alert window."""
        return self.config.monitor.alert_window.contains(self._clock())

    def should_send_alert(self, snapshot: Snapshot, change: float) -> bool:
        """
        Decide whether a candidate alert is new enough to deliver.

        A candidate within the cooldown of the last delivered alert only goes
        out when its magnitude grew by at least DEDUP_ESCALATION points.
        """
        state = self._state
        if state.last_alert_time is None:
            return True

        if snapshot.timestamp - state.last_alert_time < DEDUP_COOLDOWN:
            increase = abs(change) - state.last_alert_change
            if not reaches(increase, DEDUP_ESCALATION):
                return False

        return True

    def format_alert_message(self, snapshot: Snapshot, change: float) -> str:
        """Render the alert text for a snapshot."""
        if change > 0:
            direction, emoji = "up", "📈"
        else:
            direction, emoji = "down", "📉"

        open_change = calculate_change_percent(self._state.day_open, snapshot.current)

        return ALERT_TEMPLATE.format(
            emoji=emoji,
            name=snapshot.name,
            current=snapshot.current,
            direction=direction,
            magnitude=abs(change),
            change_amount=snapshot.change_amount,
            open=snapshot.open,
            high=snapshot.high,
            low=snapshot.low,
            time=snapshot.timestamp.strftime("%H:%M:%S"),
            threshold=self.config.stock.threshold,
            open_change=abs(open_change),
            max_change=self._state.max_change,
        )
