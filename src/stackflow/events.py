"""
Stack event tracking.

An EventTracker follows one stack operation: every tick it pulls the full
event history, shows the events it has not seen yet and decides from the
newest stack-level event whether the operation has finished.
"""

import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from .client import CloudFormationClient
from .clock import Clock, as_utc, utcnow
from .display import EventSink, format_event, resolve_sink
from .errors import ErrorKind, StackOperationFailed, StackOperationTimeout, classify_error
from .scheduler import Ticker
from .statuses import STACK_RESOURCE_TYPE, Action, is_failure, is_success

logger = logging.getLogger(__name__)


class TrackerState(Enum):
    """Lifecycle of a tracked operation."""

    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class EventTracker:
    """Poll stack events until the operation reaches a terminal status."""

    def __init__(
        self,
        client: CloudFormationClient,
        action: Action,
        stack_name: str,
        started_at: datetime,
        sink: Optional[EventSink] = None,
        max_wait: Optional[float] = None,
        clock: Clock = utcnow,
    ):
        """
        Initialize the tracker.

        Args:
            client: CloudFormation client adapter
            action: Operation being tracked
            stack_name: Stack to follow
            started_at: Watermark; older failures belong to a previous operation
            sink: Receives one formatted line per displayed event
            max_wait: Seconds to poll before giving up (None polls forever)
            clock: Source of the current UTC time
        """
        self.client = client
        self.action = Action(action)
        self.stack_name = stack_name
        self.started_at = as_utc(started_at)
        self.sink = resolve_sink(sink)
        self.max_wait = max_wait
        self.clock = clock

        self.state = TrackerState.POLLING
        self.error: Optional[BaseException] = None
        self.seen: Set[str] = set()
        self._tick_lock = threading.Lock()
        self._ticker: Optional[Ticker] = None

    @property
    def done(self) -> bool:
        return self.state is not TrackerState.POLLING

    def _fetch_events(self, fetched: List[Dict[str, Any]]) -> None:
        """Append every event page to ``fetched``, following NextToken.

        Pages already appended stay in ``fetched`` if a later call raises.
        """
        next_token = None
        while True:
            events, next_token = self.client.describe_stack_events(
                self.stack_name, next_token
            )
            fetched.extend(events)
            if not next_token:
                break

    def tick(self) -> None:
        """Run one poll cycle. Overlapping calls return without polling."""
        if self.done:
            return
        if not self._tick_lock.acquire(blocking=False):
            logger.debug(f"Skipping tick for {self.stack_name}, previous tick still running")
            return

        fetched: List[Dict[str, Any]] = []
        try:
            try:
                self._fetch_events(fetched)
            except Exception as e:
                kind = classify_error(e)
                if kind is ErrorKind.NOT_FOUND:
                    logger.info(f"Stack {self.stack_name} does not exist")
                    self._resolve(TrackerState.SUCCEEDED)
                elif kind is ErrorKind.THROTTLED:
                    logger.warning(
                        f"Throttled reading events for {self.stack_name}, "
                        f"using {len(fetched)} events fetched so far"
                    )
                    self._decide_partial(fetched)
                else:
                    self._resolve(TrackerState.FAILED, e)
                return

            self._process(fetched)
        finally:
            self._tick_lock.release()

    def _new_events(self, fetched: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        new_events = [e for e in fetched if e["EventId"] not in self.seen]
        new_events.sort(key=lambda e: as_utc(e["Timestamp"]))
        return new_events

    def _decide_partial(self, fetched: List[Dict[str, Any]]) -> None:
        """Decide on an incomplete history without marking or showing it.

        Unread older pages would otherwise surface as new on the next tick.
        """
        new_events = self._new_events(fetched)
        if new_events:
            self._decide(new_events[-1])

    def _process(self, fetched: List[Dict[str, Any]]) -> None:
        new_events = self._new_events(fetched)
        self.seen.update(e["EventId"] for e in fetched)

        for event in new_events:
            if as_utc(event["Timestamp"]) >= self.started_at:
                self.sink(format_event(event, self.action, self.stack_name))

        if new_events:
            self._decide(new_events[-1])

    def _decide(self, event: Dict[str, Any]) -> None:
        # Nested resource events never finish the operation
        if event.get("ResourceType") != STACK_RESOURCE_TYPE:
            return

        status = event.get("ResourceStatus", "")
        current = as_utc(event["Timestamp"]) >= self.started_at

        if is_failure(status) and current:
            self._resolve(
                TrackerState.FAILED,
                StackOperationFailed(
                    self.action.value, self.stack_name, event.get("ResourceStatusReason")
                ),
            )
        elif is_success(status) or is_failure(status):
            self._resolve(TrackerState.SUCCEEDED)

    def _resolve(self, state: TrackerState, error: Optional[BaseException] = None) -> None:
        self.state = state
        self.error = error
        if state is TrackerState.SUCCEEDED:
            logger.debug(f"{self.stack_name} {self.action.value} succeeded")
        else:
            logger.debug(f"{self.stack_name} {self.action.value} failed: {error}")
        if self._ticker is not None:
            self._ticker.cancel()

    def wait(self, ticker: Ticker) -> None:
        """Drive ticks until a terminal state.

        Raises:
            StackOperationFailed: a stack-level failure in this operation's window
            StackOperationTimeout: max_wait elapsed while still polling
            Exception: any unclassified error from the event fetch
        """
        self._ticker = ticker
        began = self.clock()

        def _tick() -> None:
            self.tick()
            if self.max_wait is None or self.done:
                return
            waited = (self.clock() - began).total_seconds()
            if waited >= self.max_wait:
                self._resolve(
                    TrackerState.FAILED,
                    StackOperationTimeout(self.action.value, self.stack_name, waited),
                )

        try:
            if self.done:
                ticker.cancel()
            else:
                ticker.run(_tick)
        finally:
            self._ticker = None

        if self.state is TrackerState.FAILED and self.error is not None:
            raise self.error
