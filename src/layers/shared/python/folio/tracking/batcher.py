"""Client-side event batching.

Events accumulate in memory and are delivered in FIFO batches. Session
events are delivered at once. Everything else goes out after a short
idle period, on a fixed interval, or when the page unloads. A failed
batch is put back at the front of the queue, bounded so a long outage
drops the oldest telemetry instead of growing without limit.
"""

import time
from collections.abc import Callable

import structlog

from folio.tracking.transport import Transport, TransportError

logger = structlog.get_logger()

IDLE_FLUSH_SECONDS = 2.0
MAX_INTERVAL_SECONDS = 10.0
MAX_PENDING = 1000


class EventBatcher:
    """Queues event envelopes and flushes them through a transport.

    The host drives timers by calling tick() periodically; nothing here
    starts threads.
    """

    def __init__(
        self,
        transport: Transport,
        clock: Callable[[], float] = time.monotonic,
        idle_flush_seconds: float = IDLE_FLUSH_SECONDS,
        max_interval_seconds: float = MAX_INTERVAL_SECONDS,
        max_pending: int = MAX_PENDING,
    ):
        """Initialize the batcher.

        Args:
            transport: Delivers a list of envelopes, raising TransportError on failure.
            clock: Returns the current time in seconds.
            idle_flush_seconds: Quiet period after the last event before flushing.
            max_interval_seconds: Unconditional flush interval.
            max_pending: Cap on queued events; the oldest are dropped beyond it.
        """
        self.transport = transport
        self.clock = clock
        self.idle_flush_seconds = idle_flush_seconds
        self.max_interval_seconds = max_interval_seconds
        self.max_pending = max_pending

        self._queue: list[dict] = []
        self._idle_deadline: float | None = None
        self._next_interval = clock() + max_interval_seconds
        self.dropped = 0

    @property
    def pending(self) -> int:
        return len(self._queue)

    def enqueue(self, event: dict) -> None:
        """Queue an envelope of the form {"type": ..., "data": {...}}."""
        self._queue.append(event)
        self._trim()

        if event.get("type") == "session":
            self.flush()
            return

        # Each new event restarts the idle timer
        self._idle_deadline = self.clock() + self.idle_flush_seconds

    def tick(self) -> bool:
        """Fire any timer that is due. Returns True if a flush was attempted."""
        now = self.clock()
        due = False
        if self._idle_deadline is not None and now >= self._idle_deadline:
            due = True
        if now >= self._next_interval:
            self._next_interval = now + self.max_interval_seconds
            due = True

        if due:
            self.flush()
        return due

    def flush(self) -> bool:
        """Send everything queued as one batch.

        Returns:
            True if the queue was empty or the batch was delivered.
        """
        self._idle_deadline = None
        if not self._queue:
            return True

        batch = self._queue
        self._queue = []

        try:
            self.transport.send(batch)
        except TransportError as e:
            self._queue = batch + self._queue
            self._trim()
            logger.warning("Tracking flush failed, batch re-queued", error=str(e), pending=len(self._queue))
            return False

        return True

    def flush_on_unload(self) -> bool:
        """Best-effort final flush when the page is torn down."""
        return self.flush()

    def _trim(self) -> None:
        overflow = len(self._queue) - self.max_pending
        if overflow > 0:
            del self._queue[:overflow]
            self.dropped += overflow
            logger.warning("Tracking queue full, dropped oldest events", dropped=overflow)
