"""Progress tracking and event delivery for the hashing pipeline."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, Optional

from progressed_hashing.types import WorkStatus

logger = logging.getLogger(__name__)

__all__ = ["FileCounter", "EventChannel", "FileEventGate", "ProgressFormatter"]


class FileCounter:
    """
    Shared count of files hashed so far.

    ``fetch_add`` is the only mutation; it returns the value held before the
    increment, so concurrent callers never observe the same value.
    """

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def fetch_add(self, delta: int = 1) -> int:
        with self._lock:
            previous = self._value
            self._value += delta
        return previous

    @property
    def value(self) -> int:
        return self._value


_CLOSED = object()


class EventChannel:
    """
    Unbounded FIFO from worker threads to a single asyncio consumer.

    Any thread may ``send``; only the event loop that created the channel may
    ``receive``. Once either side is closed, sends are dropped and ``send``
    returns False. Ordering of ``total_hashed_files`` across workers is up
    to the caller; ``FileEventGate`` pairs the increment with the send.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop if loop is not None else asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._lock = threading.Lock()
        self._sender_closed = False
        self._receiver_closed = False
        self._exhausted = False

    @property
    def is_closed(self) -> bool:
        return self._sender_closed or self._receiver_closed

    def send(self, status: WorkStatus) -> bool:
        """Queue an event for the consumer; no-op once the channel is closed."""
        with self._lock:
            if self._sender_closed or self._receiver_closed:
                logger.debug("Dropping %s: channel closed", type(status).__name__)
                return False
            return self._post(status)

    def close(self) -> None:
        """Mark end-of-sequence. Idempotent."""
        with self._lock:
            if self._sender_closed:
                return
            self._sender_closed = True
            self._post(_CLOSED)

    def close_receiver(self) -> None:
        """Consumer is gone; later sends are discarded."""
        with self._lock:
            self._receiver_closed = True

    async def receive(self) -> Optional[WorkStatus]:
        """Next event, or None once the channel is closed and drained."""
        if self._exhausted:
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            self._exhausted = True
            return None
        return item

    def _post(self, item) -> bool:
        # Caller holds self._lock, so posting order equals send order
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError:
            # Event loop already closed; nobody can receive any more
            self._receiver_closed = True
            logger.debug("Event loop closed; dropping further events")
            return False
        return True


class FileEventGate:
    """
    Admits per-file events until a fail-fast run halts.

    ``halt_with`` sends the aborting event and shuts the gate under the same
    lock that ``publish`` holds, so no file event can be delivered after it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._halted = False

    @property
    def halted(self) -> bool:
        return self._halted

    def publish(self, channel: EventChannel, make_status: Callable[[], WorkStatus]) -> bool:
        """Build and send an event unless halted; ``make_status`` runs under the lock."""
        with self._lock:
            if self._halted:
                return False
            return channel.send(make_status())

    def halt_with(self, channel: EventChannel, status: WorkStatus) -> bool:
        """Send ``status`` as the last file event. False if already halted."""
        with self._lock:
            if self._halted:
                return False
            self._halted = True
            channel.send(status)
            return True


class ProgressFormatter:
    """Formats progress statistics for display."""

    @staticmethod
    def format_rate(items_per_second: float) -> str:
        """Format a rate for display (e.g., '1.2k/s', '850/s')."""
        if items_per_second >= 1000:
            return f"{items_per_second / 1000:.1f}k/s"
        return f"{items_per_second:.0f}/s"

    @staticmethod
    def format_elapsed_time(seconds: float) -> str:
        if seconds >= 3600:
            hours = int(seconds // 3600)
            minutes = int((seconds % 3600) // 60)
            return f"{hours}h{minutes:02d}m"
        elif seconds >= 60:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes}m{secs:02d}s"
        else:
            return f"{seconds:.0f}s"
