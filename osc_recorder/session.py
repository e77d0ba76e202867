"""
Recording Session

Owns the session start instant, the quantization flag and the ordered,
append-only event log. All mutation goes through append(), which runs
under the session lock.
"""

import logging
import threading
import time
from typing import Callable, List, Tuple

from .model import Argument, RecordedEvent

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class Session:
    """
    A single recording session.

    The OSC server may call append() from several handler threads at once.
    The quantization check, the start reset and the append form one
    critical section, so only the first event can ever reset the start
    and a quantized log always begins at time 0.

    Example:
        session = Session(quantized=True)
        session.append("/a", [1])   # time == 0.0
        session.append("/b", [2])   # time == seconds since /a
        events = session.snapshot()
    """

    def __init__(self, quantized: bool = False, clock: Clock = time.monotonic):
        self._quantized = quantized
        self._clock = clock
        self._lock = threading.Lock()
        self._start = clock()
        self._events: List[RecordedEvent] = []

    @property
    def quantized(self) -> bool:
        return self._quantized

    @property
    def start_instant(self) -> float:
        with self._lock:
            return self._start

    def append(self, address: str, data: Argument) -> RecordedEvent:
        """
        Record one transformed message.

        Args:
            address: OSC address (after the scheme)
            data: Transformed payload

        Returns:
            The RecordedEvent that was appended
        """
        with self._lock:
            now = self._clock()
            if self._quantized and not self._events:
                self._start = now
                logger.debug("Quantized session: start reset at first message")
            elapsed = max(now - self._start, 0.0)
            event = RecordedEvent(time=elapsed, address=address, data=data)
            self._events.append(event)
            return event

    def snapshot(self) -> Tuple[RecordedEvent, ...]:
        """Consistent copy of the log, taken under the session lock."""
        with self._lock:
            return tuple(self._events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
