"""
Replay Scheduler

Re-emits a recorded session to an OSC destination, one message at a time,
reconstructing the recorded gaps scaled by a speed factor.

    speed 2.0 -> twice as fast, 0.5 -> half speed

States:
    LOADED -> SCHEDULING -> SENT -> SCHEDULING -> ... -> COMPLETED
Terminal states are COMPLETED, CANCELLED and LOAD_FAILED (the latter is
reported by the caller when the file never loads).
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, List, Optional, Sequence, Union

from .model import Argument, ArgKind, RecordedEvent, kind_of

logger = logging.getLogger(__name__)

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

# Event.wait overflows past threading.TIMEOUT_MAX; long gaps wait in slices
MAX_WAIT_SECONDS = min(threading.TIMEOUT_MAX, 3600.0)

WireArg = Union[int, float, str, bool]


# =============================================================================
# COERCION
# =============================================================================

def to_wire_args(data: Argument) -> List[WireArg]:
    """
    Convert recorded data into an outbound OSC argument list.

    - integral float (and int) in int32 range -> int
    - other float, or integral value outside int32 range -> float
    - str and bool pass through
    - list flattens recursively, in order
    - None contributes no argument; it is a known kind, so it is not
      stringified to "None" like the fallback below
    - anything else becomes its string form

    Example:
        to_wire_args([1.0, 0.5, ["a", True]]) -> [1, 0.5, "a", True]
    """
    out: List[WireArg] = []
    _append_wire_arg(out, data)
    return out


def _append_wire_arg(out: List[WireArg], value: Any) -> None:
    kind = kind_of(value)
    if kind is ArgKind.LIST:
        for item in value:
            _append_wire_arg(out, item)
    elif kind is ArgKind.FLOAT:
        if value.is_integer() and INT32_MIN <= value <= INT32_MAX:
            out.append(int(value))
        else:
            out.append(value)
    elif kind is ArgKind.INTEGER:
        if INT32_MIN <= value <= INT32_MAX:
            out.append(value)
        else:
            out.append(float(value))
    elif kind in (ArgKind.STRING, ArgKind.BOOLEAN):
        out.append(value)
    elif kind is ArgKind.NULL:
        return
    else:
        out.append(str(value))


# =============================================================================
# SCHEDULER
# =============================================================================

class ReplayState(Enum):
    LOADED = auto()
    SCHEDULING = auto()
    SENT = auto()
    COMPLETED = auto()
    CANCELLED = auto()
    LOAD_FAILED = auto()


@dataclass
class ReplayResult:
    """Outcome of one replay pass."""
    sent: int = 0
    failed: int = 0
    state: ReplayState = ReplayState.LOADED
    elapsed_seconds: float = 0.0

    @property
    def attempted(self) -> int:
        return self.sent + self.failed


class ReplayScheduler:
    """
    Sequential, wall-clock paced replay.

    Events are sent in the order given; the file is assumed sorted by time
    and is not re-sorted. Late events are sent immediately, never skipped.
    A failed send is logged and replay moves on.

    The only suspension point is the wait before each send. It waits on the
    cancel event, so cancel() (e.g. from a signal handler) stops replay
    promptly.

    Args:
        sender: Object with send(address, args)
        clock: Monotonic clock in seconds
        wait: Callable(seconds) -> True if cancelled while waiting;
            defaults to the cancel event's wait()
    """

    def __init__(
        self,
        sender: Any,
        clock: Callable[[], float] = time.monotonic,
        wait: Optional[Callable[[float], bool]] = None,
    ):
        self._sender = sender
        self._clock = clock
        self._cancel = threading.Event()
        self._wait = wait or self._cancel.wait
        self.state = ReplayState.LOADED

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        self._cancel.set()

    def run(self, events: Sequence[RecordedEvent], speed: float = 1.0) -> ReplayResult:
        """
        Replay events at the given speed factor.

        Raises:
            ValueError: If speed is not a positive finite number
        """
        if not (speed > 0 and math.isfinite(speed)):
            raise ValueError(f"Speed factor must be > 0, got {speed}")

        result = ReplayResult()
        if not events:
            logger.info("No messages to replay")
            self.state = result.state = ReplayState.COMPLETED
            return result

        replay_start = self._clock()
        first_time = events[0].time

        for event in events:
            self.state = ReplayState.SCHEDULING
            scheduled = (event.time - first_time) / speed
            if self._wait_until(replay_start + scheduled):
                break
            if self._cancel.is_set():
                break

            self._send(event, result)
            self.state = ReplayState.SENT

        result.elapsed_seconds = self._clock() - replay_start
        if self._cancel.is_set() and result.attempted < len(events):
            self.state = ReplayState.CANCELLED
            logger.info(f"Replay cancelled after {result.sent} of {len(events)} messages")
        else:
            self.state = ReplayState.COMPLETED
            logger.info(
                f"Replay completed: {result.sent} sent, {result.failed} failed "
                f"in {result.elapsed_seconds:.2f}s"
            )
        result.state = self.state
        return result

    def _wait_until(self, deadline: float) -> bool:
        """Wait until the clock reaches deadline; True if cancelled."""
        to_wait = deadline - self._clock()
        while to_wait > MAX_WAIT_SECONDS:
            if self._wait(MAX_WAIT_SECONDS):
                return True
            to_wait = deadline - self._clock()
        return to_wait > 0 and self._wait(to_wait)

    def _send(self, event: RecordedEvent, result: ReplayResult) -> None:
        args = to_wire_args(event.data)
        try:
            self._sender.send(event.address, args)
        except Exception as e:
            result.failed += 1
            logger.warning(f"Failed to send {event.address}: {e}")
            return
        result.sent += 1
        logger.debug(f"[{event.time:.4f}] Sent -> {event.address} {args}")
