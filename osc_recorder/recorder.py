"""
Recorder Service

Wires the pieces of the recording path together:

    inbound message -> scheme -> Session.append -> repeater fan-out
    shutdown        -> Session.snapshot -> flush_events

finalize() only flushes and reports; deciding the exit status is left to
the caller.
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from .fanout import RepeaterFanout
from .model import normalize_arg
from .persistence import PersistenceError, flush_events
from .schemes import SchemeFn
from .session import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlushResult:
    """Outcome of the shutdown flush."""
    count: int
    path: Path
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Recorder:
    """
    Records inbound OSC messages into a Session.

    handle_message() has the python-osc default-handler signature and is
    safe to call from the server's handler threads.
    """

    def __init__(
        self,
        scheme: SchemeFn,
        session: Session,
        output_path: Union[str, Path],
        fanout: Optional[RepeaterFanout] = None,
    ):
        self.scheme = scheme
        self.session = session
        self.output_path = Path(output_path)
        self.fanout = fanout
        self._finalize_lock = threading.Lock()
        self._result: Optional[FlushResult] = None

    def handle_message(self, address: str, *args: Any) -> None:
        values = [normalize_arg(arg) for arg in args]
        new_address, data = self.scheme(address, values)
        event = self.session.append(new_address, data)
        logger.debug(f"[{event.time:.4f}] {event.address} => {event.data}")

        if self.fanout is not None:
            self.fanout.forward(address, args)

    def finalize(self) -> FlushResult:
        """
        Flush the session to the output file, once.

        Later calls (e.g. a second signal arriving mid-flush) return the
        first result without writing again.
        """
        with self._finalize_lock:
            if self._result is not None:
                logger.debug("Session already finalized")
                return self._result

            events = self.session.snapshot()
            try:
                count = flush_events(events, self.output_path)
            except PersistenceError as e:
                logger.error(str(e))
                self._result = FlushResult(0, self.output_path, e)
            else:
                self._result = FlushResult(count, self.output_path)
            return self._result

    @property
    def finalized(self) -> bool:
        return self._result is not None
