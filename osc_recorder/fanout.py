"""
Repeater Fan-out

Live forwarding of every inbound message, untouched by the scheme, to zero
or more secondary OSC destinations ("repeaters").
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from .transport import OscSender

logger = logging.getLogger(__name__)

MAX_PORT = 65535
DEFAULT_MAX_WORKERS = 8


@dataclass(frozen=True)
class RepeaterTarget:
    """Forwarding endpoint."""
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


SenderFactory = Callable[[RepeaterTarget], Any]


def parse_repeater_ports(text: Optional[str], host: str) -> List[RepeaterTarget]:
    """
    Parse a comma-separated list of repeater ports.

    Invalid entries are logged and skipped; the rest are kept.

    Args:
        text: e.g. "9001, 9002"
        host: Host every repeater sends to

    Returns:
        Valid targets in the order given
    """
    targets: List[RepeaterTarget] = []
    if not text:
        return targets

    for raw in text.split(","):
        entry = raw.strip()
        if not entry:
            continue
        try:
            port = int(entry)
        except ValueError:
            logger.warning(f"Invalid repeater port: {entry}")
            continue
        if not 0 < port <= MAX_PORT:
            logger.warning(f"Invalid repeater port: {entry}")
            continue
        targets.append(RepeaterTarget(host, port))
    return targets


def _udp_sender(target: RepeaterTarget) -> OscSender:
    return OscSender(target.host, target.port)


class RepeaterFanout:
    """
    Fire-and-forget forwarding to repeater targets.

    Contract:
    - every (message, target) pair is an independent task on a thread pool
    - the original, untransformed arguments are forwarded (copied)
    - best effort: no retry, each failure is logged for its own target
    - no ordering guarantee between targets, or relative to recording
    - forward() never waits for delivery and never raises
    """

    def __init__(
        self,
        targets: Iterable[RepeaterTarget] = (),
        sender_factory: Optional[SenderFactory] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        factory = sender_factory or _udp_sender
        self._senders: List[Tuple[RepeaterTarget, Any]] = [
            (target, factory(target)) for target in targets
        ]
        self._executor: Optional[ThreadPoolExecutor] = None
        if self._senders:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers,
                thread_name_prefix="repeater",
            )
        self._closed = threading.Event()

        for target, _ in self._senders:
            logger.info(f"Repeater → {target}")

    @property
    def targets(self) -> List[RepeaterTarget]:
        return [target for target, _ in self._senders]

    def forward(self, address: str, args: Sequence[Any]) -> None:
        """Queue one send per target with a copy of the original args."""
        if self._executor is None or self._closed.is_set():
            return
        for target, sender in self._senders:
            try:
                self._executor.submit(self._send, target, sender, address, list(args))
            except RuntimeError:
                # pool shut down between the check above and submit()
                logger.debug(f"Repeater pool closed, dropping {address} for {target}")
                return

    @staticmethod
    def _send(target: RepeaterTarget, sender: Any, address: str, args: List[Any]) -> None:
        try:
            sender.send(address, args)
        except Exception as e:
            logger.warning(f"Repeater {target} send failed for {address}: {e}")

    def close(self, wait: bool = True) -> None:
        """Stop accepting forwards and, by default, drain pending sends."""
        if self._closed.is_set():
            return
        self._closed.set()
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
