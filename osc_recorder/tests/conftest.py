"""
Pytest configuration and fixtures for osc_recorder tests.
"""

import socket
import threading
import time
from typing import Any, List, Optional, Set, Tuple

import pytest


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSender:
    """
    Sender double that records (timestamp, address, args).

    Addresses listed in fail_on raise OSError instead of being recorded.
    """

    def __init__(self, clock=time.monotonic, fail_on: Optional[Set[str]] = None):
        self.clock = clock
        self.fail_on = set(fail_on or ())
        self.sent: List[Tuple[float, str, List[Any]]] = []
        self._lock = threading.Lock()

    def send(self, address: str, args: List[Any]) -> None:
        if address in self.fail_on:
            raise OSError(f"simulated failure for {address}")
        with self._lock:
            self.sent.append((self.clock(), address, list(args)))

    @property
    def messages(self) -> List[Tuple[str, List[Any]]]:
        return [(address, args) for _, address, args in self.sent]

    @property
    def times(self) -> List[float]:
        return [t for t, _, _ in self.sent]


@pytest.fixture
def fake_clock():
    """Clock starting at an arbitrary non-zero instant."""
    return FakeClock()


@pytest.fixture
def sender():
    """Sender recording real monotonic send times."""
    return RecordingSender()


@pytest.fixture
def free_udp_port():
    """A UDP port on 127.0.0.1 that was free a moment ago."""
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


def wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False
