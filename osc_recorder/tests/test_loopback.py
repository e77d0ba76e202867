"""
End-to-end tests over real UDP sockets on 127.0.0.1.

Record through OscListener with a live repeater, flush, load and replay to
a second listener.
"""

import threading
import time

import pytest
from pythonosc import udp_client

from conftest import wait_for

from osc_recorder.fanout import RepeaterFanout, RepeaterTarget
from osc_recorder.persistence import flush_events, load_events
from osc_recorder.recorder import Recorder
from osc_recorder.replay import ReplayScheduler, ReplayState
from osc_recorder.schemes import SchemeRegistry
from osc_recorder.session import Session
from osc_recorder.transport import OscListener, OscSender


class Sink:
    """Collects (monotonic time, address, args) from an OscListener."""

    def __init__(self):
        self.received = []
        self._lock = threading.Lock()
        self.listener = OscListener("127.0.0.1", 0, self._handle)

    def _handle(self, address, *args):
        with self._lock:
            self.received.append((time.monotonic(), address, list(args)))

    @property
    def port(self):
        return self.listener.server_address[1]

    @property
    def messages(self):
        with self._lock:
            return [(address, args) for _, address, args in self.received]


@pytest.fixture
def sink():
    s = Sink()
    s.listener.start()
    yield s
    s.listener.stop()


def test_listener_reports_bound_port(sink):
    assert sink.port > 0


def test_sender_round_trip(sink):
    OscSender("127.0.0.1", sink.port).send("/x", [1, 2.5, "s", True])
    assert wait_for(lambda: sink.messages)
    address, args = sink.messages[0]
    assert address == "/x"
    assert args[0] == 1
    assert args[1] == pytest.approx(2.5)
    assert args[2:] == ["s", True]


def test_record_with_repeater_then_replay(tmp_path, sink):
    repeater_sink = Sink()
    repeater_sink.listener.start()
    try:
        fanout = RepeaterFanout([RepeaterTarget("127.0.0.1", repeater_sink.port)])
        session = Session(quantized=True)
        recorder = Recorder(
            SchemeRegistry.default().get("dirt_strip"), session, tmp_path / "s.json", fanout
        )
        listener = OscListener("127.0.0.1", 0, recorder.handle_message)
        listener.start()

        client = udp_client.SimpleUDPClient("127.0.0.1", listener.server_address[1])
        client.send_message("/dirt/play", ["s", "bd", "n", 1])
        time.sleep(0.2)
        client.send_message("/dirt/play", ["s", "hh", "n", 2])

        assert wait_for(lambda: len(session) == 2)
        assert wait_for(lambda: len(repeater_sink.messages) == 2)
        listener.stop()
        fanout.close()

        # repeaters get the untransformed message
        assert repeater_sink.messages[0] == ("/dirt/play", ["s", "bd", "n", 1])

        flush_events(session.snapshot(), recorder.output_path)
    finally:
        repeater_sink.listener.stop()

    events = load_events(tmp_path / "s.json")
    assert [e.data for e in events] == [["bd", 1], ["hh", 2]]
    assert events[0].time == 0.0

    result = ReplayScheduler(OscSender("127.0.0.1", sink.port)).run(events, speed=1.0)
    assert result.state is ReplayState.COMPLETED
    assert wait_for(lambda: len(sink.messages) == 2)
    assert sink.messages == [("/dirt/play", ["bd", 1]), ("/dirt/play", ["hh", 2])]

    gap = sink.received[1][0] - sink.received[0][0]
    assert gap == pytest.approx(events[1].time - events[0].time, abs=0.05)
