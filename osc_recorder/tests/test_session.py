"""
Tests for the recording session: timing, quantization and concurrency.
"""

import threading
import time

import pytest

from osc_recorder.session import Session


class TestTiming:

    def test_unquantized_time_is_since_session_start(self, fake_clock):
        session = Session(quantized=False, clock=fake_clock)
        fake_clock.advance(2.5)
        event = session.append("/a", [1])
        assert event.time == pytest.approx(2.5)

    def test_quantized_first_event_is_zero(self, fake_clock):
        session = Session(quantized=True, clock=fake_clock)
        fake_clock.advance(7.0)
        first = session.append("/a", [1])
        fake_clock.advance(0.5)
        second = session.append("/b", [2])
        assert first.time == 0.0
        assert second.time == pytest.approx(0.5)

    def test_quantized_resets_start_once(self, fake_clock):
        session = Session(quantized=True, clock=fake_clock)
        fake_clock.advance(3.0)
        session.append("/a", None)
        start = session.start_instant
        fake_clock.advance(1.0)
        session.append("/b", None)
        assert session.start_instant == start

    def test_unquantized_keeps_start(self, fake_clock):
        session = Session(clock=fake_clock)
        start = session.start_instant
        fake_clock.advance(1.0)
        session.append("/a", None)
        assert session.start_instant == start

    def test_unquantized_real_delay(self):
        session = Session(quantized=False)
        time.sleep(0.1)
        event = session.append("/a", 1)
        assert event.time == pytest.approx(0.1, abs=0.05)

    def test_quantized_messages_500ms_apart(self):
        session = Session(quantized=True)
        time.sleep(0.2)
        session.append("/a", 1)
        time.sleep(0.5)
        session.append("/b", 2)
        times = [e.time for e in session.snapshot()]
        assert times[0] == 0.0
        assert times[1] == pytest.approx(0.5, abs=0.05)


class TestLog:

    def test_append_returns_event(self, fake_clock):
        session = Session(clock=fake_clock)
        event = session.append("/a", [1, 2])
        assert event.address == "/a"
        assert event.data == [1, 2]
        assert session.snapshot() == (event,)

    def test_arrival_order_preserved(self, fake_clock):
        session = Session(clock=fake_clock)
        for i in range(5):
            fake_clock.advance(0.1)
            session.append(f"/m/{i}", i)
        assert [e.address for e in session.snapshot()] == [f"/m/{i}" for i in range(5)]
        assert len(session) == 5

    def test_snapshot_is_a_copy(self, fake_clock):
        session = Session(clock=fake_clock)
        session.append("/a", 1)
        snap = session.snapshot()
        session.append("/b", 2)
        assert len(snap) == 1
        assert len(session) == 2


class TestConcurrency:

    def test_concurrent_quantized_appends(self):
        """Only one event sits at time 0; times never go backwards."""
        session = Session(quantized=True)
        barrier = threading.Barrier(8)

        def worker(n):
            barrier.wait()
            for i in range(50):
                session.append(f"/t/{n}", i)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        events = session.snapshot()
        assert len(events) == 400
        assert events[0].time == 0.0
        times = [e.time for e in events]
        assert times == sorted(times)
        assert all(t >= 0 for t in times)

    def test_first_event_detection_is_atomic(self):
        """The quantization reset happens once, even with racing callers."""
        resets = []

        class CountingClock:
            def __init__(self):
                self._lock = threading.Lock()
                self.value = 0.0

            def __call__(self):
                with self._lock:
                    self.value += 0.001
                    return self.value

        clock = CountingClock()
        session = Session(quantized=True, clock=clock)
        barrier = threading.Barrier(4)

        def worker():
            barrier.wait()
            event = session.append("/x", None)
            if event.time == 0.0:
                resets.append(event)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(resets) == 1
        assert session.snapshot()[0].time == 0.0
