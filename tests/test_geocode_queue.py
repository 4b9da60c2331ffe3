import threading
import time

import pytest

from geocoding.queue import ADDRESS_LOOKUP_FAILED, GeocodeQueue

from tests.fakes import FakeGeocoder

INTERVAL = 0.2


@pytest.fixture
def geocode_queue(fake_geocoder):
    q = GeocodeQueue(fake_geocoder, min_interval_sec=INTERVAL)
    yield q
    q.close(timeout=5)


def test_simultaneous_submissions_complete_in_order_and_spaced(geocode_queue, fake_geocoder):
    completions = []
    lock = threading.Lock()

    def record(name):
        def _done(future):
            with lock:
                completions.append((name, future.result(), time.monotonic()))
        return _done

    futures = []
    for name, coordinate in [("X", (10.0, -66.0)), ("Y", (10.1, -66.1)), ("Z", (10.2, -66.2))]:
        future = geocode_queue.enqueue(coordinate)
        future.add_done_callback(record(name))
        futures.append(future)

    results = [f.result(timeout=5) for f in futures]

    assert results == ["addr 10.0,-66.0", "addr 10.1,-66.1", "addr 10.2,-66.2"]
    assert [name for name, _, _ in completions] == ["X", "Y", "Z"]
    assert fake_geocoder.calls == [(10.0, -66.0), (10.1, -66.1), (10.2, -66.2)]

    times = [t for _, _, t in completions]
    for earlier, later in zip(times, times[1:]):
        assert later - earlier >= INTERVAL * 0.95


def test_failure_resolves_to_placeholder_and_queue_keeps_going():
    geocoder = FakeGeocoder(fail_on={(10.1, -66.1)})
    with GeocodeQueue(geocoder, min_interval_sec=0) as q:
        first = q.enqueue((10.1, -66.1))
        second = q.enqueue((10.2, -66.2))

        assert first.result(timeout=5) == ADDRESS_LOOKUP_FAILED
        assert second.result(timeout=5) == "addr 10.2,-66.2"


def test_unexpected_errors_do_not_kill_the_worker(caplog):
    class ExplodingGeocoder(FakeGeocoder):
        def reverse(self, lat, lon):
            if lat == 1.0:
                raise RuntimeError("boom")
            return super().reverse(lat, lon)

    with GeocodeQueue(ExplodingGeocoder(), min_interval_sec=0) as q:
        assert q.enqueue((1.0, 1.0)).result(timeout=5) == ADDRESS_LOOKUP_FAILED
        assert q.enqueue((2.0, 2.0)).result(timeout=5) == "addr 2.0,2.0"
    assert "Unexpected error" in caplog.text


def test_first_request_is_not_delayed(fake_geocoder):
    sleeps = []
    with GeocodeQueue(fake_geocoder, min_interval_sec=5, sleep=sleeps.append) as q:
        q.enqueue((1.0, 1.0)).result(timeout=5)
    assert sleeps == []


def test_spacing_uses_injected_clock(fake_geocoder):
    now = [100.0]
    sleeps = []

    def fake_sleep(seconds):
        sleeps.append(seconds)
        now[0] += seconds

    with GeocodeQueue(fake_geocoder, min_interval_sec=1.0, clock=lambda: now[0], sleep=fake_sleep) as q:
        futures = [q.enqueue((float(i), float(i))) for i in range(3)]
        for f in futures:
            f.result(timeout=5)

    assert sleeps == [pytest.approx(1.0), pytest.approx(1.0)]


def test_enqueue_after_close_raises(fake_geocoder):
    q = GeocodeQueue(fake_geocoder, min_interval_sec=0)
    q.close()
    with pytest.raises(RuntimeError):
        q.enqueue((1.0, 1.0))


def test_close_drains_queued_entries(fake_geocoder):
    q = GeocodeQueue(fake_geocoder, min_interval_sec=0.01)
    futures = [q.enqueue((float(i), 0.0)) for i in range(3)]
    q.close(timeout=5)
    assert all(f.done() for f in futures)


def test_invalid_coordinate_is_rejected_up_front(geocode_queue):
    with pytest.raises(ValueError):
        geocode_queue.enqueue((200.0, 50.0))
