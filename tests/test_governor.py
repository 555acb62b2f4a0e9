import threading

import pytest

from sitecheck.governor import RateGovernor


def test_observe_weights_newest_sample_by_a_tenth():
    governor = RateGovernor()
    assert governor.observe(2.0) == pytest.approx(1.1)
    assert governor.average_latency == pytest.approx(1.1)


def test_constant_duration_converges():
    governor = RateGovernor()
    for _ in range(300):
        governor.observe(3.0)
    assert governor.average_latency == pytest.approx(3.0)


def test_next_delay_has_a_floor():
    governor = RateGovernor()
    assert governor.next_delay() == 1.0
    for _ in range(50):
        governor.observe(0.01)
    assert governor.next_delay() == 1.0


def test_next_delay_tracks_slow_sites():
    governor = RateGovernor(initial_latency=4.0)
    assert governor.next_delay() == pytest.approx(3.5)


def test_concurrent_observations():
    governor = RateGovernor(initial_latency=2.0)

    def worker():
        for _ in range(500):
            governor.observe(2.0)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert governor.average_latency == pytest.approx(2.0)
