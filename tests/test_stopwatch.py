import pytest

from heimdall.stopwatch import Stopwatch


def fake_clock(*times):
    values = iter(times)
    return lambda: next(values)


def test_single_session():
    t0, t1 = 1.0, 1.5
    watch = Stopwatch(clock=fake_clock(t0, t1))
    watch.start()
    watch.stop()
    assert watch.running is False
    assert watch.sessions == 1
    assert watch.elapsed() == pytest.approx(t1 - t0)
    assert watch.average() == pytest.approx((t1 - t0) * 1000)


def test_elapsed_includes_running_session():
    t0, t1 = 10.0, 10.25
    watch = Stopwatch(clock=fake_clock(t0, t1))
    watch.start()
    assert watch.elapsed() == pytest.approx(t1 - t0)
    assert watch.running is True


def test_sessions_accumulate_and_average():
    times = (0.0, 1.0, 2.0, 5.0)
    watch = Stopwatch(clock=fake_clock(*times))
    watch.start()
    watch.stop()
    watch.start()
    watch.stop()
    total = (times[1] - times[0]) + (times[3] - times[2])
    assert watch.sessions == 2
    assert watch.elapsed() == pytest.approx(total)
    assert watch.average() == pytest.approx(watch.elapsed() * 1000 / 2)


def test_reset_zeroes_totals_and_restarts_running_session():
    times = (0.0, 1.0, 3.0, 4.0, 4.5)
    watch = Stopwatch(clock=fake_clock(*times))
    watch.start()
    watch.stop()
    watch.start()
    watch.reset()
    assert watch.sessions == 0
    assert watch.elapsed() == pytest.approx(times[4] - times[3])


def test_average_without_sessions_raises():
    with pytest.raises(ZeroDivisionError):
        Stopwatch().average()


def test_stop_without_start_raises():
    with pytest.raises(RuntimeError):
        Stopwatch().stop()


def test_context_manager_records_session():
    t0, t1 = 2.0, 2.75
    with Stopwatch(clock=fake_clock(t0, t1)) as watch:
        assert watch.running is True
    assert watch.sessions == 1
    assert watch.elapsed() == pytest.approx(t1 - t0)