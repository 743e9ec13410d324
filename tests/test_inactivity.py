import pytest

from app.services.inactivity import InactivityMonitor


def test_default_threshold_is_ten_minutes():
    assert InactivityMonitor().max_inactivity_seconds == 600


def test_inactivity_is_floored_to_whole_seconds():
    check = InactivityMonitor(60).evaluate(now=100.9, last_accessed=50.0)
    assert check.inactivity == 50
    assert check.expired is False


def test_expires_exactly_at_threshold():
    monitor = InactivityMonitor(60)
    assert monitor.evaluate(now=159.99, last_accessed=100.0).expired is False
    assert monitor.evaluate(now=160.0, last_accessed=100.0).expired is True


def test_clock_skew_never_goes_negative():
    check = InactivityMonitor(60).evaluate(now=90.0, last_accessed=100.0)
    assert check.inactivity == 0
    assert check.expired is False


@pytest.mark.parametrize("threshold", [0, -5])
def test_rejects_non_positive_threshold(threshold):
    with pytest.raises(ValueError):
        InactivityMonitor(threshold)
