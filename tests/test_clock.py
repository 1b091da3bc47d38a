from datetime import datetime

from pigeonrelay.clock import SystemClock


def test_now_lies_between_surrounding_readings():
    clock = SystemClock()
    before = datetime.now().astimezone()
    reading = clock.now()
    after = datetime.now().astimezone()
    assert before <= reading <= after


def test_now_is_timezone_aware():
    reading = SystemClock().now()
    assert reading.utcoffset() == datetime.now().astimezone().utcoffset()


def test_now_does_not_go_backwards():
    clock = SystemClock()
    first = clock.now()
    second = clock.now()
    assert second >= first