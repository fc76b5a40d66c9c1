"""
Clock Tests.
"""

from datetime import datetime, timezone

import pytest

from core.clock import ClockProtocol, MockClock, SystemClock


START = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestMockClock:
    """Tests for MockClock."""

    def test_timestamp_ms(self):
        clock = MockClock(START)

        assert clock.timestamp_ms() == int(START.timestamp() * 1000)

    def test_advance(self):
        clock = MockClock(START)
        clock.advance(90)
        clock.advance(hours=1)

        assert clock.timestamp() == START.timestamp() + 3690

    def test_naive_time_treated_as_utc(self):
        clock = MockClock(datetime(2024, 1, 1))

        assert clock.timestamp() == START.timestamp()

    def test_set_time(self):
        clock = MockClock(START)
        clock.set_time(datetime(2024, 1, 2, tzinfo=timezone.utc))

        assert clock.timestamp() == START.timestamp() + 86400


class TestClockProtocol:
    """Tests for the clock interface."""

    def test_timestamp_is_the_only_abstract_method(self):
        assert ClockProtocol.__abstractmethods__ == frozenset({"timestamp"})

    def test_system_clock_moves_forward(self):
        clock = SystemClock()
        first = clock.timestamp()

        assert clock.timestamp() >= first
        assert clock.timestamp_ms() >= int(first * 1000)

    def test_protocol_not_instantiable(self):
        with pytest.raises(TypeError):
            ClockProtocol()
