"""Tests for deriving a day's slots."""

import pytest

from courtbook.services.intervals import to_minutes
from courtbook.services.slot_generator import generate_slots


def labels(slots):
    return [f"{s.start_label}-{s.end_label}" for s in slots]


class TestGenerateSlots:
    def test_hourly_slots_fill_the_window(self):
        slots = generate_slots(to_minutes("09:00"), to_minutes("12:00"), 60)
        assert labels(slots) == ["09:00-10:00", "10:00-11:00", "11:00-12:00"]

    def test_ninety_minute_slots(self):
        slots = generate_slots(to_minutes("09:00"), to_minutes("12:00"), 90)
        assert labels(slots) == ["09:00-10:30", "10:30-12:00"]

    def test_partial_last_slot_is_dropped(self):
        slots = generate_slots(to_minutes("09:00"), to_minutes("12:00"), 70)
        assert labels(slots) == ["09:00-10:10", "10:10-11:20"]
        assert all(s.end <= to_minutes("12:00") for s in slots)

    def test_window_shorter_than_duration_is_empty(self):
        slots = generate_slots(to_minutes("09:00"), to_minutes("09:45"), 60)
        assert list(slots) == []
        assert len(slots) == 0

    def test_sequence_is_restartable(self):
        slots = generate_slots(to_minutes("06:00"), to_minutes("22:00"), 30)
        first = list(slots)
        second = list(slots)
        assert first == second
        assert len(first) == len(slots) == 32

    def test_slots_are_contiguous(self):
        slots = list(generate_slots(to_minutes("07:15"), to_minutes("21:00"), 45))
        for current, following in zip(slots, slots[1:]):
            assert current.end == following.start

    @pytest.mark.parametrize("duration", [10, 241])
    def test_duration_bounds(self, duration):
        with pytest.raises(ValueError):
            generate_slots(to_minutes("09:00"), to_minutes("12:00"), duration)

    def test_open_must_precede_close(self):
        with pytest.raises(ValueError):
            generate_slots(to_minutes("12:00"), to_minutes("09:00"), 60)


class TestAlignment:
    def setup_method(self):
        self.slots = generate_slots(to_minutes("09:00"), to_minutes("12:00"), 60)

    def test_single_and_multi_slot_runs_are_aligned(self):
        assert self.slots.is_aligned(to_minutes("10:00"), to_minutes("11:00"))
        assert self.slots.is_aligned(to_minutes("09:00"), to_minutes("11:00"))

    def test_off_grid_start_is_rejected(self):
        assert not self.slots.is_aligned(to_minutes("09:30"), to_minutes("10:30"))

    def test_partial_duration_is_rejected(self):
        assert not self.slots.is_aligned(to_minutes("09:00"), to_minutes("09:45"))

    def test_outside_window_is_rejected(self):
        assert not self.slots.is_aligned(to_minutes("11:00"), to_minutes("13:00"))
