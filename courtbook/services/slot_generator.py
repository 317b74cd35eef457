"""Derive a day's candidate slots from operating hours and slot duration."""
from dataclasses import dataclass
from typing import Iterator

from courtbook.services.intervals import from_minutes

MIN_SLOT_MINUTES = 15
MAX_SLOT_MINUTES = 240


@dataclass(frozen=True)
class Slot:
    """A [start, end) interval in minutes since midnight."""

    start: int
    end: int

    @property
    def start_label(self) -> str:
        return from_minutes(self.start)

    @property
    def end_label(self) -> str:
        return from_minutes(self.end)


class SlotSequence:
    """
    Contiguous slots [open, open+d), [open+d, open+2d), ... that fit before close.

    Iterating twice yields the same slots; nothing is cached.
    """

    def __init__(self, open_minute: int, close_minute: int, duration: int):
        if not MIN_SLOT_MINUTES <= duration <= MAX_SLOT_MINUTES:
            raise ValueError(
                f"Slot duration must be between {MIN_SLOT_MINUTES} and {MAX_SLOT_MINUTES} minutes"
            )
        if open_minute >= close_minute:
            raise ValueError("Opening time must be before closing time")
        self.open_minute = open_minute
        self.close_minute = close_minute
        self.duration = duration

    def __iter__(self) -> Iterator[Slot]:
        start = self.open_minute
        while start + self.duration <= self.close_minute:
            yield Slot(start, start + self.duration)
            start += self.duration

    def __len__(self) -> int:
        return (self.close_minute - self.open_minute) // self.duration

    def is_aligned(self, start: int, end: int) -> bool:
        """Whether [start, end) is a run of whole consecutive slots."""
        if start < self.open_minute or end > self.close_minute or end <= start:
            return False
        return (start - self.open_minute) % self.duration == 0 and (end - start) % self.duration == 0


def generate_slots(open_minute: int, close_minute: int, duration: int) -> SlotSequence:
    return SlotSequence(open_minute, close_minute, duration)
