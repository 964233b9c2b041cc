"""Pairing of clock events into worked intervals."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

CLOCK_IN = "CLOCK_IN"
CLOCK_OUT = "CLOCK_OUT"

OPEN_ENTRY = "openEntry"
ORPHAN_CLOCK_OUT = "orphanClockOut"


@dataclass
class ClockPairing:
    """Worked intervals derived from one day of clock events."""

    intervals: list[tuple[datetime, datetime]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def worked_minutes(self) -> int:
        seconds = sum((end - start).total_seconds() for start, end in self.intervals)
        return int(seconds // 60)

    @property
    def has_open_entry(self) -> bool:
        return OPEN_ENTRY in self.warnings


def pair_clock_events(events: Iterable[tuple[datetime, str]]) -> ClockPairing:
    """Pair CLOCK_IN/CLOCK_OUT events in chronological order.

    A CLOCK_OUT closes the most recent open CLOCK_IN. A CLOCK_OUT with nothing
    open is skipped with an ``orphanClockOut`` warning; a CLOCK_IN left open at
    the end of the day is skipped with an ``openEntry`` warning, so the
    result is a best-effort partial day.
    """
    pairing = ClockPairing()
    open_since: datetime | None = None

    for event_time, event_type in sorted(events, key=lambda e: e[0]):
        if event_type == CLOCK_IN:
            if open_since is None:
                open_since = event_time
        elif event_type == CLOCK_OUT:
            if open_since is None:
                if ORPHAN_CLOCK_OUT not in pairing.warnings:
                    pairing.warnings.append(ORPHAN_CLOCK_OUT)
                continue
            pairing.intervals.append((open_since, event_time))
            open_since = None
        else:
            raise ValueError(f"Unknown clock event type: {event_type}")

    if open_since is not None:
        pairing.warnings.append(OPEN_ENTRY)

    return pairing


def split_overtime(worked_minutes: int, shift_minutes: int) -> int:
    """Minutes worked beyond the scheduled shift length."""
    return max(0, worked_minutes - shift_minutes)
