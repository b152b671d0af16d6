"""
Collision layout.

Occurrences of one day that overlap in time are drawn side by side. Each one
gets a track (horizontal lane) and every occurrence of the day shares the same
track count, so the renderer can use width = 1 / total_tracks.

Greedy assignment over a per-minute occupancy map:
- sort by (start, end), earlier first
- take the lowest track free during every minute of [start, end)
This never puts two overlapping occurrences on one track. It is not always the
narrowest possible layout.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Sequence

from mytimetable.model import Occurrence, TrackAssignment


def _layout_key(occ: Occurrence) -> tuple[int, int, int]:
    return (occ.start_minute, occ.end_minute, occ.order)


def layout(day_occurrences: Sequence[Occurrence]) -> dict[Occurrence, TrackAssignment]:
    """
    Assign (track, total_tracks) to occurrences sharing one calendar date.
    Raises ValueError if the occurrences are not all on the same date.
    """
    if not day_occurrences:
        return {}

    dates = {occ.date for occ in day_occurrences}
    if len(dates) > 1:
        raise ValueError(f"layout() expects occurrences of one date, got {len(dates)} dates")

    # minute of day -> tracks occupied during that minute
    occupied: dict[int, set[int]] = defaultdict(set)
    tracks: dict[Occurrence, int] = {}

    for occ in sorted(day_occurrences, key=_layout_key):
        span = range(occ.start_minute, occ.end_minute)
        track = 0
        while any(track in occupied[m] for m in span):
            track += 1
        for m in span:
            occupied[m].add(track)
        tracks[occ] = track

    total = max(tracks.values()) + 1
    return {occ: TrackAssignment(track=t, total_tracks=total) for occ, t in tracks.items()}


def layout_days(occurrences: Sequence[Occurrence]) -> dict[date, dict[Occurrence, TrackAssignment]]:
    """Run layout() separately for every date present in occurrences."""
    by_date: dict[date, list[Occurrence]] = defaultdict(list)
    for occ in occurrences:
        by_date[occ.date].append(occ)
    return {d: layout(by_date[d]) for d in sorted(by_date)}
