"""
Conflict detection.

Given expanded occurrences, list the pairs that overlap on the same date.
Overlap rule:
    start < other_end AND end > other_start

This is a report only: overlapping classes are still shown (side by side,
see layout.py), nothing is rejected or merged.
"""

from __future__ import annotations

from typing import Sequence

from mytimetable.expand import group_by_date
from mytimetable.model import Occurrence


def find_conflicts(occurrences: Sequence[Occurrence]) -> list[tuple[Occurrence, Occurrence]]:
    """
    Find overlapping occurrence pairs (A,B), each pair appears once with A
    before B in canonical order.
    """
    conflicts: list[tuple[Occurrence, Occurrence]] = []

    # O(n^2) per day is fine for a weekly class schedule
    for day_occurrences in group_by_date(occurrences).values():
        for i in range(len(day_occurrences)):
            a = day_occurrences[i]
            for j in range(i + 1, len(day_occurrences)):
                b = day_occurrences[j]
                # sorted by start: nothing later can overlap a
                if b.start_minute >= a.end_minute:
                    break
                if a.overlaps(b):
                    conflicts.append((a, b))

    return conflicts
