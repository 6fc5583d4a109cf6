"""Half-open interval overlap checks for shifts."""
from datetime import datetime
from typing import Iterable, List, Optional, Protocol


class TimeSpan(Protocol):
    id: Optional[str]
    start: datetime
    end: datetime


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """True when [a_start, a_end) and [b_start, b_end) share any instant.

    Touching spans (a_end == b_start) do not overlap.
    """
    return a_end > b_start and a_start < b_end


def find_overlapping(
    shift_id: Optional[str],
    start: datetime,
    end: datetime,
    existing: Iterable[TimeSpan],
) -> List[TimeSpan]:
    """Return the spans in ``existing`` that overlap [start, end), ignoring ``shift_id`` itself"""
    return [
        other
        for other in existing
        if other.id != shift_id and intervals_overlap(other.start, other.end, start, end)
    ]
