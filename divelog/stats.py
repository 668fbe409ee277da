"""Dashboard aggregates computed from a collection of dives"""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Union

from .dives import Dive
from .units import round_half_up

MONTH_ABBREVIATIONS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                       'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


@dataclass
class DiveStatistics:
    """Totals and extremes over a dive log"""
    total_dives: int = 0
    total_bottom_time: int = 0
    max_depth: float = 0
    avg_depth: float = 0
    unique_locations: int = 0
    last_dive_date: Optional[datetime] = None
    deepest_dive: Optional[Dive] = None
    longest_dive: Optional[Dive] = None


def calculate_dive_statistics(dives: Sequence[Dive]) -> DiveStatistics:
    """Aggregate a dive log; an empty log gives zeroes and Nones"""
    if not dives:
        return DiveStatistics()

    # Strict comparison keeps the earliest dive on ties
    deepest = dives[0]
    longest = dives[0]
    for dive in dives[1:]:
        if dive.depth > deepest.depth:
            deepest = dive
        if dive.duration > longest.duration:
            longest = dive

    return DiveStatistics(
        total_dives=len(dives),
        total_bottom_time=sum(dive.duration for dive in dives),
        max_depth=max(dive.depth for dive in dives),
        avg_depth=round_half_up(sum(dive.depth for dive in dives) / len(dives), 1),
        unique_locations=len({dive.location for dive in dives}),
        last_dive_date=max(dive.datetime for dive in dives),
        deepest_dive=deepest,
        longest_dive=longest,
    )


def month_label(when: datetime) -> str:
    """'May 2024' style label, independent of the process locale"""
    return f"{MONTH_ABBREVIATIONS[when.month - 1]} {when.year}"


def get_dives_by_month(dives: Sequence[Dive]) -> List[Dict[str, Union[str, int]]]:
    """Count dives per calendar month, oldest month first"""
    counts = Counter((dive.datetime.year, dive.datetime.month) for dive in dives)
    return [
        {'month': month_label(datetime(year, month, 1)), 'count': counts[(year, month)]}
        for year, month in sorted(counts)
    ]


def get_recent_dives(dives: Sequence[Dive], count: int = 5) -> List[Dive]:
    """The most recent dives, newest first

    The order of dives sharing the same timestamp is not defined.
    """
    return sorted(dives, key=lambda dive: dive.datetime, reverse=True)[:count]
