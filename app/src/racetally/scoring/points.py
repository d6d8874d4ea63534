"""Race points table and session-length arithmetic."""
from __future__ import annotations

from collections.abc import Iterable, Sequence

# Points awarded for finishing positions 1..12.
RACE_POINTS: tuple[int, ...] = (15, 12, 10, 9, 8, 7, 6, 5, 4, 3, 2, 1)

RACES_PER_SESSION = 12
POINTS_PER_RACE = sum(RACE_POINTS)  # 82
SESSION_TOTAL_POINTS = POINTS_PER_RACE * RACES_PER_SESSION  # 984


def race_points(rank: int | None, table: Sequence[int] = RACE_POINTS) -> int:
    """Points for a finishing rank; 0 for a missing or out-of-range rank."""
    if rank is None or rank < 1 or rank > len(table):
        return 0
    return table[rank - 1]


def remaining_races(scores: Iterable[int]) -> int:
    """Estimate how many races are left from the points already handed out."""
    awarded = sum(scores)
    return max(0, (SESSION_TOTAL_POINTS - awarded) // POINTS_PER_RACE)
