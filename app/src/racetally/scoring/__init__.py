"""Team score aggregation."""
from .aggregator import ScoreAggregator, enforce_single_current_player, merge_teams_by_initial
from .points import RACE_POINTS, race_points, remaining_races

__all__ = [
    "RACE_POINTS",
    "ScoreAggregator",
    "enforce_single_current_player",
    "merge_teams_by_initial",
    "race_points",
    "remaining_races",
]
