"""Fold resolved race results into the cumulative team score ledger."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from ..db.enums import ScoreMode
from ..identity.names import initial_key
from ..schemas import RawPlayerResult, ScoreLedgerEntry
from .points import RACE_POINTS, race_points

logger = logging.getLogger(__name__)


class ScoreAggregator:
    """
    Applies one batch of results to the ledger.

    Per-race batches add rank points to each team's running total. Total-score
    batches replace the totals of the reported teams with the on-screen value.
    A team with a highlighted self row takes the current-player flag from
    whichever team held it. Both end with the first-letter merge pass and the
    single-current-player rule.
    """

    def __init__(self, points_table: Sequence[int] = RACE_POINTS) -> None:
        self.points_table = tuple(points_table)

    def apply(
        self,
        ledger: Iterable[ScoreLedgerEntry],
        results: Iterable[RawPlayerResult],
        mode: ScoreMode,
        *,
        manual_current_team: str | None = None,
    ) -> list[ScoreLedgerEntry]:
        entries = [entry.model_copy() for entry in ledger]
        positions = {entry.name: position for position, entry in enumerate(entries)}
        for entry in entries:
            entry.added_score = 0

        batch_points: dict[str, int] = {}
        flagged: set[str] = set()
        for result in results:
            if not result.team:
                continue
            if mode is ScoreMode.PER_RACE:
                points = race_points(result.rank, self.points_table)
            else:
                points = result.reported_score
            batch_points[result.team] = batch_points.get(result.team, 0) + points
            if result.is_current_player:
                flagged.add(result.team)

        if flagged:
            for entry in entries:
                entry.is_current_player = False

        for team, points in batch_points.items():
            position = positions.get(team)
            if mode is ScoreMode.TOTAL_SCORE or position is None:
                entry = ScoreLedgerEntry(name=team)
                if position is None:
                    positions[team] = len(entries)
                    entries.append(entry)
                else:
                    entries[position] = entry
            else:
                entry = entries[position]

            if mode is ScoreMode.PER_RACE:
                entry.score += points
                entry.added_score = points
            else:
                entry.score = points
            entry.is_current_player = entry.is_current_player or team in flagged

        merged = merge_teams_by_initial(entries)
        return enforce_single_current_player(merged, manual_current_team)


def merge_teams_by_initial(entries: Iterable[ScoreLedgerEntry]) -> list[ScoreLedgerEntry]:
    """
    Collapse entries whose names share a first letter.

    The merged entry takes the name of the highest-scoring member and the sum
    of the scores; it is the current player's team if any member was.
    """
    groups: dict[str, list[ScoreLedgerEntry]] = {}
    for entry in entries:
        groups.setdefault(initial_key(entry.name), []).append(entry)

    merged: list[ScoreLedgerEntry] = []
    for members in groups.values():
        if len(members) == 1:
            merged.append(members[0])
            continue
        representative = max(members, key=lambda entry: entry.score)
        logger.info(
            "Merging teams %s into '%s'",
            [entry.name for entry in members],
            representative.name,
        )
        merged.append(
            ScoreLedgerEntry(
                name=representative.name,
                score=sum(entry.score for entry in members),
                added_score=sum(entry.added_score for entry in members),
                is_current_player=any(entry.is_current_player for entry in members),
            )
        )
    return merged


def enforce_single_current_player(
    entries: list[ScoreLedgerEntry],
    manual_current_team: str | None = None,
) -> list[ScoreLedgerEntry]:
    """Leave at most one flagged entry; a manually pinned team always wins."""
    if manual_current_team:
        for entry in entries:
            entry.is_current_player = entry.name == manual_current_team
        return entries

    seen = False
    for entry in entries:
        if entry.is_current_player:
            if seen:
                entry.is_current_player = False
            seen = True
    return entries
