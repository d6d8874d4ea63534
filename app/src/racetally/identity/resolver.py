"""Resolve noisy per-race player names into stable team names."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timezone

from ..schemas import RawPlayerResult, SelfPlayerRecord
from ..stores.base import PlayerMappingStore, SelfPlayerStore
from .names import MIN_PREFIX_LENGTH, group_by_initial, longest_common_prefix, normalize_name

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdentityResolver:
    """
    Groups players into teams by shared name prefix and remembers the result.

    Teams are detected per first letter: every known player whose name starts
    with the same (upper-cased) character is treated as one team, named after
    the longest common prefix of the group. Established multi-character team
    names are sticky, and a player's mapping is only ever upgraded from a
    one-letter placeholder to a longer name, so a single bad OCR read cannot
    rename a team that was already recognised.

    The resolver also tracks the highlighted "self" row across races.
    """

    def __init__(
        self,
        mapping_store: PlayerMappingStore,
        self_player_store: SelfPlayerStore,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.mapping_store = mapping_store
        self.self_player_store = self_player_store
        self._clock = clock

    def current_mappings(self) -> dict[str, str]:
        return self.mapping_store.load()

    def resolve(self, results: Sequence[RawPlayerResult]) -> list[RawPlayerResult]:
        """
        Normalize names, track the self player and assign canonical teams.

        Rows whose name is empty after normalization are dropped. The returned
        rows are the input objects, updated in place.
        """
        kept: list[RawPlayerResult] = []
        for result in results:
            result.name = normalize_name(result.name)
            if result.name:
                kept.append(result)

        self.track_self_player(kept)
        mappings = self.update_mappings(result.name for result in kept)
        self.apply_mappings(kept, mappings)
        return kept

    def update_mappings(self, names: Iterable[str]) -> dict[str, str]:
        """Fold a batch of names into the mapping store and return the full mapping."""
        mappings = self.mapping_store.load()
        batch = [name for name in (normalize_name(raw) for raw in names) if name]
        groups = group_by_initial([*batch, *mappings])

        changed = False
        for key, members in groups.items():
            team = self._canonical_team(key, members, mappings)
            for member in members:
                current = mappings.get(member)
                if current is not None and not (len(current) == 1 and len(team) > 1):
                    continue
                if current == team:
                    continue
                logger.info("Updating player mapping: '%s' from '%s' to '%s'", member, current or "none", team)
                mappings[member] = team
                changed = True

        if changed:
            self.mapping_store.save(mappings)
        return mappings

    def track_self_player(self, results: Sequence[RawPlayerResult]) -> None:
        flagged = next((result for result in results if result.is_current_player and result.name), None)
        if flagged is not None:
            self.self_player_store.save(SelfPlayerRecord(name=flagged.name, timestamp=self._clock()))
            return

        record = self.self_player_store.load()
        if record is None:
            return
        match = next((result for result in results if result.name == record.name), None)
        if match is not None:
            logger.info("Re-flagging previously detected self player '%s'", record.name)
            match.is_current_player = True

    @staticmethod
    def apply_mappings(results: Iterable[RawPlayerResult], mappings: dict[str, str]) -> None:
        for result in results:
            team = mappings.get(result.name)
            if team:
                result.team = team

    @staticmethod
    def _canonical_team(key: str, members: list[str], mappings: dict[str, str]) -> str:
        established = next(
            (mappings[member] for member in members if mappings.get(member) and mappings[member] != key),
            None,
        )
        if established:
            return established.upper()

        prefix = longest_common_prefix(members) if len(members) > 1 else ""
        team = prefix if len(prefix) >= MIN_PREFIX_LENGTH else key
        return team.upper()
