"""Score session service: screenshots in, team standings out."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from .db.enums import ScoreMode
from .identity.resolver import IdentityResolver
from .ocr.analyzer import RaceAnalyzer
from .ocr.image_loader import ImageSource
from .schemas import MAX_SLOTS, ScoreLedgerEntry, ScoreSlot, ScoreSnapshot, ScoreUpdate, SelfPlayerRecord
from .scoring.aggregator import ScoreAggregator, enforce_single_current_player, merge_teams_by_initial
from .scoring.points import remaining_races
from .stores.base import ScoreLedgerStore, ScoreSlotStore

logger = logging.getLogger(__name__)

ScoreListener = Callable[[str], None]


class Scoreboard:
    """Coordinates the analyzer, the aggregator and the score stores."""

    def __init__(
        self,
        *,
        analyzer: RaceAnalyzer,
        ledger_store: ScoreLedgerStore,
        slot_store: ScoreSlotStore,
        aggregator: ScoreAggregator | None = None,
        show_remaining_races: bool = True,
    ) -> None:
        self.analyzer = analyzer
        self.ledger_store = ledger_store
        self.slot_store = slot_store
        self.aggregator = aggregator or ScoreAggregator()
        self.show_remaining_races = show_remaining_races
        self._listeners: list[ScoreListener] = []

    @property
    def resolver(self) -> IdentityResolver:
        return self.analyzer.resolver

    def add_listener(self, listener: ScoreListener) -> None:
        """Register a callback invoked with an event name after each ledger write."""
        self._listeners.append(listener)

    def process_screenshot(
        self,
        image: ImageSource,
        mode: ScoreMode = ScoreMode.PER_RACE,
        *,
        manual_current_team: str | None = None,
    ) -> ScoreUpdate:
        analysis = self.analyzer.analyze(image, mode)
        if not analysis.success:
            return ScoreUpdate(success=False, error=analysis.error, code=analysis.code)

        entries = self.aggregator.apply(
            self.ledger_store.load(),
            analysis.results,
            mode,
            manual_current_team=manual_current_team,
        )
        self._save(entries, mode)
        return ScoreUpdate(success=True, results=analysis.results, scores=entries)

    def snapshot(self) -> ScoreSnapshot:
        scores = sorted(self.ledger_store.load(), key=lambda entry: entry.score, reverse=True)
        remaining = remaining_races(entry.score for entry in scores) if self.show_remaining_races else None
        return ScoreSnapshot(
            scores=scores,
            is_overall_update=self.ledger_store.pop_overall_update(),
            remaining_races=remaining,
            show_remaining_races=self.show_remaining_races,
        )

    def save_manual_scores(self, entries: Iterable[ScoreLedgerEntry]) -> list[ScoreLedgerEntry]:
        """Replace the ledger with hand-edited rows."""
        edited = [entry.model_copy(update={"added_score": 0}) for entry in entries]
        edited = enforce_single_current_player(edited)
        current = next((entry for entry in edited if entry.is_current_player), None)
        if current is not None:
            self.resolver.self_player_store.save(SelfPlayerRecord(name=current.name, timestamp=_utcnow()))
        self._save(edited)
        return edited

    def set_current_team(self, name: str) -> list[ScoreLedgerEntry]:
        entries = enforce_single_current_player(self.ledger_store.load(), name)
        self._save(entries)
        return entries

    def replace_mappings(self, mappings: dict[str, str]) -> dict[str, str]:
        self.resolver.mapping_store.save(mappings)
        self._notify("mappings-updated")
        return self.resolver.mapping_store.load()

    def reset(self) -> None:
        """Clear scores and team mappings for a new session."""
        self.ledger_store.clear()
        self.resolver.mapping_store.save({})
        self.analyzer.clear_cache()
        logger.info("Score session reset")
        self._notify("scores-updated")

    def reset_on_startup(self, keep_score: bool) -> None:
        if not keep_score:
            self.ledger_store.clear()
            logger.info("Scores reset on startup as per config")

    # Slots

    def save_slot(self, slot_id: int, name: str = "") -> ScoreSlot:
        _check_slot_id(slot_id)
        scores = self.ledger_store.load()
        slot = ScoreSlot(
            slot_id=slot_id,
            name=name or f"Slot {slot_id + 1}",
            saved_at=_utcnow(),
            scores=scores,
            remaining_races=remaining_races(entry.score for entry in scores),
        )
        self.slot_store.put(slot)
        return slot

    def list_slots(self) -> list[ScoreSlot]:
        return self.slot_store.list_slots()

    def get_slot(self, slot_id: int) -> ScoreSlot | None:
        _check_slot_id(slot_id)
        return self.slot_store.get(slot_id)

    def delete_slot(self, slot_id: int) -> bool:
        _check_slot_id(slot_id)
        return self.slot_store.delete(slot_id)

    def load_slot(self, slot_id: int) -> list[ScoreLedgerEntry] | None:
        """Replace the ledger with a saved slot."""
        slot = self.get_slot(slot_id)
        if slot is None:
            return None
        entries = enforce_single_current_player([entry.model_copy(update={"added_score": 0}) for entry in slot.scores])
        self._save(entries)
        return entries

    def add_slot(self, slot_id: int) -> list[ScoreLedgerEntry] | None:
        """Add a saved slot's team scores on top of the current ledger."""
        slot = self.get_slot(slot_id)
        if slot is None:
            return None
        entries = self.ledger_store.load()
        by_name = {entry.name: entry for entry in entries}
        for entry in entries:
            entry.added_score = 0
        for saved in slot.scores:
            existing = by_name.get(saved.name)
            if existing is None:
                existing = saved.model_copy(update={"score": 0, "is_current_player": False})
                entries.append(existing)
                by_name[saved.name] = existing
            existing.score += saved.score
            existing.added_score = saved.score
        entries = enforce_single_current_player(merge_teams_by_initial(entries))
        self._save(entries)
        return entries

    def _save(self, entries: list[ScoreLedgerEntry], mode: ScoreMode = ScoreMode.PER_RACE) -> None:
        self.ledger_store.save(entries, mode)
        self._notify("scores-updated")

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:  # pragma: no cover
                logger.exception("Score listener failed for %s", event)


def build_default_scoreboard() -> Scoreboard:
    """Scoreboard backed by the configured database and vision provider."""
    from .db.operations import (
        SqlPlayerMappingStore,
        SqlScoreLedgerStore,
        SqlScoreSlotStore,
        SqlSelfPlayerStore,
    )
    from .db.session import init_db
    from .ocr.ai_client import build_extractor
    from .settings import settings

    init_db()
    resolver = IdentityResolver(SqlPlayerMappingStore(), SqlSelfPlayerStore())
    analyzer = RaceAnalyzer(build_extractor(settings), resolver)
    return Scoreboard(
        analyzer=analyzer,
        ledger_store=SqlScoreLedgerStore(),
        slot_store=SqlScoreSlotStore(),
        show_remaining_races=settings.show_remaining_races,
    )


def _check_slot_id(slot_id: int) -> None:
    if not 0 <= slot_id < MAX_SLOTS:
        raise ValueError(f"Slot id must be between 0 and {MAX_SLOTS - 1}, got {slot_id}")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)
