"""Process-local store implementations, used by tests and scratch sessions."""
from __future__ import annotations

from collections.abc import Mapping, Sequence

from ..db.enums import ScoreMode
from ..schemas import ScoreLedgerEntry, ScoreSlot, SelfPlayerRecord
from .base import PlayerMappingStore, ScoreLedgerStore, ScoreSlotStore, SelfPlayerStore


class InMemoryPlayerMappingStore(PlayerMappingStore):
    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._data = dict(initial or {})
        self.save_count = 0

    def load(self) -> dict[str, str]:
        return dict(self._data)

    def save(self, mapping: Mapping[str, str]) -> None:
        self._data = dict(mapping)
        self.save_count += 1


class InMemorySelfPlayerStore(SelfPlayerStore):
    def __init__(self, record: SelfPlayerRecord | None = None) -> None:
        self._record = record

    def load(self) -> SelfPlayerRecord | None:
        return self._record.model_copy() if self._record else None

    def save(self, record: SelfPlayerRecord) -> None:
        self._record = record.model_copy()


class InMemoryScoreLedgerStore(ScoreLedgerStore):
    def __init__(self, entries: Sequence[ScoreLedgerEntry] | None = None) -> None:
        self._entries = [entry.model_copy() for entry in entries or []]
        self._overall_update = False

    def load(self) -> list[ScoreLedgerEntry]:
        return [entry.model_copy() for entry in self._entries]

    def save(self, entries: Sequence[ScoreLedgerEntry], mode: ScoreMode = ScoreMode.PER_RACE) -> None:
        self._entries = [entry.model_copy() for entry in entries]
        if mode is ScoreMode.TOTAL_SCORE:
            self._overall_update = True

    def pop_overall_update(self) -> bool:
        flag, self._overall_update = self._overall_update, False
        return flag

    def clear(self) -> None:
        self._entries = []
        self._overall_update = False


class InMemoryScoreSlotStore(ScoreSlotStore):
    def __init__(self) -> None:
        self._slots: dict[int, ScoreSlot] = {}

    def list_slots(self) -> list[ScoreSlot]:
        return [self._slots[key].model_copy(deep=True) for key in sorted(self._slots)]

    def get(self, slot_id: int) -> ScoreSlot | None:
        slot = self._slots.get(slot_id)
        return slot.model_copy(deep=True) if slot else None

    def put(self, slot: ScoreSlot) -> None:
        self._slots[slot.slot_id] = slot.model_copy(deep=True)

    def delete(self, slot_id: int) -> bool:
        return self._slots.pop(slot_id, None) is not None
