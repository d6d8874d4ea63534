"""Storage contracts the resolver and the score ledger depend on."""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from ..db.enums import ScoreMode
from ..schemas import ScoreLedgerEntry, ScoreSlot, SelfPlayerRecord


class PlayerMappingStore(ABC):
    """Normalized player name -> canonical team name."""

    @abstractmethod
    def load(self) -> dict[str, str]:  # pragma: no cover
        raise NotImplementedError

    @abstractmethod
    def save(self, mapping: Mapping[str, str]) -> None:  # pragma: no cover
        raise NotImplementedError


class SelfPlayerStore(ABC):
    """Single record naming the local player."""

    @abstractmethod
    def load(self) -> SelfPlayerRecord | None:  # pragma: no cover
        raise NotImplementedError

    @abstractmethod
    def save(self, record: SelfPlayerRecord) -> None:  # pragma: no cover
        raise NotImplementedError


class ScoreLedgerStore(ABC):
    """Cumulative team scores plus the one-shot "overall update" marker."""

    @abstractmethod
    def load(self) -> list[ScoreLedgerEntry]:  # pragma: no cover
        raise NotImplementedError

    @abstractmethod
    def save(self, entries: Sequence[ScoreLedgerEntry], mode: ScoreMode = ScoreMode.PER_RACE) -> None:  # pragma: no cover
        raise NotImplementedError

    @abstractmethod
    def pop_overall_update(self) -> bool:  # pragma: no cover
        """Return whether the last save was a total-score update and clear the marker."""
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:  # pragma: no cover
        raise NotImplementedError


class ScoreSlotStore(ABC):
    @abstractmethod
    def list_slots(self) -> list[ScoreSlot]:  # pragma: no cover
        raise NotImplementedError

    @abstractmethod
    def get(self, slot_id: int) -> ScoreSlot | None:  # pragma: no cover
        raise NotImplementedError

    @abstractmethod
    def put(self, slot: ScoreSlot) -> None:  # pragma: no cover
        raise NotImplementedError

    @abstractmethod
    def delete(self, slot_id: int) -> bool:  # pragma: no cover
        raise NotImplementedError
