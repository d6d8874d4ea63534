"""Store contracts and in-memory implementations."""
from .base import PlayerMappingStore, ScoreLedgerStore, ScoreSlotStore, SelfPlayerStore
from .memory import (
    InMemoryPlayerMappingStore,
    InMemoryScoreLedgerStore,
    InMemoryScoreSlotStore,
    InMemorySelfPlayerStore,
)

__all__ = [
    "PlayerMappingStore",
    "ScoreLedgerStore",
    "ScoreSlotStore",
    "SelfPlayerStore",
    "InMemoryPlayerMappingStore",
    "InMemoryScoreLedgerStore",
    "InMemoryScoreSlotStore",
    "InMemorySelfPlayerStore",
]
