"""Round trips through the SQLAlchemy store implementations on in-memory SQLite."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from racetally.db.base import Base
from racetally.db.enums import ScoreMode
from racetally.db.operations import SqlPlayerMappingStore, SqlScoreLedgerStore, SqlScoreSlotStore, SqlSelfPlayerStore
from racetally.schemas import ScoreLedgerEntry, ScoreSlot, SelfPlayerRecord


@pytest.fixture
def session_factory():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield sessionmaker(bind=engine)
    finally:
        engine.dispose()


def test_player_mapping_store_replaces_contents(session_factory) -> None:
    store = SqlPlayerMappingStore(session_factory)
    assert store.load() == {}

    store.save({"AKSKDfoo": "AKSKD", "Bob": "B"})
    store.save({"AKSKDfoo": "AKSKD", "AKSKDbar": "AKSKD"})

    assert store.load() == {"AKSKDfoo": "AKSKD", "AKSKDbar": "AKSKD"}


def test_self_player_store_keeps_utc(session_factory) -> None:
    store = SqlSelfPlayerStore(session_factory)
    assert store.load() is None

    detected = datetime(2026, 10, 18, 21, 30, tzinfo=timezone(timedelta(hours=9)))
    store.save(SelfPlayerRecord(name="Dave", timestamp=detected))
    store.save(SelfPlayerRecord(name="Dave", timestamp=detected + timedelta(minutes=5)))

    record = store.load()
    assert record is not None
    assert record.name == "Dave"
    assert record.timestamp == detected + timedelta(minutes=5)
    assert record.timestamp.utcoffset() == timedelta(0)


def test_score_ledger_store_keeps_order_and_overall_flag(session_factory) -> None:
    store = SqlScoreLedgerStore(session_factory)
    entries = [
        ScoreLedgerEntry(name="BRAVO", score=10, added_score=10),
        ScoreLedgerEntry(name="AKSKD", score=27, added_score=27, is_current_player=True),
    ]

    store.save(entries)
    assert store.load() == entries
    assert store.pop_overall_update() is False

    store.save(entries, ScoreMode.TOTAL_SCORE)
    assert store.pop_overall_update() is True
    assert store.pop_overall_update() is False

    store.clear()
    assert store.load() == []


def test_score_slot_store(session_factory) -> None:
    store = SqlScoreSlotStore(session_factory)
    slot = ScoreSlot(
        slot_id=3,
        name="Friday cup",
        saved_at=datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc),
        scores=[ScoreLedgerEntry(name="AKSKD", score=100, is_current_player=True)],
        remaining_races=10,
    )

    store.put(slot)
    assert store.get(3) == slot
    assert [saved.slot_id for saved in store.list_slots()] == [3]
    assert store.get(4) is None

    assert store.delete(3) is True
    assert store.delete(3) is False
    assert store.list_slots() == []
