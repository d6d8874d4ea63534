"""SQLAlchemy-backed implementations of the store contracts.

Reads that fail are logged and treated as empty; failed writes are logged and
dropped so the in-memory result of the current operation is still returned.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..schemas import ScoreLedgerEntry, ScoreSlot, SelfPlayerRecord
from ..stores.base import PlayerMappingStore, ScoreLedgerStore, ScoreSlotStore, SelfPlayerStore
from . import models
from .enums import ScoreMode

logger = logging.getLogger(__name__)

SELF_PLAYER_ROW_ID = 1
SCORE_META_ROW_ID = 1


class _SqlStore:
    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        if session_factory is None:
            from .session import SessionLocal

            session_factory = SessionLocal
        self.session_factory = session_factory


class SqlPlayerMappingStore(_SqlStore, PlayerMappingStore):
    def load(self) -> dict[str, str]:
        try:
            with self.session_factory() as session:
                rows = session.execute(select(models.PlayerMapping)).scalars().all()
                return {row.player_name: row.team_name for row in rows}
        except SQLAlchemyError as exc:
            logger.warning("Could not read player mappings, using an empty mapping: %s", exc)
            return {}

    def save(self, mapping: Mapping[str, str]) -> None:
        try:
            with self.session_factory() as session:
                session.execute(delete(models.PlayerMapping))
                session.add_all(
                    models.PlayerMapping(player_name=player, team_name=team)
                    for player, team in mapping.items()
                )
                session.commit()
        except SQLAlchemyError:
            logger.exception("Failed to persist %d player mappings", len(mapping))


class SqlSelfPlayerStore(_SqlStore, SelfPlayerStore):
    def load(self) -> SelfPlayerRecord | None:
        try:
            with self.session_factory() as session:
                row = session.get(models.SelfPlayer, SELF_PLAYER_ROW_ID)
                if row is None:
                    return None
                return SelfPlayerRecord(name=row.name, timestamp=row.detected_at)
        except (SQLAlchemyError, ValueError) as exc:
            logger.warning("Could not read self player record: %s", exc)
            return None

    def save(self, record: SelfPlayerRecord) -> None:
        try:
            with self.session_factory() as session:
                row = session.get(models.SelfPlayer, SELF_PLAYER_ROW_ID)
                if row is None:
                    row = models.SelfPlayer(id=SELF_PLAYER_ROW_ID)
                    session.add(row)
                row.name = record.name
                row.detected_at = record.timestamp
                session.commit()
        except SQLAlchemyError:
            logger.exception("Failed to persist self player '%s'", record.name)


class SqlScoreLedgerStore(_SqlStore, ScoreLedgerStore):
    def load(self) -> list[ScoreLedgerEntry]:
        try:
            with self.session_factory() as session:
                stmt = select(models.ScoreEntry).order_by(models.ScoreEntry.position, models.ScoreEntry.id)
                rows = session.execute(stmt).scalars().all()
                return [
                    ScoreLedgerEntry(
                        name=row.name,
                        score=row.score,
                        added_score=row.added_score,
                        is_current_player=row.is_current_player,
                    )
                    for row in rows
                ]
        except SQLAlchemyError as exc:
            logger.warning("Could not read score ledger, using an empty ledger: %s", exc)
            return []

    def save(self, entries: Sequence[ScoreLedgerEntry], mode: ScoreMode = ScoreMode.PER_RACE) -> None:
        try:
            with self.session_factory() as session:
                session.execute(delete(models.ScoreEntry))
                session.add_all(
                    models.ScoreEntry(
                        position=position,
                        name=entry.name,
                        score=entry.score,
                        added_score=entry.added_score,
                        is_current_player=entry.is_current_player,
                    )
                    for position, entry in enumerate(entries)
                )
                if mode is ScoreMode.TOTAL_SCORE:
                    self._meta(session).is_overall_update = True
                session.commit()
        except SQLAlchemyError:
            logger.exception("Failed to persist %d score entries", len(entries))

    def pop_overall_update(self) -> bool:
        try:
            with self.session_factory() as session:
                meta = session.get(models.ScoreMeta, SCORE_META_ROW_ID)
                if meta is None or not meta.is_overall_update:
                    return False
                meta.is_overall_update = False
                session.commit()
                return True
        except SQLAlchemyError as exc:
            logger.warning("Could not read score meta: %s", exc)
            return False

    def clear(self) -> None:
        try:
            with self.session_factory() as session:
                session.execute(delete(models.ScoreEntry))
                session.execute(delete(models.ScoreMeta))
                session.commit()
        except SQLAlchemyError:
            logger.exception("Failed to clear score ledger")

    @staticmethod
    def _meta(session: Session) -> models.ScoreMeta:
        meta = session.get(models.ScoreMeta, SCORE_META_ROW_ID)
        if meta is None:
            meta = models.ScoreMeta(id=SCORE_META_ROW_ID, is_overall_update=False)
            session.add(meta)
        return meta


class SqlScoreSlotStore(_SqlStore, ScoreSlotStore):
    def list_slots(self) -> list[ScoreSlot]:
        try:
            with self.session_factory() as session:
                rows = session.execute(select(models.ScoreSlotRecord).order_by(models.ScoreSlotRecord.slot_id)).scalars().all()
                return [slot for slot in (self._to_slot(row) for row in rows) if slot is not None]
        except SQLAlchemyError as exc:
            logger.warning("Could not read score slots: %s", exc)
            return []

    def get(self, slot_id: int) -> ScoreSlot | None:
        try:
            with self.session_factory() as session:
                row = session.get(models.ScoreSlotRecord, slot_id)
                return self._to_slot(row) if row is not None else None
        except SQLAlchemyError as exc:
            logger.warning("Could not read score slot %s: %s", slot_id, exc)
            return None

    def put(self, slot: ScoreSlot) -> None:
        try:
            with self.session_factory() as session:
                row = session.get(models.ScoreSlotRecord, slot.slot_id)
                if row is None:
                    row = models.ScoreSlotRecord(slot_id=slot.slot_id)
                    session.add(row)
                row.name = slot.name
                row.saved_at = slot.saved_at
                row.remaining_races = slot.remaining_races
                row.scores = [entry.model_dump(by_alias=True) for entry in slot.scores]
                session.commit()
        except SQLAlchemyError:
            logger.exception("Failed to persist score slot %s", slot.slot_id)

    def delete(self, slot_id: int) -> bool:
        try:
            with self.session_factory() as session:
                result = session.execute(delete(models.ScoreSlotRecord).where(models.ScoreSlotRecord.slot_id == slot_id))
                session.commit()
                return bool(result.rowcount)
        except SQLAlchemyError:
            logger.exception("Failed to delete score slot %s", slot_id)
            return False

    @staticmethod
    def _to_slot(row: models.ScoreSlotRecord) -> ScoreSlot | None:
        try:
            return ScoreSlot(
                slot_id=row.slot_id,
                name=row.name,
                saved_at=row.saved_at,
                remaining_races=row.remaining_races,
                scores=[ScoreLedgerEntry.model_validate(item) for item in row.scores or []],
            )
        except ValidationError as exc:
            logger.warning("Skipping unreadable score slot %s: %s", row.slot_id, exc)
            return None
