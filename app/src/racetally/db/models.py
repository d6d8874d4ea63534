"""Database models backing the mapping, self-player and score stores."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .custom_types import UTCDateTime


class PlayerMapping(Base):
    __tablename__ = "player_mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_name: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    team_name: Mapped[str] = mapped_column(String(128))


class SelfPlayer(Base):
    __tablename__ = "self_player"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128))
    detected_at: Mapped[datetime] = mapped_column(UTCDateTime)


class ScoreEntry(Base):
    __tablename__ = "score_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    name: Mapped[str] = mapped_column(String(128), unique=True)
    score: Mapped[int] = mapped_column(Integer, default=0)
    added_score: Mapped[int] = mapped_column(Integer, default=0)
    is_current_player: Mapped[bool] = mapped_column(Boolean, default=False)


class ScoreMeta(Base):
    __tablename__ = "score_meta"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    is_overall_update: Mapped[bool] = mapped_column(Boolean, default=False)


class ScoreSlotRecord(Base):
    __tablename__ = "score_slots"

    slot_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(128), default="")
    saved_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    remaining_races: Mapped[int | None] = mapped_column(Integer, nullable=True)
    scores: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
