"""Record types exchanged between the OCR boundary, the resolver and the score ledger."""
from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

MAX_PLAYERS = 12
MAX_SLOTS = 10

_DIGITS = re.compile(r"\d+")


def _coerce_int(value: Any) -> Any:
    # The model sometimes answers "1st", "1,500" or "" instead of a number.
    if value is None or isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        cleaned = value.replace(",", "").strip()
        if not cleaned:
            return None
        match = _DIGITS.search(cleaned)
        return int(match.group(0)) if match else None
    return value


class RawPlayerResult(BaseModel):
    """One detected row of a result screen."""

    model_config = ConfigDict(populate_by_name=True)

    rank: int | None = None
    name: str = ""
    team: str | None = None
    score: int | None = None
    total_score: int | None = Field(
        None,
        validation_alias=AliasChoices("totalScore", "total_score"),
        serialization_alias="totalScore",
    )
    is_current_player: bool = Field(
        False,
        validation_alias=AliasChoices("isCurrentPlayer", "is_current_player"),
        serialization_alias="isCurrentPlayer",
    )

    @field_validator("rank", "score", "total_score", mode="before")
    @classmethod
    def _numeric(cls, value: Any) -> Any:
        return _coerce_int(value)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> Any:
        return "" if value is None else str(value)

    @field_validator("is_current_player", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> Any:
        return False if value is None else value

    @property
    def reported_score(self) -> int:
        """Score shown on screen: ``score`` first, then ``totalScore``."""
        return self.score or self.total_score or 0


class ScoreLedgerEntry(BaseModel):
    """Cumulative score row for one team."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(validation_alias=AliasChoices("name", "team"))
    score: int = 0
    added_score: int = Field(
        0,
        validation_alias=AliasChoices("addedScore", "added_score"),
        serialization_alias="addedScore",
    )
    is_current_player: bool = Field(
        False,
        validation_alias=AliasChoices("isCurrentPlayer", "is_current_player"),
        serialization_alias="isCurrentPlayer",
    )

    @field_validator("score", "added_score", mode="before")
    @classmethod
    def _numeric(cls, value: Any) -> Any:
        coerced = _coerce_int(value)
        return 0 if coerced is None else coerced


class SelfPlayerRecord(BaseModel):
    name: str
    timestamp: datetime


class ScoreSlot(BaseModel):
    """Named snapshot of the ledger that can be reopened later."""

    model_config = ConfigDict(populate_by_name=True)

    slot_id: int = Field(ge=0, lt=MAX_SLOTS, validation_alias=AliasChoices("slotId", "slot_id"), serialization_alias="slotId")
    name: str = ""
    saved_at: datetime | None = Field(
        None,
        validation_alias=AliasChoices("timestamp", "saved_at"),
        serialization_alias="timestamp",
    )
    scores: list[ScoreLedgerEntry] = Field(default_factory=list)
    remaining_races: int | None = Field(
        None,
        validation_alias=AliasChoices("remainingRaces", "remaining_races"),
        serialization_alias="remainingRaces",
    )


class AnalysisResult(BaseModel):
    """Structured outcome of one OCR + resolution cycle."""

    success: bool
    results: list[RawPlayerResult] = Field(default_factory=list)
    error: str | None = None
    code: str | None = None

    @classmethod
    def failure(cls, message: str, code: str = "error") -> "AnalysisResult":
        return cls(success=False, error=message, code=code)


class ScoreUpdate(AnalysisResult):
    scores: list[ScoreLedgerEntry] = Field(default_factory=list)


class ScoreSnapshot(BaseModel):
    scores: list[ScoreLedgerEntry]
    is_overall_update: bool = Field(False, serialization_alias="isOverallUpdate")
    remaining_races: int | None = Field(None, serialization_alias="remainingRaces")
    show_remaining_races: bool = Field(True, serialization_alias="showRemainingRaces")
