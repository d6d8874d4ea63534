"""Shared enumeration types."""
from __future__ import annotations

from enum import Enum


class ScoreMode(str, Enum):
    PER_RACE = "race"
    TOTAL_SCORE = "total"

    @classmethod
    def from_flag(cls, use_total_score: bool) -> "ScoreMode":
        return cls.TOTAL_SCORE if use_total_score else cls.PER_RACE
