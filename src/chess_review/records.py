"""Structured records persisted by the review store.

ストア境界で形を検証する明示的なレコード型。SQLite の行をそのまま
持ち回さず、必ずここで定義したデータクラスへ変換する。
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .errors import InvalidInputError
from .models.common import MistakeType


@dataclass(frozen=True)
class Mistake:
    game_id: int
    move_number: int
    position_fen: str
    played_move: str
    mistake_type: MistakeType
    best_move: str = ""
    evaluation_before: float = 0.0
    evaluation_after: float = 0.0
    analysis: str = ""
    id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.move_number < 1:
            raise InvalidInputError(f"move_number must be positive, got {self.move_number}")
        if len((self.position_fen or "").split()) < 2:
            raise InvalidInputError("position_fen must contain a board layout and side to move")
        if not (self.played_move or "").strip():
            raise InvalidInputError("played_move is required")
        if not isinstance(self.mistake_type, MistakeType):
            try:
                object.__setattr__(self, "mistake_type", MistakeType(self.mistake_type))
            except ValueError as exc:
                raise InvalidInputError(f"unknown mistake_type: {self.mistake_type!r}") from exc


@dataclass(frozen=True)
class StudySession:
    """Scheduling state for exactly one mistake under review."""

    mistake_id: int
    next_review_date: date
    interval_days: int = 1
    times_reviewed: int = 0
    last_reviewed_at: Optional[datetime] = None
    last_move: Optional[str] = None
    id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.interval_days < 1:
            raise InvalidInputError(f"interval_days must be positive, got {self.interval_days}")
        if self.times_reviewed < 0:
            raise InvalidInputError(f"times_reviewed must be non-negative, got {self.times_reviewed}")
        # datetime は date のサブクラスなので明示的に弾く
        if isinstance(self.next_review_date, datetime) or not isinstance(self.next_review_date, date):
            raise InvalidInputError("next_review_date must be a calendar date")


@dataclass(frozen=True)
class DueReview:
    """A due session joined with the mistake it schedules."""

    mistake: Mistake
    session: StudySession
