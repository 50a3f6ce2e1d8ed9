from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import RecallConfidence
from .mistake import MistakeOut


class DueReviewResponse(MistakeOut):
    """Due mistake merged with its session metadata (flat, one level)."""

    next_review: date
    interval_days: int
    times_reviewed: int


class ReviewResultRequest(BaseModel):
    """Review outcome posted by the UI.

    - 空のボディ: 復習キューへの初回登録
    - days / difficulty: 呼び出し側で決めた間隔による復習完了
    - correct + confidence: 間隔表から日数を決める復習完了
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    difficulty: Optional[int] = Field(default=None, ge=1, le=3)
    player_move: Optional[str] = Field(default=None, alias="playerMove", max_length=16)
    days: Optional[int] = Field(default=None, ge=1)
    correct: Optional[bool] = None
    confidence: Optional[RecallConfidence] = None

    def is_enrollment(self) -> bool:
        return self.difficulty is None and self.days is None and self.confidence is None


class ReviewResultResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    next_interval: int = Field(serialization_alias="nextInterval")
    next_review: date = Field(serialization_alias="nextReview")
    times_reviewed: int = Field(serialization_alias="timesReviewed")
    enrolled: bool


class ReviewPolicyEntry(BaseModel):
    correct: bool
    confidence: RecallConfidence
    difficulty: int
    days: int


class ReviewPolicyResponse(BaseModel):
    entries: list[ReviewPolicyEntry]


class ReviewStatsResponse(BaseModel):
    today: date
    due_now: int
