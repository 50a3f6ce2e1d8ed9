"""Mistake review scheduling.

固定バケット方式の簡易間隔ポリシー。ease factor や忘却曲線は持たず、
回答の正誤と自信度から 1/3/7 日のいずれかを選ぶだけの設計を忠実に再現する。

- 初回登録 (enrollment): interval=1, 次回=今日（すぐ復習できる）
- 復習完了 (completion): 次回=今日+days, times_reviewed += 1
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from .errors import ConflictError, InvalidInputError, NotFoundError
from .logging import logger
from .models.common import MistakeType, RecallConfidence, Side
from .records import DueReview, Mistake, StudySession
from .store import ReviewSQLiteStore


DEFAULT_INTERVAL_DAYS = 1

# (correct, confidence) -> (difficulty, days). Button order in the UI is the difficulty.
INTERVAL_TABLE: dict[tuple[bool, RecallConfidence], tuple[int, int]] = {
    (True, RecallConfidence.very_confident): (1, 7),
    (True, RecallConfidence.somewhat_confident): (2, 3),
    (True, RecallConfidence.lucky_guess): (3, 1),
    (False, RecallConfidence.knew_it_but_missed): (1, 3),
    (False, RecallConfidence.somewhat_familiar): (2, 1),
    (False, RecallConfidence.completely_new): (3, 1),
}

_ANNOTATION_CHARS = "+#!?"


def _confidence_label(confidence: object) -> str:
    return str(getattr(confidence, "value", confidence))


def interval_for(correct: bool, confidence: RecallConfidence) -> int:
    """Return the review interval in days for an answer and its confidence."""
    try:
        return INTERVAL_TABLE[(bool(correct), RecallConfidence(confidence))][1]
    except (KeyError, ValueError) as exc:
        kind = "correct" if correct else "incorrect"
        raise InvalidInputError(
            f"confidence {_confidence_label(confidence)} does not apply to a {kind} answer"
        ) from exc


def difficulty_for(correct: bool, confidence: RecallConfidence) -> int:
    try:
        return INTERVAL_TABLE[(bool(correct), RecallConfidence(confidence))][0]
    except (KeyError, ValueError) as exc:
        raise InvalidInputError(
            f"confidence {_confidence_label(confidence)} does not match correct={bool(correct)}"
        ) from exc


def judge_move(player_move: Optional[str], best_move: Optional[str]) -> bool:
    """Compare two move notations, ignoring check and annotation suffixes."""
    played = (player_move or "").strip().rstrip(_ANNOTATION_CHARS)
    best = (best_move or "").strip().rstrip(_ANNOTATION_CHARS)
    return bool(played) and bool(best) and played == best


# --- mistake taxonomy ---
def side_to_move(position_fen: str) -> Side:
    fields = (position_fen or "").split()
    if len(fields) < 2 or fields[1] not in ("w", "b"):
        raise InvalidInputError(f"cannot read side to move from FEN: {position_fen!r}")
    return Side.white if fields[1] == "w" else Side.black


def evaluation_drop(before: float, after: float, mover: Side) -> float:
    """Signed loss for the mover: positive means the position got worse for them.

    Engine scores are from white's point of view.
    """
    if Side(mover) is Side.white:
        return float(before) - float(after)
    return float(after) - float(before)


def classify_eval_drop(drop: float) -> Optional[MistakeType]:
    """Bucket an evaluation drop; below 0.5 is not worth recording."""
    if drop >= 2.0:
        return MistakeType.blunder
    if drop >= 1.0:
        return MistakeType.mistake
    if drop >= 0.5:
        return MistakeType.inaccuracy
    return None


# --- clock ---
class Clock:
    """Single clock source; ``today`` is always derived from ``now``."""

    def __init__(self, tz: tzinfo | str = "UTC") -> None:
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


@dataclass(frozen=True)
class ReviewOutcome:
    """Answer to a due review.

    Either ``interval_days`` is chosen upstream, or ``confidence`` (with
    ``correct``, or a ``player_move`` judged against the best move) is mapped
    through ``INTERVAL_TABLE`` when the review is completed. With neither, the
    policy default of one day applies.
    """

    difficulty: Optional[int] = None
    player_move: Optional[str] = None
    interval_days: Optional[int] = None
    correct: Optional[bool] = None
    confidence: Optional[RecallConfidence] = None

    def __post_init__(self) -> None:
        if self.interval_days is not None and (
            isinstance(self.interval_days, bool) or not isinstance(self.interval_days, int) or self.interval_days < 1
        ):
            raise InvalidInputError(f"interval days must be a positive integer, got {self.interval_days!r}")
        if self.difficulty is not None and (
            isinstance(self.difficulty, bool) or not isinstance(self.difficulty, int) or self.difficulty < 1
        ):
            raise InvalidInputError(f"difficulty must be a positive integer, got {self.difficulty!r}")

    @classmethod
    def from_confidence(
        cls,
        correct: Optional[bool],
        confidence: RecallConfidence,
        player_move: Optional[str] = None,
        interval_days: Optional[int] = None,
    ) -> "ReviewOutcome":
        return cls(player_move=player_move, interval_days=interval_days, correct=correct, confidence=confidence)

    def resolve(self, best_move: Optional[str] = None) -> tuple[Optional[int], int]:
        """Return ``(difficulty, interval_days)`` for completing a review.

        ``correct`` が無ければ ``player_move`` を最善手と照合して決める。
        明示された ``interval_days`` が間隔表と食い違う場合は InvalidInputError。
        """
        if self.confidence is None:
            return self.difficulty, self.interval_days or DEFAULT_INTERVAL_DAYS
        correct = self.correct
        if correct is None:
            correct = judge_move(self.player_move, best_move)
        difficulty = difficulty_for(correct, self.confidence)
        days = interval_for(correct, self.confidence)
        if self.interval_days is not None and self.interval_days != days:
            raise InvalidInputError(
                f"days={self.interval_days} contradicts the interval for {_confidence_label(self.confidence)} ({days})"
            )
        return difficulty, days


@dataclass(frozen=True)
class ReviewResult:
    session: StudySession
    enrolled: bool


class MistakeScheduler:
    """Enrollment/completion state machine over a ReviewSQLiteStore.

    Holds no per-review state: every call reads the store, decides, and writes
    inside one transaction.
    """

    def __init__(self, store: ReviewSQLiteStore, clock: Optional[Clock] = None) -> None:
        self.store = store
        self.clock = clock or Clock()

    def record_mistake(self, mistake: Mistake) -> int:
        return self.store.record_mistake(mistake)

    def list_mistakes(self, game_id: int) -> list[Mistake]:
        return self.store.list_mistakes_by_game(game_id)

    def get_mistake(self, mistake_id: int) -> Mistake:
        mistake = self.store.get_mistake(mistake_id)
        if mistake is None:
            raise NotFoundError(f"mistake {mistake_id} not found")
        return mistake

    def next_due(self, today: Optional[date] = None) -> Optional[DueReview]:
        """Return the single most-overdue review, or None when nothing is due."""
        today = today or self.clock.today()
        due = self.store.next_due(today)
        if due is not None:
            logger.info(
                "review_due_selected",
                mistake_id=due.mistake.id,
                next_review=due.session.next_review_date.isoformat(),
                today=today.isoformat(),
            )
        return due

    def count_due(self, today: Optional[date] = None) -> int:
        return self.store.count_due(today or self.clock.today())

    def enroll(self, mistake_id: int, player_move: Optional[str] = None) -> StudySession:
        """Add a mistake to the review queue, due today. Fails if already enrolled."""
        return self._process(mistake_id, None, player_move=player_move, allow_enroll_only=True).session

    def process_review(self, mistake_id: int, outcome: Optional[ReviewOutcome] = None) -> ReviewResult:
        """Record a review request for a mistake.

        - no session yet: enroll (any outcome is ignored)
        - session exists and outcome given: complete the review
        - session exists and no outcome: ConflictError (duplicate enrollment)
        """
        player_move = outcome.player_move if outcome is not None else None
        return self._process(mistake_id, outcome, player_move=player_move, allow_enroll_only=False)

    def _process(
        self,
        mistake_id: int,
        outcome: Optional[ReviewOutcome],
        *,
        player_move: Optional[str],
        allow_enroll_only: bool,
    ) -> ReviewResult:
        now = self.clock.now()
        today = now.date()
        with self.store.transaction() as conn:
            mistake = self.store.get_mistake(mistake_id, conn=conn)
            if mistake is None:
                raise NotFoundError(f"mistake {mistake_id} not found")
            existing = self.store.find_session(mistake_id, conn=conn)

            if existing is None:
                session = self.store.create_session(
                    StudySession(
                        mistake_id=mistake_id,
                        next_review_date=today,
                        interval_days=DEFAULT_INTERVAL_DAYS,
                        times_reviewed=0,
                        last_reviewed_at=now,
                        last_move=player_move or None,
                    ),
                    conn=conn,
                )
                logger.info("review_enrolled", mistake_id=mistake_id, next_review=today.isoformat())
                return ReviewResult(session=session, enrolled=True)

            if allow_enroll_only or outcome is None:
                logger.warning("review_conflict", mistake_id=mistake_id)
                raise ConflictError(f"mistake {mistake_id} is already enrolled for review")

            difficulty, interval = outcome.resolve(mistake.best_move)
            session = self.store.update_session(
                mistake_id,
                conn=conn,
                next_review_date=today + timedelta(days=interval),
                interval_days=interval,
                times_reviewed=existing.times_reviewed + 1,
                last_reviewed_at=now,
                last_move=player_move or None,
            )
            logger.info(
                "review_completed",
                mistake_id=mistake_id,
                difficulty=difficulty,
                interval_days=interval,
                times_reviewed=session.times_reviewed,
                next_review=session.next_review_date.isoformat(),
            )
            return ReviewResult(session=session, enrolled=False)
