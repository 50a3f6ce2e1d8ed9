"""Pytest configuration: temp database and a controllable clock."""

import os
import tempfile
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

# chess_review.main は import 時にアプリを生成するため、作業ツリーを汚さない
# よう DB パスを先に一時ディレクトリへ向けておく。
os.environ.setdefault("REVIEW_DB_PATH", str(Path(tempfile.mkdtemp(prefix="chess-review-")) / "review.sqlite3"))

from chess_review.models.common import MistakeType  # noqa: E402
from chess_review.records import Mistake  # noqa: E402
from chess_review.srs import Clock, MistakeScheduler  # noqa: E402
from chess_review.store import ReviewSQLiteStore  # noqa: E402

START_FEN = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"


class FixedClock(Clock):
    """Clock pinned to a given instant; tests move it with ``set_date``/``advance``."""

    def __init__(self, at: datetime) -> None:
        super().__init__(timezone.utc)
        self._at = at

    def now(self) -> datetime:
        return self._at

    def set_date(self, day: date) -> None:
        self._at = datetime(day.year, day.month, day.day, 12, 0, tzinfo=timezone.utc)

    def advance(self, days: int) -> None:
        self._at = self._at + timedelta(days=days)


def make_mistake(game_id: int = 1, move_number: int = 5, **overrides) -> Mistake:
    fields = dict(
        game_id=game_id,
        move_number=move_number,
        position_fen=START_FEN,
        played_move="f6",
        best_move="e5",
        evaluation_before=0.3,
        evaluation_after=1.6,
        mistake_type=MistakeType.mistake,
        analysis="Lost 1.3 points",
    )
    fields.update(overrides)
    return Mistake(**fields)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def store(tmp_path: Path) -> ReviewSQLiteStore:
    return ReviewSQLiteStore(str(tmp_path / "review.sqlite3"), timeout_sec=10.0)


@pytest.fixture()
def scheduler(store: ReviewSQLiteStore, clock: FixedClock) -> MistakeScheduler:
    return MistakeScheduler(store, clock)


@pytest.fixture()
def mistake_factory():
    return make_mistake


@pytest.fixture()
def recorded_mistake(scheduler: MistakeScheduler) -> int:
    return scheduler.record_mistake(make_mistake())
