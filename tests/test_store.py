import sqlite3
from datetime import date, datetime, timezone

import pytest

from chess_review.errors import ConflictError, InvalidInputError, NotFoundError, StoreUnavailableError
from chess_review.models.common import MistakeType
from chess_review.records import StudySession
from chess_review.store import ReviewSQLiteStore


def test_record_and_get_mistake_round_trip(store, mistake_factory):
    mistake_id = store.record_mistake(mistake_factory(best_move=""))
    loaded = store.get_mistake(mistake_id)

    assert loaded is not None
    assert loaded.id == mistake_id
    assert loaded.best_move == ""
    assert loaded.mistake_type is MistakeType.mistake
    assert loaded.evaluation_after == pytest.approx(1.6)


def test_get_missing_mistake_returns_none(store):
    assert store.get_mistake(42) is None
    assert store.find_session(42) is None


def test_list_by_game_orders_latest_move_first(store, mistake_factory):
    for move_number in (4, 12, 8):
        store.record_mistake(mistake_factory(game_id=7, move_number=move_number))
    store.record_mistake(mistake_factory(game_id=8, move_number=30))

    mistakes = store.list_mistakes_by_game(7)

    assert [m.move_number for m in mistakes] == [12, 8, 4]
    assert all(m.game_id == 7 for m in mistakes)
    assert store.list_mistakes_by_game(99) == []


def test_create_session_rejects_duplicates(store, mistake_factory):
    mistake_id = store.record_mistake(mistake_factory())
    session = StudySession(mistake_id=mistake_id, next_review_date=date(2024, 1, 1))
    created = store.create_session(session)
    assert created.id is not None

    with pytest.raises(ConflictError):
        store.create_session(session)


def test_create_session_for_missing_mistake(store):
    with pytest.raises(NotFoundError):
        store.create_session(StudySession(mistake_id=123, next_review_date=date(2024, 1, 1)))


def test_update_session_writes_fields(store, mistake_factory):
    mistake_id = store.record_mistake(mistake_factory())
    store.create_session(StudySession(mistake_id=mistake_id, next_review_date=date(2024, 1, 1)))
    reviewed_at = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)

    store.update_session(
        mistake_id,
        next_review_date=date(2024, 1, 4),
        interval_days=3,
        times_reviewed=1,
        last_reviewed_at=reviewed_at,
        last_move="Nf3",
    )
    session = store.find_session(mistake_id)

    assert session.next_review_date == date(2024, 1, 4)
    assert session.interval_days == 3
    assert session.times_reviewed == 1
    assert session.last_reviewed_at == reviewed_at
    assert session.last_move == "Nf3"


def test_update_session_validates_fields(store, mistake_factory):
    mistake_id = store.record_mistake(mistake_factory())
    store.create_session(StudySession(mistake_id=mistake_id, next_review_date=date(2024, 1, 1)))

    with pytest.raises(InvalidInputError):
        store.update_session(mistake_id, mistake_id=5)
    with pytest.raises(InvalidInputError):
        store.update_session(mistake_id, interval_days=0)
    with pytest.raises(NotFoundError):
        store.update_session(mistake_id + 1, interval_days=2)


def test_due_ties_break_by_session_id(store, mistake_factory):
    ids = [store.record_mistake(mistake_factory(move_number=n)) for n in (1, 2, 3)]
    for mistake_id in reversed(ids):
        store.create_session(StudySession(mistake_id=mistake_id, next_review_date=date(2024, 1, 1)))

    due = store.next_due(date(2024, 1, 1))

    assert due.mistake.id == ids[-1]
    assert store.count_due(date(2024, 1, 1)) == 3
    assert store.count_due(date(2023, 12, 31)) == 0


def test_dates_are_stored_as_iso_strings(store, mistake_factory):
    mistake_id = store.record_mistake(mistake_factory())
    store.create_session(StudySession(mistake_id=mistake_id, next_review_date=date(2024, 3, 9)))

    conn = sqlite3.connect(store.db_path)
    try:
        (next_review,) = conn.execute(
            "SELECT next_review FROM study_sessions WHERE mistake_id = ?;", (mistake_id,)
        ).fetchone()
    finally:
        conn.close()
    assert next_review == "2024-03-09"


def test_sqlite_failures_surface_as_store_unavailable(tmp_path):
    store = ReviewSQLiteStore(str(tmp_path / "review.sqlite3"))
    store.db_path = str(tmp_path / "missing-dir" / "nested" / "review.sqlite3")

    with pytest.raises(StoreUnavailableError):
        store.next_due(date(2024, 1, 1))
