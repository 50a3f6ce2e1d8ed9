from datetime import date, datetime

import pytest

from chess_review.errors import InvalidInputError
from chess_review.models.common import MistakeType
from chess_review.records import StudySession


def test_mistake_type_is_coerced_from_string(mistake_factory):
    mistake = mistake_factory(mistake_type="blunder")
    assert mistake.mistake_type is MistakeType.blunder


@pytest.mark.parametrize(
    "overrides",
    [
        {"move_number": 0},
        {"position_fen": "8/8/8/8/8/8/8/8"},
        {"played_move": "  "},
        {"mistake_type": "oversight"},
    ],
)
def test_malformed_mistakes_are_rejected(mistake_factory, overrides):
    with pytest.raises(InvalidInputError):
        mistake_factory(**overrides)


def test_session_requires_calendar_date():
    with pytest.raises(InvalidInputError):
        StudySession(mistake_id=1, next_review_date=datetime(2024, 1, 1, 10, 0))


def test_session_rejects_negative_review_count():
    with pytest.raises(InvalidInputError):
        StudySession(mistake_id=1, next_review_date=date(2024, 1, 1), times_reviewed=-1)