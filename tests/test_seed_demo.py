from datetime import date

from chess_review.models.common import MistakeType
from chess_review.seed_demo import DEMO_GAME_ID, build_demo_mistakes, seed_demo


def test_demo_mistakes_are_classified_from_evaluations():
    mistakes = build_demo_mistakes()
    assert [m.mistake_type for m in mistakes] == [
        MistakeType.inaccuracy,
        MistakeType.inaccuracy,
        MistakeType.blunder,
    ]


def test_seed_demo_records_and_enrolls(scheduler):
    recorded, enrolled = seed_demo(scheduler)

    assert (recorded, enrolled) == (3, 3)
    assert len(scheduler.list_mistakes(DEMO_GAME_ID)) == 3
    assert scheduler.count_due(date(2024, 1, 1)) == 3


def test_seed_demo_without_enrollment(scheduler):
    recorded, enrolled = seed_demo(scheduler, enroll=False, game_id=5)

    assert (recorded, enrolled) == (3, 0)
    assert scheduler.next_due(date(2024, 1, 1)) is None
