"""Demo mistakes for local development.

ローカル確認用に数件のミスを登録し、すぐ復習できるよう登録まで行う。
"""

from __future__ import annotations

from .errors import ConflictError
from .logging import logger
from .records import Mistake
from .srs import MistakeScheduler, classify_eval_drop, evaluation_drop, side_to_move


DEMO_GAME_ID = 1

# (move_number, fen before the move, played, best, eval before, eval after)
DEMO_MISTAKES: list[tuple[int, str, str, str, float, float]] = [
    (
        3,
        "r1bqkbnr/pppp1ppp/2n5/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R b KQkq - 3 3",
        "d6",
        "Nf6",
        0.3,
        0.9,
    ),
    (
        4,
        "r1bqkbnr/ppp2ppp/2np4/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 0 4",
        "h3",
        "d4",
        0.9,
        0.2,
    ),
    (
        9,
        "r2qk2r/ppp2ppp/2np1n2/2b1p3/2B1P1b1/2NP1N2/PPP2PPP/R1BQ1RK1 w kq - 4 9",
        "Qe2",
        "h3",
        0.4,
        -2.1,
    ),
]


def build_demo_mistakes(game_id: int = DEMO_GAME_ID) -> list[Mistake]:
    mistakes: list[Mistake] = []
    for move_number, fen, played, best, before, after in DEMO_MISTAKES:
        drop = evaluation_drop(before, after, side_to_move(fen))
        mistake_type = classify_eval_drop(drop)
        if mistake_type is None:
            continue
        mistakes.append(
            Mistake(
                game_id=game_id,
                move_number=move_number,
                position_fen=fen,
                played_move=played,
                best_move=best,
                evaluation_before=before,
                evaluation_after=after,
                mistake_type=mistake_type,
                analysis=f"Lost {drop:.1f} points",
            )
        )
    return mistakes


def seed_demo(scheduler: MistakeScheduler, *, enroll: bool = True, game_id: int = DEMO_GAME_ID) -> tuple[int, int]:
    """Record the demo mistakes and optionally enroll them. Returns (recorded, enrolled)."""
    recorded = 0
    enrolled = 0
    for mistake in build_demo_mistakes(game_id):
        mistake_id = scheduler.record_mistake(mistake)
        recorded += 1
        if not enroll:
            continue
        try:
            scheduler.enroll(mistake_id)
            enrolled += 1
        except ConflictError:
            logger.info("seed_demo_already_enrolled", mistake_id=mistake_id)
    logger.info("seed_demo", game_id=game_id, recorded=recorded, enrolled=enrolled)
    return recorded, enrolled
