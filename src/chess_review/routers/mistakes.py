from fastapi import APIRouter, Depends, HTTPException

from ..deps import get_scheduler
from ..errors import InvalidInputError, StoreUnavailableError
from ..models.mistake import MistakeCreateResponse, MistakeIn, MistakeOut
from ..records import Mistake
from ..srs import MistakeScheduler, classify_eval_drop, evaluation_drop, side_to_move

router = APIRouter(tags=["mistakes"])


def to_mistake_out(mistake: Mistake) -> MistakeOut:
    return MistakeOut(
        id=mistake.id,
        game_id=mistake.game_id,
        move_number=mistake.move_number,
        position_fen=mistake.position_fen,
        played_move=mistake.played_move,
        best_move=mistake.best_move,
        evaluation_before=mistake.evaluation_before,
        evaluation_after=mistake.evaluation_after,
        mistake_type=mistake.mistake_type,
        analysis=mistake.analysis,
    )


@router.post("/mistakes", response_model=MistakeCreateResponse, summary="解析で見つかったミスを登録")
def create_mistake(
    req: MistakeIn, scheduler: MistakeScheduler = Depends(get_scheduler)
) -> MistakeCreateResponse:
    """Store a mistake found by game analysis.

    When ``mistake_type`` is omitted it is derived from the evaluation drop for
    the side to move in ``position_fen``.
    """
    try:
        mistake_type = req.mistake_type
        analysis = req.analysis
        if mistake_type is None:
            drop = evaluation_drop(req.evaluation_before, req.evaluation_after, side_to_move(req.position_fen))
            mistake_type = classify_eval_drop(drop)
            if mistake_type is None:
                raise InvalidInputError(f"evaluation drop {drop:.2f} is below the inaccuracy threshold")
            analysis = analysis or f"Lost {drop:.1f} points"
        mistake = Mistake(
            game_id=req.game_id,
            move_number=req.move_number,
            position_fen=req.position_fen,
            played_move=req.played_move,
            best_move=req.best_move,
            evaluation_before=req.evaluation_before,
            evaluation_after=req.evaluation_after,
            mistake_type=mistake_type,
            analysis=analysis,
        )
        mistake_id = scheduler.record_mistake(mistake)
    except InvalidInputError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="review store unavailable")
    return MistakeCreateResponse(id=mistake_id, mistake_type=mistake_type)


@router.get("/mistakes/{game_id}", response_model=list[MistakeOut], summary="対局のミス一覧（新しい手順から）")
def list_mistakes(game_id: int, scheduler: MistakeScheduler = Depends(get_scheduler)) -> list[MistakeOut]:
    try:
        mistakes = scheduler.list_mistakes(game_id)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="review store unavailable")
    return [to_mistake_out(m) for m in mistakes]
