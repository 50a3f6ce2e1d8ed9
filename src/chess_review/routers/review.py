from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..deps import get_scheduler
from ..errors import ConflictError, InvalidInputError, NotFoundError, StoreUnavailableError
from ..metrics import registry
from ..models.review import (
    DueReviewResponse,
    ReviewPolicyEntry,
    ReviewPolicyResponse,
    ReviewResultRequest,
    ReviewResultResponse,
    ReviewStatsResponse,
)
from ..srs import INTERVAL_TABLE, MistakeScheduler, ReviewOutcome
from .mistakes import to_mistake_out

router = APIRouter(tags=["review"])


@router.get("/review-due", response_model=Optional[DueReviewResponse], summary="最も期限を過ぎた復習を1件取得")
def review_due(
    today: Optional[date] = None, scheduler: MistakeScheduler = Depends(get_scheduler)
) -> Optional[DueReviewResponse]:
    """Return the earliest overdue mistake, or null when nothing is due.

    ``today`` defaults to the server clock's date.
    """
    try:
        due = scheduler.next_due(today)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="review store unavailable")
    if due is None:
        return None
    return DueReviewResponse(
        **to_mistake_out(due.mistake).model_dump(),
        next_review=due.session.next_review_date,
        interval_days=due.session.interval_days,
        times_reviewed=due.session.times_reviewed,
    )


def _build_outcome(req: ReviewResultRequest) -> ReviewOutcome:
    # 間隔表との照合はセッションの有無が分かってから scheduler 側で行う
    if req.confidence is None:
        return ReviewOutcome(difficulty=req.difficulty, player_move=req.player_move, interval_days=req.days)
    return ReviewOutcome.from_confidence(
        req.correct, req.confidence, player_move=req.player_move, interval_days=req.days
    )


@router.post(
    "/review-result/{mistake_id}",
    response_model=ReviewResultResponse,
    summary="復習結果を記録して次回日を更新（未登録なら登録）",
)
def review_result(
    mistake_id: int,
    req: Optional[ReviewResultRequest] = None,
    scheduler: MistakeScheduler = Depends(get_scheduler),
) -> ReviewResultResponse:
    """Enroll a mistake or complete its review.

    An empty body enrolls the mistake (due today). A body with ``days``,
    ``difficulty`` or ``confidence`` completes the review; if the mistake was
    never enrolled it is enrolled instead.
    """
    req = req or ReviewResultRequest()
    try:
        if req.is_enrollment():
            session = scheduler.enroll(mistake_id, player_move=req.player_move)
            enrolled = True
        else:
            result = scheduler.process_review(mistake_id, _build_outcome(req))
            session, enrolled = result.session, result.enrolled
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ConflictError as exc:
        registry.incr("review_conflicts")
        raise HTTPException(status_code=409, detail=str(exc))
    except InvalidInputError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="review store unavailable")

    registry.incr("review_enrollments" if enrolled else "review_completions")
    return ReviewResultResponse(
        success=True,
        next_interval=session.interval_days,
        next_review=session.next_review_date,
        times_reviewed=session.times_reviewed,
        enrolled=enrolled,
    )


@router.get("/review-policy", response_model=ReviewPolicyResponse, summary="自信度ごとの復習間隔表")
def review_policy() -> ReviewPolicyResponse:
    entries = [
        ReviewPolicyEntry(correct=correct, confidence=confidence, difficulty=difficulty, days=days)
        for (correct, confidence), (difficulty, days) in INTERVAL_TABLE.items()
    ]
    return ReviewPolicyResponse(entries=entries)


@router.get("/review-stats", response_model=ReviewStatsResponse, summary="期限到来済みの復習件数")
def review_stats(
    today: Optional[date] = None, scheduler: MistakeScheduler = Depends(get_scheduler)
) -> ReviewStatsResponse:
    today = today or scheduler.clock.today()
    try:
        due_now = scheduler.count_due(today)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="review store unavailable")
    return ReviewStatsResponse(today=today, due_now=due_now)
