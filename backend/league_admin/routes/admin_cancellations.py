"""Late-cancellation review queue."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import Session

from league_admin.auth import AdminContext, get_admin_context
from league_admin.database import get_session
from league_admin.models.enums import PenaltySeverity
from league_admin.schemas import ApiResponse, CancellationReviewOut, LateCancellationOut, PenaltyOut
from league_admin.services.cancellation_service import get_pending_cancellations, review_cancellation
from league_admin.services.notification_service import NotificationDispatcher, get_notifier

router = APIRouter(prefix="/api/admin/cancellations", tags=["admin-cancellations"])


class ReviewCancellationRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    approved: Optional[bool] = None
    reason: Optional[str] = None
    apply_penalty: bool = False
    penalty_severity: Optional[PenaltySeverity] = None


@router.get("/pending", response_model=ApiResponse[List[LateCancellationOut]])
def pending_cancellations(
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    """Late cancellations awaiting review, oldest first."""
    return ApiResponse(data=[LateCancellationOut.model_validate(c) for c in get_pending_cancellations(session)])


@router.post("/{match_id}/review", response_model=ApiResponse[CancellationReviewOut])
def review(
    match_id: int,
    body: ReviewCancellationRequest,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """
    Approve or deny a late cancellation. Each one can be reviewed once.

    With `applyPenalty`, a penalty sized by `penaltySeverity` (or the configured
    default) is written to the cancelling player's ledger in the same transaction.
    """
    cancellation, penalty = review_cancellation(
        session,
        match_id,
        admin,
        approved=body.approved,
        reason=body.reason,
        apply_penalty=body.apply_penalty,
        penalty_severity=body.penalty_severity,
        notifier=notifier,
    )
    return ApiResponse(
        data=CancellationReviewOut(
            cancellation=LateCancellationOut.model_validate(cancellation),
            penalty=PenaltyOut.model_validate(penalty) if penalty else None,
        ),
        message="Late cancellation reviewed",
    )
