"""Player-facing endpoints that feed the admin queues."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import Session

from league_admin.auth import get_current_user
from league_admin.database import get_session
from league_admin.errors import ValidationError
from league_admin.models.enums import DisputeCategory, DisputePriority
from league_admin.models.user import User
from league_admin.schemas import (
    ApiResponse,
    CamelModel,
    DisputeOut,
    LateCancellationOut,
    MatchOut,
    NotificationOut,
)
from league_admin.services.cancellation_service import cancel_match
from league_admin.services.dispute_service import raise_dispute
from league_admin.services.notification_service import list_user_notifications
from league_admin.services.scoring import FinalScore

router = APIRouter(prefix="/api", tags=["player"])


class RaiseDisputeRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category: Optional[DisputeCategory] = None
    description: Optional[str] = None
    claimed_score: Optional[FinalScore] = None
    priority: DisputePriority = DisputePriority.NORMAL


class CancelMatchRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    reason: Optional[str] = None


class CancelMatchOut(CamelModel):
    match: MatchOut
    late_cancellation: Optional[LateCancellationOut] = None


@router.post("/matches/{match_id}/disputes", response_model=ApiResponse[DisputeOut], status_code=201)
def create_dispute(
    match_id: int,
    body: RaiseDisputeRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Raise a dispute on a finished match. One active dispute per match."""
    if body.category is None:
        raise ValidationError("category is required")
    dispute = raise_dispute(
        session,
        match_id,
        user,
        category=body.category,
        description=body.description,
        claimed_score=body.claimed_score.as_mapping() if body.claimed_score else None,
        priority=body.priority,
    )
    return ApiResponse(data=DisputeOut.model_validate(dispute), message="Dispute submitted")


@router.post("/matches/{match_id}/cancel", response_model=ApiResponse[CancelMatchOut])
def cancel(
    match_id: int,
    body: CancelMatchRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """
    Withdraw from a draft or scheduled match.

    Inside the late window the cancellation is queued for admin review.
    """
    match, cancellation = cancel_match(session, match_id, user, body.reason)
    return ApiResponse(
        data=CancelMatchOut(
            match=MatchOut.model_validate(match),
            late_cancellation=LateCancellationOut.model_validate(cancellation) if cancellation else None,
        ),
        message="Late cancellation submitted for review" if cancellation else "Match cancelled",
    )


@router.get("/notifications", response_model=ApiResponse[List[NotificationOut]])
def my_notifications(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return ApiResponse(data=[NotificationOut.model_validate(n) for n in list_user_notifications(session, user.id)])
