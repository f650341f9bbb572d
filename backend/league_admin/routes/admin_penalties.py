"""Penalty ledger endpoints (append-only)."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import Session

from league_admin.auth import AdminContext, get_admin_context
from league_admin.database import get_session
from league_admin.errors import NotFoundError
from league_admin.models.enums import PenaltySeverity, PenaltyType
from league_admin.models.user import User
from league_admin.schemas import ApiResponse, PenaltyOut
from league_admin.services.notification_service import NotificationDispatcher, get_notifier
from league_admin.services.penalty_service import apply_penalty, get_player_penalties

router = APIRouter(prefix="/api/admin/penalties", tags=["admin-penalties"])


class ApplyPenaltyRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: Optional[int] = None
    penalty_type: Optional[PenaltyType] = None
    severity: Optional[PenaltySeverity] = None
    reason: Optional[str] = None
    related_match_id: Optional[int] = None
    related_dispute_id: Optional[int] = None
    points_deducted: Optional[int] = None
    suspension_days: Optional[int] = None
    evidence_url: Optional[str] = None


@router.post("/apply", response_model=ApiResponse[PenaltyOut], status_code=201)
def apply(
    body: ApplyPenaltyRequest,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """
    Append a penalty to a player's ledger.

    Penalties are never deduplicated: two identical requests record two penalties.
    """
    penalty = apply_penalty(
        session,
        admin,
        user_id=body.user_id,
        penalty_type=body.penalty_type,
        severity=body.severity,
        reason=body.reason,
        related_match_id=body.related_match_id,
        related_dispute_id=body.related_dispute_id,
        points_deducted=body.points_deducted,
        suspension_days=body.suspension_days,
        evidence_url=body.evidence_url,
        notifier=notifier,
    )
    return ApiResponse(data=PenaltyOut.model_validate(penalty), message="Penalty applied")


@router.get("/player/{user_id}", response_model=ApiResponse[List[PenaltyOut]])
def player_penalties(
    user_id: int,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    """A player's penalty history, newest first."""
    if not session.get(User, user_id):
        raise NotFoundError("User not found")
    return ApiResponse(data=[PenaltyOut.model_validate(p) for p in get_player_penalties(session, user_id)])
