"""Admin dispute queue and resolution endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import Session

from league_admin.auth import AdminContext, get_admin_context
from league_admin.database import get_session
from league_admin.errors import ValidationError
from league_admin.models.enums import DisputePriority, DisputeStatus, ResolutionAction
from league_admin.schemas import (
    ApiResponse,
    DisputeDetailOut,
    DisputeListOut,
    DisputeNoteOut,
    DisputeOut,
    MatchOut,
)
from league_admin.services.dispute_service import (
    add_dispute_note,
    close_dispute,
    get_dispute,
    get_dispute_notes,
    list_disputes,
    resolve_dispute,
    start_dispute_review,
)
from league_admin.services.match_audit import load_match
from league_admin.services.notification_service import NotificationDispatcher, get_notifier
from league_admin.services.scoring import FinalScore

router = APIRouter(prefix="/api/admin/disputes", tags=["admin-disputes"])


class _CamelBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResolveDisputeRequest(_CamelBody):
    action: Optional[ResolutionAction] = None
    final_score: Optional[FinalScore] = None
    reason: Optional[str] = None
    notify_players: bool = True


class CloseDisputeRequest(_CamelBody):
    reason: Optional[str] = None


class DisputeNoteRequest(_CamelBody):
    note: Optional[str] = None
    is_internal_only: bool = True


def _parse_dispute_statuses(raw: Optional[str]) -> List[DisputeStatus]:
    if not raw:
        return []
    try:
        return [DisputeStatus(p.strip().upper()) for p in raw.split(",") if p.strip()]
    except ValueError:
        raise ValidationError("Unknown dispute status")


def _detail(session: Session, dispute) -> DisputeDetailOut:
    base = DisputeOut.model_validate(dispute).model_dump()
    return DisputeDetailOut(
        **base,
        match=MatchOut.model_validate(load_match(session, dispute.match_id)),
        notes=[DisputeNoteOut.model_validate(n) for n in get_dispute_notes(session, dispute.id)],
    )


@router.get("", response_model=ApiResponse[DisputeListOut])
def list_dispute_queue(
    status: Optional[str] = Query(None, description="Comma-separated dispute statuses"),
    priority: Optional[DisputePriority] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    """Dispute queue ordered by priority, then age."""
    result = list_disputes(session, _parse_dispute_statuses(status), priority, page, limit)
    return ApiResponse(
        data=DisputeListOut(
            disputes=[DisputeOut.model_validate(d) for d in result["disputes"]],
            total=result["total"],
            page=result["page"],
            limit=result["limit"],
            total_pages=result["total_pages"],
        )
    )


@router.get("/{dispute_id}", response_model=ApiResponse[DisputeDetailOut])
def get_dispute_detail(
    dispute_id: int,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    """Dispute with its match and notes."""
    dispute = get_dispute(session, dispute_id)
    return ApiResponse(data=_detail(session, dispute))


@router.post("/{dispute_id}/start-review", response_model=ApiResponse[DisputeOut])
def start_review(
    dispute_id: int,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    dispute = start_dispute_review(session, dispute_id, admin)
    return ApiResponse(data=DisputeOut.model_validate(dispute), message="Dispute is in review")


@router.post("/{dispute_id}/resolve", response_model=ApiResponse[DisputeDetailOut])
def resolve(
    dispute_id: int,
    body: ResolveDisputeRequest,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """
    Apply an admin resolution to a dispute.

    REQUEST_MORE_INFO keeps the dispute open in review; every other action is
    final and a second resolution is a conflict.
    """
    if body.action is None:
        raise ValidationError("action is required")
    dispute = resolve_dispute(
        session,
        dispute_id,
        admin,
        action=body.action,
        reason=body.reason,
        final_score=body.final_score.as_mapping() if body.final_score else None,
        notify_players=body.notify_players,
        notifier=notifier,
    )
    return ApiResponse(data=_detail(session, dispute), message="Dispute updated")


@router.post("/{dispute_id}/close", response_model=ApiResponse[DisputeOut])
def close(
    dispute_id: int,
    body: CloseDisputeRequest,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """Dismiss a dispute without adjudicating it."""
    dispute = close_dispute(session, dispute_id, admin, body.reason, notifier=notifier)
    return ApiResponse(data=DisputeOut.model_validate(dispute), message="Dispute closed")


@router.post("/{dispute_id}/notes", response_model=ApiResponse[DisputeNoteOut], status_code=201)
def add_note(
    dispute_id: int,
    body: DisputeNoteRequest,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    note = add_dispute_note(session, dispute_id, admin, body.note, is_internal_only=body.is_internal_only)
    return ApiResponse(data=DisputeNoteOut.model_validate(note))
