"""Admin match endpoints: dashboard listing, result overrides, moderation, audit trail and standings."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import Session

from league_admin.auth import AdminContext, get_admin_context
from league_admin.database import get_session
from league_admin.errors import ValidationError
from league_admin.models.enums import MatchContext, MatchReportCategory, MatchStatus
from league_admin.schemas import (
    ApiResponse,
    AuditEntryOut,
    MatchListOut,
    MatchOut,
    MatchStatsOut,
    ParticipantMessageOut,
    StandingRowOut,
)
from league_admin.services.match_audit import load_match
from league_admin.services.match_moderation_service import (
    clear_match_report,
    hide_match,
    message_participants,
    report_match_abuse,
    unhide_match,
)
from league_admin.services.match_override_service import (
    MatchResultPatch,
    convert_to_walkover,
    edit_match_result,
    get_match_audit_trail,
    void_match,
)
from league_admin.services.match_query_service import (
    AdminMatchFilters,
    get_match_stats,
    list_admin_matches,
)
from league_admin.services.notification_service import NotificationDispatcher, get_notifier
from league_admin.services.standings_service import compute_division_standings

router = APIRouter(prefix="/api/admin", tags=["admin-matches"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class _CamelBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EditResultRequest(MatchResultPatch):
    """Result fields to change plus the audit reason."""

    reason: Optional[str] = None


class ReasonRequest(_CamelBody):
    reason: Optional[str] = None


class ReportAbuseRequest(_CamelBody):
    reason: Optional[str] = None
    category: Optional[MatchReportCategory] = None


class MessageParticipantsRequest(_CamelBody):
    subject: Optional[str] = None
    message: Optional[str] = None


class ConvertToWalkoverRequest(_CamelBody):
    winner_id: Optional[int] = None
    reason: Optional[str] = None
    walkover_reason: Optional[str] = None


def _parse_statuses(raw: Optional[str]) -> List[MatchStatus]:
    if not raw:
        return []
    statuses = []
    for part in raw.split(","):
        part = part.strip().upper()
        if not part:
            continue
        try:
            statuses.append(MatchStatus(part))
        except ValueError:
            raise ValidationError(f"Unknown match status: {part}")
    return statuses


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@router.get("/matches", response_model=ApiResponse[MatchListOut])
def list_matches(
    league_id: Optional[int] = Query(None, alias="leagueId"),
    season_id: Optional[int] = Query(None, alias="seasonId"),
    division_id: Optional[int] = Query(None, alias="divisionId"),
    status: Optional[str] = Query(None, description="Comma-separated match statuses"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    search: Optional[str] = Query(None),
    is_disputed: Optional[bool] = Query(None, alias="isDisputed"),
    has_late_cancellation: Optional[bool] = Query(None, alias="hasLateCancellation"),
    match_context: MatchContext = Query(MatchContext.ALL, alias="matchContext"),
    show_hidden: Optional[bool] = Query(None, alias="showHidden"),
    show_reported: Optional[bool] = Query(None, alias="showReported"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    """
    Paginated admin view of matches with headline stats.

    Reported, disputed and late-cancelled matches are listed first.
    """
    filters = AdminMatchFilters(
        league_id=league_id,
        season_id=season_id,
        division_id=division_id,
        statuses=_parse_statuses(status),
        start_date=start_date,
        end_date=end_date,
        search=search,
        is_disputed=is_disputed,
        has_late_cancellation=has_late_cancellation,
        match_context=match_context,
        show_hidden=show_hidden,
        show_reported=show_reported,
        page=page,
        limit=limit,
    )
    result = list_admin_matches(session, filters)
    return ApiResponse(
        data=MatchListOut(
            matches=[MatchOut.model_validate(m) for m in result["matches"]],
            total=result["total"],
            page=result["page"],
            limit=result["limit"],
            total_pages=result["total_pages"],
            stats=MatchStatsOut.model_validate(result["stats"]),
        )
    )


@router.get("/matches/stats", response_model=ApiResponse[MatchStatsOut])
def match_stats(
    league_id: Optional[int] = Query(None, alias="leagueId"),
    season_id: Optional[int] = Query(None, alias="seasonId"),
    division_id: Optional[int] = Query(None, alias="divisionId"),
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    """Match counts by status and by admin flag."""
    stats = get_match_stats(session, league_id, season_id, division_id)
    return ApiResponse(data=MatchStatsOut.model_validate(stats))


@router.get("/matches/{match_id}", response_model=ApiResponse[MatchOut])
def get_match(
    match_id: int,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    match = load_match(session, match_id)
    return ApiResponse(data=MatchOut.model_validate(match))


@router.get("/matches/{match_id}/audit", response_model=ApiResponse[List[AuditEntryOut]])
def match_audit_trail(
    match_id: int,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    """Every admin action on the match, oldest first."""
    entries = get_match_audit_trail(session, match_id)
    return ApiResponse(data=[AuditEntryOut.model_validate(e) for e in entries])


# ---------------------------------------------------------------------------
# Result overrides
# ---------------------------------------------------------------------------


@router.put("/matches/{match_id}/result", response_model=ApiResponse[MatchOut])
def edit_result(
    match_id: int,
    body: EditResultRequest,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """
    Partially update a recorded result.

    Only the fields present in the body are written. `reason` is required and
    lands in the audit trail with the before/after values.
    """
    match = edit_match_result(session, match_id, admin, body, body.reason, notifier=notifier)
    return ApiResponse(data=MatchOut.model_validate(match), message="Match result updated")


@router.post("/matches/{match_id}/void", response_model=ApiResponse[MatchOut])
def void(
    match_id: int,
    body: ReasonRequest,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """Void a match. Voiding an already void match is a conflict."""
    match = void_match(session, match_id, admin, body.reason, notifier=notifier)
    return ApiResponse(data=MatchOut.model_validate(match), message="Match voided")


@router.post("/matches/{match_id}/walkover", response_model=ApiResponse[MatchOut])
def walkover(
    match_id: int,
    body: ConvertToWalkoverRequest,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """Record the match as a walkover won by the side of `winnerId`."""
    match = convert_to_walkover(
        session,
        match_id,
        admin,
        winner_id=body.winner_id,
        reason=body.reason,
        walkover_reason=body.walkover_reason,
        notifier=notifier,
    )
    return ApiResponse(data=MatchOut.model_validate(match), message="Match converted to walkover")


# ---------------------------------------------------------------------------
# Moderation
# ---------------------------------------------------------------------------


@router.post("/matches/{match_id}/hide", response_model=ApiResponse[MatchOut])
def hide(
    match_id: int,
    body: ReasonRequest,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    match = hide_match(session, match_id, admin, body.reason)
    return ApiResponse(data=MatchOut.model_validate(match), message="Match hidden")


@router.post("/matches/{match_id}/unhide", response_model=ApiResponse[MatchOut])
def unhide(
    match_id: int,
    body: Optional[ReasonRequest] = None,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    match = unhide_match(session, match_id, admin, body.reason if body else None)
    return ApiResponse(data=MatchOut.model_validate(match), message="Match visibility restored")


@router.post("/matches/{match_id}/report", response_model=ApiResponse[MatchOut])
def report(
    match_id: int,
    body: ReportAbuseRequest,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    """Flag a match for abuse. Requires `reason` and `category`."""
    match = report_match_abuse(session, match_id, admin, body.reason, body.category)
    return ApiResponse(data=MatchOut.model_validate(match), message="Match reported")


@router.post("/matches/{match_id}/clear-report", response_model=ApiResponse[MatchOut])
def clear_report(
    match_id: int,
    body: Optional[ReasonRequest] = None,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    match = clear_match_report(session, match_id, admin, body.reason if body else None)
    return ApiResponse(data=MatchOut.model_validate(match), message="Report cleared")


@router.post("/matches/{match_id}/message", response_model=ApiResponse[ParticipantMessageOut])
def message(
    match_id: int,
    body: MessageParticipantsRequest,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """Queue an admin message for every participant (in-app, plus SMS where a phone is on file)."""
    result = message_participants(
        session, match_id, admin, body.message, subject=body.subject, notifier=notifier
    )
    return ApiResponse(data=ParticipantMessageOut.model_validate(result), message="Message queued")


# ---------------------------------------------------------------------------
# Standings
# ---------------------------------------------------------------------------


@router.get("/divisions/{division_id}/standings", response_model=ApiResponse[List[StandingRowOut]])
def division_standings(
    division_id: int,
    admin: AdminContext = Depends(get_admin_context),
    session: Session = Depends(get_session),
):
    """Win/loss table for a division; void matches do not count."""
    rows = compute_division_standings(session, division_id)
    return ApiResponse(data=[StandingRowOut.model_validate(r) for r in rows])
