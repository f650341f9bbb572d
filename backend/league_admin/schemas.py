"""Response envelope and the read models shared across routers (camelCase on the wire)."""
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from league_admin.models.enums import (
    AdminActionType,
    CancellationStatus,
    DisputeCategory,
    DisputePriority,
    DisputeStatus,
    MatchReportCategory,
    MatchStatus,
    NotificationStatus,
    PenaltySeverity,
    PenaltyType,
    ResolutionAction,
    TeamSide,
)

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[str] = None


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ParticipantOut(CamelModel):
    user_id: int
    team: TeamSide


class MatchOut(CamelModel):
    id: int
    league_id: Optional[int] = None
    season_id: Optional[int] = None
    division_id: Optional[int] = None
    status: MatchStatus
    sets_to_win: int
    scheduled_at: Optional[datetime] = None
    team1_score: Optional[int] = None
    team2_score: Optional[int] = None
    set_scores: Optional[List[Dict[str, Any]]] = None
    outcome: Optional[TeamSide] = None
    is_walkover: bool
    walkover_reason: Optional[str] = None
    is_disputed: bool
    has_late_cancellation: bool
    cancelled_at: Optional[datetime] = None
    cancelled_by_id: Optional[int] = None
    admin_notes: Optional[str] = None
    is_hidden_from_public: bool = False
    hidden_at: Optional[datetime] = None
    hidden_by_admin_id: Optional[int] = None
    hidden_reason: Optional[str] = None
    is_reported_for_abuse: bool = False
    reported_at: Optional[datetime] = None
    reported_by_admin_id: Optional[int] = None
    report_reason: Optional[str] = None
    report_category: Optional[MatchReportCategory] = None
    version: int
    created_at: datetime
    updated_at: datetime
    participants: List[ParticipantOut] = []


class MatchStatsOut(CamelModel):
    total_matches: int
    by_status: Dict[str, int]
    disputed: int
    late_cancellations: int
    walkovers: int
    hidden: int
    reported: int
    requires_admin_review: int


class MatchListOut(CamelModel):
    matches: List[MatchOut]
    total: int
    page: int
    limit: int
    total_pages: int
    stats: MatchStatsOut


class AuditEntryOut(CamelModel):
    id: int
    match_id: int
    admin_id: int
    action_type: AdminActionType
    old_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    reason: str
    affected_user_ids: List[int] = []
    created_at: datetime


class DisputeNoteOut(CamelModel):
    id: int
    dispute_id: int
    admin_id: Optional[int] = None
    note: str
    is_internal_only: bool
    created_at: datetime


class DisputeOut(CamelModel):
    id: int
    match_id: int
    raised_by_user_id: int
    category: DisputeCategory
    priority: DisputePriority
    status: DisputeStatus
    description: Optional[str] = None
    disputer_score: Optional[Dict[str, Any]] = None
    resolution_action: Optional[ResolutionAction] = None
    resolution_reason: Optional[str] = None
    final_score: Optional[Dict[str, Any]] = None
    reviewed_by_admin_id: Optional[int] = None
    resolved_by_admin_id: Optional[int] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime


class DisputeDetailOut(DisputeOut):
    match: MatchOut
    notes: List[DisputeNoteOut] = []


class DisputeListOut(CamelModel):
    disputes: List[DisputeOut]
    total: int
    page: int
    limit: int
    total_pages: int


class PenaltyOut(CamelModel):
    id: int
    user_id: int
    issued_by_admin_id: int
    penalty_type: PenaltyType
    severity: PenaltySeverity
    points_deducted: Optional[int] = None
    suspension_days: Optional[int] = None
    suspension_ends_at: Optional[datetime] = None
    related_match_id: Optional[int] = None
    related_dispute_id: Optional[int] = None
    reason: str
    evidence_url: Optional[str] = None
    created_at: datetime


class LateCancellationOut(CamelModel):
    id: int
    match_id: int
    cancelled_by_id: int
    status: CancellationStatus
    cancellation_reason: Optional[str] = None
    reviewed_by_admin_id: Optional[int] = None
    review_reason: Optional[str] = None
    penalty_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime


class CancellationReviewOut(CamelModel):
    cancellation: LateCancellationOut
    penalty: Optional[PenaltyOut] = None


class NotificationOut(CamelModel):
    id: int
    type: str
    title: str
    message: str
    match_id: Optional[int] = None
    status: NotificationStatus
    created_at: datetime
    delivered_at: Optional[datetime] = None


class ParticipantMessageOut(CamelModel):
    sent: int
    recipients: List[int]


class StandingRowOut(CamelModel):
    position: int
    user_id: int
    name: str
    played: int
    wins: int
    losses: int
    walkover_wins: int
