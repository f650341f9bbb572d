from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

from league_admin.clock import utc_now
from league_admin.models.enums import MatchReportCategory, MatchStatus, TeamSide


class Match(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: Optional[int] = Field(default=None, index=True)
    season_id: Optional[int] = Field(default=None, index=True)
    division_id: Optional[int] = Field(default=None, index=True)

    status: MatchStatus = Field(default=MatchStatus.SCHEDULED, index=True)
    sets_to_win: int = Field(default=2)  # 2 = best of three
    scheduled_at: Optional[datetime] = Field(default=None)

    # Recorded result
    team1_score: Optional[int] = Field(default=None)  # Sets won
    team2_score: Optional[int] = Field(default=None)
    set_scores: Optional[List[Dict[str, Any]]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    outcome: Optional[TeamSide] = Field(default=None)  # Winning side; None when void/undecided
    is_walkover: bool = Field(default=False)
    walkover_reason: Optional[str] = Field(default=None)

    # Adjudication flags
    is_disputed: bool = Field(default=False)
    has_late_cancellation: bool = Field(default=False)
    cancelled_at: Optional[datetime] = Field(default=None)
    cancelled_by_id: Optional[int] = Field(default=None, foreign_key="user.id")
    admin_notes: Optional[str] = Field(default=None)

    # Moderation
    is_hidden_from_public: bool = Field(default=False, index=True)
    hidden_at: Optional[datetime] = Field(default=None)
    hidden_by_admin_id: Optional[int] = Field(default=None, foreign_key="user.id")
    hidden_reason: Optional[str] = Field(default=None)
    is_reported_for_abuse: bool = Field(default=False, index=True)
    reported_at: Optional[datetime] = Field(default=None)
    reported_by_admin_id: Optional[int] = Field(default=None, foreign_key="user.id")
    report_reason: Optional[str] = Field(default=None)
    report_category: Optional[MatchReportCategory] = Field(default=None)

    # Bumped by every admin mutation (conditional UPDATE guard)
    version: int = Field(default=1)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    participants: List["MatchParticipant"] = Relationship(back_populates="match")


class MatchParticipant(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("match_id", "user_id", name="uq_participant_match_user"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    team: TeamSide

    match: Optional[Match] = Relationship(back_populates="participants")
