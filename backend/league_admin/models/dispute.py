from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Index, text
from sqlmodel import Column, Field, Relationship, SQLModel

from league_admin.clock import utc_now
from league_admin.models.enums import DisputeCategory, DisputePriority, DisputeStatus, ResolutionAction

_ACTIVE_WHERE = text("status IN ('OPEN', 'IN_REVIEW')")


class Dispute(SQLModel, table=True):
    # At most one OPEN/IN_REVIEW dispute per match
    __table_args__ = (
        Index(
            "uq_dispute_active_match",
            "match_id",
            unique=True,
            sqlite_where=_ACTIVE_WHERE,
            postgresql_where=_ACTIVE_WHERE,
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    raised_by_user_id: int = Field(foreign_key="user.id")
    category: DisputeCategory = Field(default=DisputeCategory.WRONG_SCORE)
    priority: DisputePriority = Field(default=DisputePriority.NORMAL)
    status: DisputeStatus = Field(default=DisputeStatus.OPEN, index=True)
    description: Optional[str] = Field(default=None)
    disputer_score: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))

    # Set once, by the resolving admin
    resolution_action: Optional[ResolutionAction] = Field(default=None)
    resolution_reason: Optional[str] = Field(default=None)
    final_score: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    reviewed_by_admin_id: Optional[int] = Field(default=None, foreign_key="user.id")
    resolved_by_admin_id: Optional[int] = Field(default=None, foreign_key="user.id")
    resolved_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)

    notes: List["DisputeNote"] = Relationship(back_populates="dispute")


class DisputeNote(SQLModel, table=True):
    __tablename__ = "dispute_note"

    id: Optional[int] = Field(default=None, primary_key=True)
    dispute_id: int = Field(foreign_key="dispute.id", index=True)
    admin_id: Optional[int] = Field(default=None, foreign_key="user.id")
    note: str
    is_internal_only: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)

    dispute: Optional[Dispute] = Relationship(back_populates="notes")
