from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from league_admin.clock import utc_now
from league_admin.models.enums import PenaltySeverity, PenaltyType


class Penalty(SQLModel, table=True):
    """Append-only sanction record. Corrections are new, offsetting rows."""

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    issued_by_admin_id: int = Field(foreign_key="user.id")
    penalty_type: PenaltyType
    severity: PenaltySeverity
    points_deducted: Optional[int] = Field(default=None)
    suspension_days: Optional[int] = Field(default=None)
    suspension_ends_at: Optional[datetime] = Field(default=None)
    related_match_id: Optional[int] = Field(default=None, foreign_key="match.id")
    related_dispute_id: Optional[int] = Field(default=None, foreign_key="dispute.id")
    reason: str
    evidence_url: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
