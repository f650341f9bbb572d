from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from league_admin.clock import utc_now
from league_admin.models.enums import CancellationStatus


class LateCancellation(SQLModel, table=True):
    """A withdrawal inside the no-penalty window, waiting for (or past) admin review."""

    __tablename__ = "late_cancellation"

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", unique=True)
    cancelled_by_id: int = Field(foreign_key="user.id")
    status: CancellationStatus = Field(default=CancellationStatus.PENDING, index=True)
    cancellation_reason: Optional[str] = Field(default=None)
    reviewed_by_admin_id: Optional[int] = Field(default=None, foreign_key="user.id")
    review_reason: Optional[str] = Field(default=None)
    penalty_id: Optional[int] = Field(default=None, foreign_key="penalty.id")
    reviewed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
