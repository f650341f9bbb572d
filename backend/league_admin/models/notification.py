"""Notification outbox rows. Each row doubles as the player's in-app message."""

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from league_admin.clock import utc_now
from league_admin.models.enums import NotificationStatus


class Notification(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    type: str  # MATCH_DISPUTE_RESOLVED|MATCH_DISPUTE_UPDATE|MATCH_RESULT_UPDATED|MATCH_VOIDED|LATE_CANCELLATION_REVIEWED|ADMIN_PENALTY_ISSUED
    title: str
    message: str
    match_id: Optional[int] = Field(default=None, foreign_key="match.id")
    status: NotificationStatus = Field(default=NotificationStatus.PENDING, index=True)
    attempts: int = Field(default=0)
    last_error: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    delivered_at: Optional[datetime] = Field(default=None)
