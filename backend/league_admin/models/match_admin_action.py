from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel

from league_admin.clock import utc_now
from league_admin.models.enums import AdminActionType


class MatchAdminAction(SQLModel, table=True):
    """Audit trail entry for an admin correction to a match."""

    __tablename__ = "match_admin_action"

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    admin_id: int = Field(foreign_key="user.id")
    action_type: AdminActionType
    old_value: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    new_value: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    reason: str
    affected_user_ids: List[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utc_now)
