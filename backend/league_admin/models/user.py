from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from league_admin.clock import utc_now
from league_admin.models.enums import UserRole


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    username: str = Field(index=True, unique=True)
    email: Optional[str] = Field(default=None)
    phone: Optional[str] = Field(default=None)  # Free-form; normalized to E.164 at send time
    role: UserRole = Field(default=UserRole.PLAYER)
    created_at: datetime = Field(default_factory=utc_now)
