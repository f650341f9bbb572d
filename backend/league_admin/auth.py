"""
Identity capabilities passed explicitly into admin and player operations.

Authentication itself lives in front of this service; it forwards the resolved
principal as X-Admin-Id / X-User-Id headers.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from sqlmodel import Session

from league_admin.database import get_session
from league_admin.errors import UnauthorizedError
from league_admin.models.enums import UserRole
from league_admin.models.user import User


@dataclass(frozen=True)
class AdminContext:
    admin_id: int
    name: str


def _parse_id(raw: Optional[str]) -> Optional[int]:
    if raw is None or not raw.strip().isdigit():
        return None
    return int(raw.strip())


def get_admin_context(
    x_admin_id: Optional[str] = Header(default=None),
    session: Session = Depends(get_session),
) -> AdminContext:
    admin_id = _parse_id(x_admin_id)
    if admin_id is None:
        raise UnauthorizedError("Admin authentication required")
    user = session.get(User, admin_id)
    if not user or user.role != UserRole.ADMIN:
        raise UnauthorizedError("Admin authentication required")
    return AdminContext(admin_id=user.id, name=user.name)


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    session: Session = Depends(get_session),
) -> User:
    user_id = _parse_id(x_user_id)
    user = session.get(User, user_id) if user_id is not None else None
    if not user:
        raise UnauthorizedError("User authentication required")
    return user
