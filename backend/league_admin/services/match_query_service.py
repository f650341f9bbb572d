"""Admin matches dashboard: filtered listing and headline counts."""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlmodel import Session, select

from league_admin.clock import as_utc
from league_admin.models.enums import MatchContext, MatchStatus
from league_admin.models.match import Match, MatchParticipant
from league_admin.models.user import User


@dataclass
class AdminMatchFilters:
    league_id: Optional[int] = None
    season_id: Optional[int] = None
    division_id: Optional[int] = None
    statuses: List[MatchStatus] = field(default_factory=list)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search: Optional[str] = None
    is_disputed: Optional[bool] = None
    has_late_cancellation: Optional[bool] = None
    match_context: MatchContext = MatchContext.ALL
    show_hidden: Optional[bool] = None
    show_reported: Optional[bool] = None
    page: int = 1
    limit: int = 20


def _scope_conditions(league_id=None, season_id=None, division_id=None) -> list:
    conditions = []
    if league_id is not None:
        conditions.append(Match.league_id == league_id)
    if season_id is not None:
        conditions.append(Match.season_id == season_id)
    if division_id is not None:
        conditions.append(Match.division_id == division_id)
    return conditions


def _filter_conditions(filters: AdminMatchFilters) -> list:
    conditions = _scope_conditions(filters.league_id, filters.season_id, filters.division_id)
    if filters.statuses:
        conditions.append(Match.status.in_(filters.statuses))
    if filters.is_disputed is not None:
        conditions.append(Match.is_disputed == filters.is_disputed)
    if filters.has_late_cancellation:
        conditions.append(Match.has_late_cancellation.is_(True))
    if filters.match_context == MatchContext.LEAGUE:
        conditions.append(
            or_(Match.league_id.is_not(None), Match.season_id.is_not(None), Match.division_id.is_not(None))
        )
    elif filters.match_context == MatchContext.FRIENDLY:
        conditions.extend(
            [Match.league_id.is_(None), Match.season_id.is_(None), Match.division_id.is_(None)]
        )
    if filters.show_hidden is not None:
        conditions.append(Match.is_hidden_from_public == filters.show_hidden)
    if filters.show_reported:
        conditions.append(Match.is_reported_for_abuse.is_(True))
    if filters.start_date is not None:
        conditions.append(Match.scheduled_at >= as_utc(filters.start_date))
    if filters.end_date is not None:
        conditions.append(Match.scheduled_at <= as_utc(filters.end_date))
    if filters.search:
        pattern = f"%{filters.search.strip().lower()}%"
        matching_ids = (
            select(MatchParticipant.match_id)
            .join(User, User.id == MatchParticipant.user_id)
            .where(or_(func.lower(User.name).like(pattern), func.lower(User.username).like(pattern)))
        )
        conditions.append(Match.id.in_(matching_ids))
    return conditions


def _count(session: Session, conditions: list) -> int:
    return session.exec(select(func.count()).select_from(Match).where(*conditions)).one()


def get_match_stats(
    session: Session,
    league_id: Optional[int] = None,
    season_id: Optional[int] = None,
    division_id: Optional[int] = None,
) -> Dict[str, Any]:
    scope = _scope_conditions(league_id, season_id, division_id)

    by_status = {status.value: 0 for status in MatchStatus}
    rows = session.exec(
        select(Match.status, func.count()).where(*scope).group_by(Match.status)
    ).all()
    for status, count in rows:
        by_status[MatchStatus(status).value] = count

    disputed = _count(session, scope + [Match.is_disputed.is_(True)])
    late_cancellations = _count(session, scope + [Match.has_late_cancellation.is_(True)])
    return {
        "total_matches": _count(session, scope),
        "by_status": by_status,
        "disputed": disputed,
        "late_cancellations": late_cancellations,
        "walkovers": _count(session, scope + [Match.is_walkover.is_(True)]),
        "hidden": _count(session, scope + [Match.is_hidden_from_public.is_(True)]),
        "reported": _count(session, scope + [Match.is_reported_for_abuse.is_(True)]),
        "requires_admin_review": disputed + late_cancellations,
    }


def list_admin_matches(session: Session, filters: AdminMatchFilters) -> Dict[str, Any]:
    """Reported, then disputed, then late-cancelled matches float to the top; newest first after that."""
    conditions = _filter_conditions(filters)
    total = _count(session, conditions)
    matches = session.exec(
        select(Match)
        .where(*conditions)
        .order_by(
            Match.is_reported_for_abuse.desc(),
            Match.is_disputed.desc(),
            Match.has_late_cancellation.desc(),
            Match.scheduled_at.desc(),
            Match.id.desc(),
        )
        .offset((filters.page - 1) * filters.limit)
        .limit(filters.limit)
    ).all()

    return {
        "matches": matches,
        "total": total,
        "page": filters.page,
        "limit": filters.limit,
        "total_pages": math.ceil(total / filters.limit) if filters.limit else 0,
        "stats": get_match_stats(session, filters.league_id, filters.season_id, filters.division_id),
    }
