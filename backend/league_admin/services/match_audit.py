"""
Shared match helpers for admin mutations: guarded updates and the audit trail.

Every admin change to a match goes through update_match_guarded(), a
conditional UPDATE on the version the caller loaded, and is paired with a
record_admin_action() row in the same transaction.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from league_admin.clock import utc_now
from league_admin.errors import ConflictError, NotFoundError
from league_admin.models.enums import AdminActionType
from league_admin.models.match import Match, MatchParticipant
from league_admin.models.match_admin_action import MatchAdminAction


def load_match(session: Session, match_id: int) -> Match:
    match = session.get(Match, match_id)
    if not match:
        raise NotFoundError("Match not found")
    return match


def participant_user_ids(session: Session, match_id: int) -> List[int]:
    return list(
        session.exec(
            select(MatchParticipant.user_id)
            .where(MatchParticipant.match_id == match_id)
            .order_by(MatchParticipant.id)
        ).all()
    )


def _enum_value(value):
    return getattr(value, "value", value)


def result_snapshot(match: Match) -> Dict[str, Any]:
    """The result-bearing fields of a match, keyed the way the API reports them."""
    return {
        "status": _enum_value(match.status),
        "team1Score": match.team1_score,
        "team2Score": match.team2_score,
        "setScores": match.set_scores,
        "outcome": _enum_value(match.outcome),
        "isWalkover": match.is_walkover,
        "walkoverReason": match.walkover_reason,
    }


def update_match_guarded(session: Session, match: Match, values: Dict[str, Any]) -> None:
    """Apply values only if nobody else changed the match since it was loaded."""
    loaded_version = match.version
    result = session.exec(
        update(Match)
        .where(Match.id == match.id, Match.version == loaded_version)
        .values(**values, version=loaded_version + 1, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError("Match was changed by another request; reload and retry")
    session.refresh(match)


def record_admin_action(
    session: Session,
    match_id: int,
    admin_id: int,
    action_type: AdminActionType,
    reason: str,
    old_value: Optional[Dict[str, Any]] = None,
    new_value: Optional[Dict[str, Any]] = None,
    affected_user_ids: Optional[List[int]] = None,
) -> MatchAdminAction:
    entry = MatchAdminAction(
        match_id=match_id,
        admin_id=admin_id,
        action_type=action_type,
        old_value=old_value,
        new_value=new_value,
        reason=reason,
        affected_user_ids=affected_user_ids or [],
    )
    session.add(entry)
    return entry
