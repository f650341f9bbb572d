"""
Match Result Override: admin corrections to a recorded result.

Every change requires an audit reason and writes a MatchAdminAction with the
prior and new values. Only fields present in the patch are written.
"""
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlmodel import Session, select

from league_admin.auth import AdminContext
from league_admin.database import atomic
from league_admin.errors import ConflictError, ValidationError, require_reason
from league_admin.models.enums import AdminActionType, MatchStatus, TeamSide
from league_admin.models.match import Match, MatchParticipant
from league_admin.models.match_admin_action import MatchAdminAction
from league_admin.services.match_audit import (
    load_match,
    participant_user_ids,
    record_admin_action,
    result_snapshot,
    update_match_guarded,
)
from league_admin.services.notification_service import NotificationDispatcher, NotificationMessage
from league_admin.services.scoring import SetScore, ValidatedScore, parse_set_scores, walkover_score

logger = logging.getLogger(__name__)


class MatchResultPatch(BaseModel):
    """Partial result update; unset fields keep their stored values."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    team1_score: Optional[int] = Field(default=None, ge=0)
    team2_score: Optional[int] = Field(default=None, ge=0)
    set_scores: Optional[List[SetScore]] = None
    outcome: Optional[TeamSide] = None
    is_walkover: Optional[bool] = None
    walkover_reason: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(
            include={"team1_score", "team2_score", "set_scores", "outcome", "is_walkover", "walkover_reason"},
            exclude_unset=True,
        )


def _patch_values(match: Match, changes: Dict[str, Any]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for key in ("team1_score", "team2_score", "outcome", "walkover_reason"):
        if key in changes:
            values[key] = changes[key]

    if "set_scores" in changes:
        sets = parse_set_scores(changes["set_scores"])
        values["set_scores"] = ValidatedScore(team1_score=0, team2_score=0, sets=sets).set_scores_json()

    if changes.get("is_walkover") is not None:
        values["is_walkover"] = changes["is_walkover"]
        if changes["is_walkover"]:
            values["status"] = MatchStatus.WALKOVER
        else:
            values.setdefault("walkover_reason", None)
            if match.status == MatchStatus.WALKOVER:
                values["status"] = MatchStatus.COMPLETED
    return values


def _notify_participants(
    notifier: Optional[NotificationDispatcher],
    match_id: int,
    user_ids: List[int],
    notification_type: str,
    title: str,
    message: str,
) -> None:
    if notifier is None:
        return
    notifier.publish(
        NotificationMessage(
            type=notification_type,
            title=title,
            message=message,
            user_ids=user_ids,
            match_id=match_id,
        )
    )


def edit_match_result(
    session: Session,
    match_id: int,
    admin: AdminContext,
    patch: MatchResultPatch,
    reason: Optional[str],
    notifier: Optional[NotificationDispatcher] = None,
) -> Match:
    reason = require_reason(reason)
    changes = patch.changes()
    if not changes:
        raise ValidationError("No result fields supplied")

    with atomic(session):
        match = load_match(session, match_id)
        values = _patch_values(match, changes)
        recipients = participant_user_ids(session, match_id)
        old_value = result_snapshot(match)
        update_match_guarded(session, match, values)
        record_admin_action(
            session,
            match_id=match_id,
            admin_id=admin.admin_id,
            action_type=AdminActionType.EDIT_RESULT,
            reason=reason,
            old_value=old_value,
            new_value=result_snapshot(match),
            affected_user_ids=recipients,
        )

    session.refresh(match)
    logger.info(f"Match {match_id} result edited by admin {admin.admin_id}")
    _notify_participants(
        notifier,
        match_id,
        recipients,
        "MATCH_RESULT_UPDATED",
        "Match Result Updated",
        "An admin has updated the match result. Please review.",
    )
    return match


def void_match(
    session: Session,
    match_id: int,
    admin: AdminContext,
    reason: Optional[str],
    notifier: Optional[NotificationDispatcher] = None,
) -> Match:
    reason = require_reason(reason, "reason is required")

    with atomic(session):
        match = load_match(session, match_id)
        if match.status == MatchStatus.VOID:
            raise ConflictError("Match is already void")
        recipients = participant_user_ids(session, match_id)
        old_value = result_snapshot(match)
        update_match_guarded(
            session,
            match,
            {"status": MatchStatus.VOID, "outcome": None, "admin_notes": reason},
        )
        record_admin_action(
            session,
            match_id=match_id,
            admin_id=admin.admin_id,
            action_type=AdminActionType.VOID_MATCH,
            reason=reason,
            old_value=old_value,
            new_value=result_snapshot(match),
            affected_user_ids=recipients,
        )

    session.refresh(match)
    logger.info(f"Match {match_id} voided by admin {admin.admin_id}")
    _notify_participants(notifier, match_id, recipients, "MATCH_VOIDED", "Match Voided", reason)
    return match


def get_match_audit_trail(session: Session, match_id: int) -> List[MatchAdminAction]:
    """Every admin action on a match, oldest first."""
    load_match(session, match_id)
    return session.exec(
        select(MatchAdminAction)
        .where(MatchAdminAction.match_id == match_id)
        .order_by(MatchAdminAction.created_at, MatchAdminAction.id)
    ).all()


def convert_to_walkover(
    session: Session,
    match_id: int,
    admin: AdminContext,
    winner_id: Optional[int],
    reason: Optional[str],
    walkover_reason: Optional[str] = None,
    notifier: Optional[NotificationDispatcher] = None,
) -> Match:
    """Record the match as a walkover won by ``winner_id``'s side."""
    reason = require_reason(reason, "reason is required")
    if winner_id is None:
        raise ValidationError("winnerId is required")

    with atomic(session):
        match = load_match(session, match_id)
        if match.status == MatchStatus.VOID:
            raise ConflictError("A void match cannot be converted to a walkover")
        winner = session.exec(
            select(MatchParticipant).where(
                MatchParticipant.match_id == match_id,
                MatchParticipant.user_id == winner_id,
            )
        ).first()
        if winner is None:
            raise ValidationError("Winner must be a participant in this match")

        recipients = participant_user_ids(session, match_id)
        old_value = result_snapshot(match)
        score = walkover_score(winner.team, match.sets_to_win)
        update_match_guarded(
            session,
            match,
            {
                "status": MatchStatus.WALKOVER,
                "is_walkover": True,
                "walkover_reason": (walkover_reason or "").strip() or reason,
                "team1_score": score.team1_score,
                "team2_score": score.team2_score,
                "set_scores": None,
                "outcome": winner.team,
                "admin_notes": reason,
            },
        )
        record_admin_action(
            session,
            match_id=match_id,
            admin_id=admin.admin_id,
            action_type=AdminActionType.CONVERT_TO_WALKOVER,
            reason=reason,
            old_value=old_value,
            new_value=result_snapshot(match),
            affected_user_ids=recipients,
        )

    session.refresh(match)
    logger.info(f"Match {match_id} converted to walkover by admin {admin.admin_id}, winner: user {winner_id}")
    _notify_participants(
        notifier,
        match_id,
        recipients,
        "MATCH_RESULT_UPDATED",
        "Walkover Recorded",
        f"An admin recorded this match as a walkover. {reason}",
    )
    return match
