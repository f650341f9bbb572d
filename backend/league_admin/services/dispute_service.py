"""
Dispute Resolution Engine.

Status flow: OPEN -> IN_REVIEW -> RESOLVED, or CLOSED when dismissed.
The resolution action is written exactly once; later admin input is stored
as notes. Every transition is a conditional UPDATE on the dispute still being
active, so a concurrent second resolution fails with CONFLICT.
"""
import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import case, func, update
from sqlmodel import Session, select

from league_admin.auth import AdminContext
from league_admin.clock import utc_now
from league_admin.database import atomic
from league_admin.errors import ConflictError, NotFoundError, ValidationError, require_reason
from league_admin.models.dispute import Dispute, DisputeNote
from league_admin.models.enums import (
    ACTIVE_DISPUTE_STATUSES,
    AdminActionType,
    DisputeCategory,
    DisputePriority,
    DisputeStatus,
    MatchStatus,
    ResolutionAction,
)
from league_admin.models.match import Match, MatchParticipant
from league_admin.models.user import User
from league_admin.services.match_audit import (
    load_match,
    participant_user_ids,
    record_admin_action,
    result_snapshot,
    update_match_guarded,
)
from league_admin.services.notification_service import NotificationDispatcher, NotificationMessage
from league_admin.services.scoring import ValidatedScore, validate_final_score, walkover_score

logger = logging.getLogger(__name__)

DISPUTABLE_MATCH_STATUSES = (MatchStatus.COMPLETED, MatchStatus.WALKOVER, MatchStatus.UNFINISHED)

_ACTION_TEXT = {
    ResolutionAction.UPHOLD_ORIGINAL: "Original score upheld",
    ResolutionAction.UPHOLD_DISPUTER: "Disputer's score accepted",
    ResolutionAction.CUSTOM_SCORE: "Score adjusted by admin",
    ResolutionAction.VOID_MATCH: "Match voided",
    ResolutionAction.AWARD_WALKOVER: "Walkover awarded",
    ResolutionAction.REQUEST_MORE_INFO: "More information requested",
}

_PRIORITY_RANK = case(
    {
        DisputePriority.URGENT: 0,
        DisputePriority.HIGH: 1,
        DisputePriority.NORMAL: 2,
        DisputePriority.LOW: 3,
    },
    value=Dispute.priority,
    else_=4,
)


def get_dispute(session: Session, dispute_id: int) -> Dispute:
    dispute = session.get(Dispute, dispute_id)
    if not dispute:
        raise NotFoundError("Dispute not found")
    return dispute


def get_dispute_notes(session: Session, dispute_id: int) -> List[DisputeNote]:
    return session.exec(
        select(DisputeNote)
        .where(DisputeNote.dispute_id == dispute_id)
        .order_by(DisputeNote.created_at.desc(), DisputeNote.id.desc())
    ).all()


def list_disputes(
    session: Session,
    statuses: Optional[Sequence[DisputeStatus]] = None,
    priority: Optional[DisputePriority] = None,
    page: int = 1,
    limit: int = 20,
) -> Dict[str, Any]:
    """Admin queue: most urgent first, oldest first within a priority."""
    conditions = []
    if statuses:
        conditions.append(Dispute.status.in_(list(statuses)))
    if priority is not None:
        conditions.append(Dispute.priority == priority)

    total = session.exec(select(func.count()).select_from(Dispute).where(*conditions)).one()
    disputes = session.exec(
        select(Dispute)
        .where(*conditions)
        .order_by(_PRIORITY_RANK, Dispute.created_at, Dispute.id)
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    return {
        "disputes": disputes,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }


def _claim_dispute(session: Session, dispute: Dispute, values: Dict[str, Any]) -> None:
    """Transition an active, unresolved dispute; CONFLICT if someone got there first."""
    result = session.exec(
        update(Dispute)
        .where(
            Dispute.id == dispute.id,
            Dispute.status.in_(ACTIVE_DISPUTE_STATUSES),
            Dispute.resolution_action.is_(None),
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError("Dispute has already been resolved or closed")
    session.refresh(dispute)


def _ensure_active(dispute: Dispute) -> None:
    if dispute.status not in ACTIVE_DISPUTE_STATUSES or dispute.resolution_action is not None:
        raise ConflictError("Dispute has already been resolved or closed")


def raise_dispute(
    session: Session,
    match_id: int,
    user: User,
    category: DisputeCategory,
    description: Optional[str] = None,
    claimed_score: Optional[Mapping[str, Any]] = None,
    priority: DisputePriority = DisputePriority.NORMAL,
) -> Dispute:
    """Player challenge to a recorded result. One active dispute per match."""
    with atomic(session):
        match = load_match(session, match_id)
        if user.id not in participant_user_ids(session, match_id):
            raise ValidationError("Only match participants can dispute a result")
        if match.status not in DISPUTABLE_MATCH_STATUSES:
            raise ConflictError(f"A {match.status.value} match cannot be disputed")

        disputer_score = None
        if claimed_score:
            disputer_score = validate_final_score(claimed_score, match.sets_to_win).to_json()

        active = session.exec(
            select(Dispute).where(
                Dispute.match_id == match_id,
                Dispute.status.in_(ACTIVE_DISPUTE_STATUSES),
            )
        ).first()
        if active:
            raise ConflictError("This match already has an open dispute")

        dispute = Dispute(
            match_id=match_id,
            raised_by_user_id=user.id,
            category=category,
            priority=priority,
            description=description,
            disputer_score=disputer_score,
        )
        session.add(dispute)
        session.flush()
        update_match_guarded(session, match, {"is_disputed": True})

    session.refresh(dispute)
    logger.info(f"Dispute {dispute.id} raised on match {match_id} by user {user.id}")
    return dispute


def start_dispute_review(session: Session, dispute_id: int, admin: AdminContext) -> Dispute:
    """OPEN -> IN_REVIEW. Already IN_REVIEW is returned unchanged."""
    with atomic(session):
        dispute = get_dispute(session, dispute_id)
        _ensure_active(dispute)
        if dispute.status == DisputeStatus.OPEN:
            _claim_dispute(
                session,
                dispute,
                {"status": DisputeStatus.IN_REVIEW, "reviewed_by_admin_id": admin.admin_id},
            )
            logger.info(f"Dispute {dispute_id} taken into review by admin {admin.admin_id}")
    return dispute


def add_dispute_note(
    session: Session,
    dispute_id: int,
    admin: AdminContext,
    note: str,
    is_internal_only: bool = True,
) -> DisputeNote:
    if not note or not note.strip():
        raise ValidationError("note is required")
    with atomic(session):
        get_dispute(session, dispute_id)
        entry = DisputeNote(
            dispute_id=dispute_id,
            admin_id=admin.admin_id,
            note=note.strip(),
            is_internal_only=is_internal_only,
        )
        session.add(entry)
    session.refresh(entry)
    return entry


def _disputer_side(session: Session, dispute: Dispute):
    participant = session.exec(
        select(MatchParticipant).where(
            MatchParticipant.match_id == dispute.match_id,
            MatchParticipant.user_id == dispute.raised_by_user_id,
        )
    ).first()
    return participant.team if participant else None


def _result_values(score: ValidatedScore, status: MatchStatus) -> Dict[str, Any]:
    return {
        "status": status,
        "team1_score": score.team1_score,
        "team2_score": score.team2_score,
        "set_scores": score.set_scores_json(),
        "outcome": score.winner,
    }


def _match_changes(
    session: Session,
    action: ResolutionAction,
    dispute: Dispute,
    match: Match,
    final_score: Optional[Mapping[str, Any]],
    reason: str,
) -> Tuple[Dict[str, Any], Optional[ValidatedScore]]:
    """Match column values a terminal action writes, plus the score it settles on."""
    if action == ResolutionAction.UPHOLD_ORIGINAL:
        return {}, None

    if action in (ResolutionAction.UPHOLD_DISPUTER, ResolutionAction.CUSTOM_SCORE):
        source = final_score
        if action == ResolutionAction.UPHOLD_DISPUTER and not final_score:
            source = dispute.disputer_score
            if not source:
                raise ValidationError("The disputing party did not submit a claimed score; use CUSTOM_SCORE")
        score = validate_final_score(source, match.sets_to_win)
        values = _result_values(score, MatchStatus.COMPLETED)
        values.update(is_walkover=False, walkover_reason=None)
        return values, score

    if action == ResolutionAction.VOID_MATCH:
        return {"status": MatchStatus.VOID, "outcome": None, "admin_notes": reason}, None

    # AWARD_WALKOVER
    if final_score:
        winner = validate_final_score(final_score, match.sets_to_win).winner
    else:
        winner = _disputer_side(session, dispute)
        if winner is None:
            raise ValidationError("finalScore is required when the disputing player has no side in the match")
    score = walkover_score(winner, match.sets_to_win)
    values = _result_values(score, MatchStatus.WALKOVER)
    values.update(is_walkover=True, walkover_reason=reason)
    return values, score


def resolve_dispute(
    session: Session,
    dispute_id: int,
    admin: AdminContext,
    action: ResolutionAction,
    reason: str,
    final_score: Optional[Mapping[str, Any]] = None,
    notify_players: bool = True,
    notifier: Optional[NotificationDispatcher] = None,
) -> Dispute:
    """Apply an admin resolution. REQUEST_MORE_INFO is the only non-terminal action."""
    reason = require_reason(reason, "reason is required")
    try:
        action = ResolutionAction(action)
    except ValueError:
        raise ValidationError("Invalid resolution action")
    if action == ResolutionAction.CUSTOM_SCORE and not final_score:
        raise ValidationError("finalScore is required for CUSTOM_SCORE")

    with atomic(session):
        dispute = get_dispute(session, dispute_id)
        _ensure_active(dispute)
        match = load_match(session, dispute.match_id)
        recipients = participant_user_ids(session, match.id)

        if action == ResolutionAction.REQUEST_MORE_INFO:
            _claim_dispute(
                session,
                dispute,
                {
                    "status": DisputeStatus.IN_REVIEW,
                    "reviewed_by_admin_id": dispute.reviewed_by_admin_id or admin.admin_id,
                },
            )
            session.add(
                DisputeNote(
                    dispute_id=dispute.id,
                    admin_id=admin.admin_id,
                    note=reason,
                    is_internal_only=False,
                )
            )
        else:
            match_values, score = _match_changes(session, action, dispute, match, final_score, reason)
            old_value = result_snapshot(match)

            claim: Dict[str, Any] = {
                "status": DisputeStatus.RESOLVED,
                "resolution_action": action,
                "resolution_reason": reason,
                "resolved_by_admin_id": admin.admin_id,
                "resolved_at": utc_now(),
                "reviewed_by_admin_id": dispute.reviewed_by_admin_id or admin.admin_id,
            }
            if score is not None:
                claim["final_score"] = score.to_json()
            _claim_dispute(session, dispute, claim)

            update_match_guarded(session, match, {**match_values, "is_disputed": False})
            new_value = result_snapshot(match)
            new_value.update(resolutionAction=action.value, disputeId=dispute.id)
            record_admin_action(
                session,
                match_id=match.id,
                admin_id=admin.admin_id,
                action_type=AdminActionType.RESOLVE_DISPUTE,
                reason=reason,
                old_value=old_value,
                new_value=new_value,
                affected_user_ids=recipients,
            )

    logger.info(f"Dispute {dispute_id} handled by admin {admin.admin_id} with action {action.value}")

    if notify_players and notifier is not None:
        title = "Dispute Update" if action == ResolutionAction.REQUEST_MORE_INFO else "Dispute Resolved"
        notifier.publish(
            NotificationMessage(
                type="MATCH_DISPUTE_UPDATE" if title == "Dispute Update" else "MATCH_DISPUTE_RESOLVED",
                title=title,
                message=f"{_ACTION_TEXT[action]}. {reason}",
                user_ids=recipients,
                match_id=match.id,
            )
        )

    session.refresh(dispute)
    return dispute


def close_dispute(
    session: Session,
    dispute_id: int,
    admin: AdminContext,
    reason: str,
    notifier: Optional[NotificationDispatcher] = None,
) -> Dispute:
    """Dismiss a dispute without adjudicating it. The match result stays as recorded."""
    reason = require_reason(reason, "reason is required")
    with atomic(session):
        dispute = get_dispute(session, dispute_id)
        _ensure_active(dispute)
        match = load_match(session, dispute.match_id)
        recipients = participant_user_ids(session, match.id)
        _claim_dispute(
            session,
            dispute,
            {
                "status": DisputeStatus.CLOSED,
                "resolution_reason": reason,
                "resolved_by_admin_id": admin.admin_id,
                "resolved_at": utc_now(),
            },
        )
        update_match_guarded(session, match, {"is_disputed": False})
        session.add(
            DisputeNote(dispute_id=dispute.id, admin_id=admin.admin_id, note=reason, is_internal_only=False)
        )

    logger.info(f"Dispute {dispute_id} closed by admin {admin.admin_id}")
    if notifier is not None:
        notifier.publish(
            NotificationMessage(
                type="MATCH_DISPUTE_RESOLVED",
                title="Dispute Closed",
                message=f"Your dispute was closed. {reason}",
                user_ids=recipients,
                match_id=match.id,
            )
        )
    session.refresh(dispute)
    return dispute
