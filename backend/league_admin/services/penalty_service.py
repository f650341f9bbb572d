"""
Penalty Ledger: append-only sanctions against players.

Rows are only ever inserted. A wrong penalty is corrected by issuing a new,
offsetting one, never by editing history.
"""
import logging
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from sqlmodel import Session, select

from league_admin.auth import AdminContext
from league_admin.clock import utc_now
from league_admin.database import atomic
from league_admin.errors import NotFoundError, ValidationError, require_reason
from league_admin.models.dispute import Dispute
from league_admin.models.enums import AdminActionType, PenaltySeverity, PenaltyType
from league_admin.models.match import Match
from league_admin.models.penalty import Penalty
from league_admin.models.user import User
from league_admin.services.match_audit import record_admin_action
from league_admin.services.notification_service import NotificationDispatcher, NotificationMessage

logger = logging.getLogger(__name__)

# Severity -> (type, points deducted, suspension days) for late-cancellation penalties
CANCELLATION_PENALTY_POLICY: Dict[PenaltySeverity, Tuple[PenaltyType, Optional[int], Optional[int]]] = {
    PenaltySeverity.MINOR: (PenaltyType.WARNING, None, None),
    PenaltySeverity.MODERATE: (PenaltyType.POINTS_DEDUCTION, 2, None),
    PenaltySeverity.MAJOR: (PenaltyType.SUSPENSION, None, 7),
    PenaltySeverity.SEVERE: (PenaltyType.SUSPENSION, None, 30),
}


def _optional_count(value: Optional[int], label: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{label} must be a non-negative integer")
    return value


def build_penalty(
    session: Session,
    admin: AdminContext,
    user_id: int,
    penalty_type: PenaltyType,
    severity: PenaltySeverity,
    reason: str,
    related_match_id: Optional[int] = None,
    related_dispute_id: Optional[int] = None,
    points_deducted: Optional[int] = None,
    suspension_days: Optional[int] = None,
    evidence_url: Optional[str] = None,
) -> Penalty:
    """Insert a penalty inside the caller's transaction, after checking its references."""
    if not session.get(User, user_id):
        raise NotFoundError("User not found")
    if related_match_id is not None and not session.get(Match, related_match_id):
        raise NotFoundError("Related match not found")
    if related_dispute_id is not None and not session.get(Dispute, related_dispute_id):
        raise NotFoundError("Related dispute not found")

    now = utc_now()
    suspension_ends_at = None
    if penalty_type == PenaltyType.SUSPENSION and suspension_days:
        suspension_ends_at = now + timedelta(days=suspension_days)

    penalty = Penalty(
        user_id=user_id,
        issued_by_admin_id=admin.admin_id,
        penalty_type=penalty_type,
        severity=severity,
        points_deducted=points_deducted,
        suspension_days=suspension_days,
        suspension_ends_at=suspension_ends_at,
        related_match_id=related_match_id,
        related_dispute_id=related_dispute_id,
        reason=reason,
        evidence_url=evidence_url,
        created_at=now,
    )
    session.add(penalty)
    session.flush()

    if related_match_id is not None:
        record_admin_action(
            session,
            match_id=related_match_id,
            admin_id=admin.admin_id,
            action_type=AdminActionType.APPLY_PENALTY,
            reason=reason,
            new_value={
                "penaltyId": penalty.id,
                "penaltyType": penalty_type.value,
                "severity": severity.value,
                "userId": user_id,
            },
            affected_user_ids=[user_id],
        )
    return penalty


def penalty_notification(penalty: Penalty) -> NotificationMessage:
    return NotificationMessage(
        type="ADMIN_PENALTY_ISSUED",
        title="Penalty Applied",
        message=f"You have received a {penalty.severity.value.lower()} penalty for: {penalty.reason}",
        user_ids=[penalty.user_id],
        match_id=penalty.related_match_id,
    )


def apply_penalty(
    session: Session,
    admin: AdminContext,
    user_id: int,
    penalty_type: PenaltyType,
    severity: PenaltySeverity,
    reason: str,
    related_match_id: Optional[int] = None,
    related_dispute_id: Optional[int] = None,
    points_deducted: Optional[int] = None,
    suspension_days: Optional[int] = None,
    evidence_url: Optional[str] = None,
    notifier: Optional[NotificationDispatcher] = None,
) -> Penalty:
    """Append a penalty. Identical calls create distinct records."""
    if user_id is None:
        raise ValidationError("userId is required")
    if penalty_type is None or severity is None:
        raise ValidationError("penaltyType and severity are required")
    try:
        penalty_type = PenaltyType(penalty_type)
        severity = PenaltySeverity(severity)
    except ValueError:
        raise ValidationError("Invalid penaltyType or severity")
    reason = require_reason(reason, "reason is required")
    points_deducted = _optional_count(points_deducted, "pointsDeducted")
    suspension_days = _optional_count(suspension_days, "suspensionDays")

    with atomic(session):
        penalty = build_penalty(
            session,
            admin,
            user_id=user_id,
            penalty_type=penalty_type,
            severity=severity,
            reason=reason,
            related_match_id=related_match_id,
            related_dispute_id=related_dispute_id,
            points_deducted=points_deducted,
            suspension_days=suspension_days,
            evidence_url=evidence_url,
        )

    session.refresh(penalty)
    logger.info(f"Penalty {penalty.id} applied to user {user_id} by admin {admin.admin_id}: {severity.value}")
    if notifier is not None:
        notifier.publish(penalty_notification(penalty))
    return penalty


def get_player_penalties(session: Session, user_id: int) -> List[Penalty]:
    """Full history for a player, newest first."""
    return session.exec(
        select(Penalty)
        .where(Penalty.user_id == user_id)
        .order_by(Penalty.created_at.desc(), Penalty.id.desc())
    ).all()
