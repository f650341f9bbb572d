"""
Late-Cancellation Review Workflow.

PENDING -> APPROVED | DENIED, terminal on either branch. A cancellation becomes
"late" when the player withdraws inside the configured window before the
scheduled start; those land in the admin queue for a single review.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import update
from sqlmodel import Session, select

from league_admin.auth import AdminContext
from league_admin.clock import as_utc, utc_now
from league_admin.config import settings
from league_admin.database import atomic
from league_admin.errors import ConflictError, NotFoundError, ValidationError, require_reason
from league_admin.models.enums import AdminActionType, CancellationStatus, MatchStatus, PenaltySeverity
from league_admin.models.late_cancellation import LateCancellation
from league_admin.models.match import Match
from league_admin.models.penalty import Penalty
from league_admin.models.user import User
from league_admin.services.match_audit import (
    load_match,
    participant_user_ids,
    record_admin_action,
    update_match_guarded,
)
from league_admin.services.notification_service import NotificationDispatcher, NotificationMessage
from league_admin.services.penalty_service import (
    CANCELLATION_PENALTY_POLICY,
    build_penalty,
    penalty_notification,
)

logger = logging.getLogger(__name__)

CANCELLABLE_MATCH_STATUSES = (MatchStatus.DRAFT, MatchStatus.SCHEDULED)


def is_late_cancellation(
    scheduled_at: Optional[datetime],
    cancelled_at: datetime,
    window_hours: Optional[int] = None,
) -> bool:
    if scheduled_at is None:
        return False
    hours = settings.late_cancellation_window_hours if window_hours is None else window_hours
    return as_utc(scheduled_at) - as_utc(cancelled_at) < timedelta(hours=hours)


def cancel_match(
    session: Session,
    match_id: int,
    user: User,
    reason: Optional[str] = None,
) -> Tuple[Match, Optional[LateCancellation]]:
    """Participant withdrawal. Late withdrawals open a PENDING review."""
    with atomic(session):
        match = load_match(session, match_id)
        if user.id not in participant_user_ids(session, match_id):
            raise ValidationError("Only match participants can cancel a match")
        if match.status not in CANCELLABLE_MATCH_STATUSES:
            raise ConflictError(f"A {match.status.value} match cannot be cancelled")

        now = utc_now()
        late = is_late_cancellation(match.scheduled_at, now)
        update_match_guarded(
            session,
            match,
            {
                "status": MatchStatus.CANCELLED,
                "cancelled_at": now,
                "cancelled_by_id": user.id,
                "has_late_cancellation": late,
            },
        )

        cancellation = None
        if late:
            cancellation = LateCancellation(
                match_id=match_id,
                cancelled_by_id=user.id,
                cancellation_reason=reason,
                created_at=now,
            )
            session.add(cancellation)

    session.refresh(match)
    if cancellation is not None:
        session.refresh(cancellation)
        logger.info(f"Late cancellation {cancellation.id} recorded for match {match_id} by user {user.id}")
    else:
        logger.info(f"Match {match_id} cancelled by user {user.id}")
    return match, cancellation


def get_pending_cancellations(session: Session) -> List[LateCancellation]:
    """Admin review queue, oldest first."""
    return session.exec(
        select(LateCancellation)
        .where(LateCancellation.status == CancellationStatus.PENDING)
        .order_by(LateCancellation.created_at, LateCancellation.id)
    ).all()


def _resolve_severity(penalty_severity) -> PenaltySeverity:
    try:
        return PenaltySeverity(penalty_severity or settings.default_penalty_severity)
    except ValueError:
        raise ValidationError("Invalid penaltySeverity")


def review_cancellation(
    session: Session,
    match_id: int,
    admin: AdminContext,
    approved: bool,
    reason: str,
    apply_penalty: bool = False,
    penalty_severity: Optional[PenaltySeverity] = None,
    notifier: Optional[NotificationDispatcher] = None,
) -> Tuple[LateCancellation, Optional[Penalty]]:
    """Single-shot review. A penalty is written only when apply_penalty is set."""
    if approved is None:
        raise ValidationError("approved is required")
    reason = require_reason(reason, "reason is required")
    severity = _resolve_severity(penalty_severity) if apply_penalty else None

    with atomic(session):
        cancellation = session.exec(
            select(LateCancellation).where(LateCancellation.match_id == match_id)
        ).first()
        if not cancellation:
            raise NotFoundError("No late cancellation recorded for this match")
        if cancellation.status != CancellationStatus.PENDING:
            raise ConflictError("Late cancellation has already been reviewed")

        penalty = None
        if apply_penalty:
            penalty_type, points, days = CANCELLATION_PENALTY_POLICY[severity]
            penalty = build_penalty(
                session,
                admin,
                user_id=cancellation.cancelled_by_id,
                penalty_type=penalty_type,
                severity=severity,
                reason=reason,
                related_match_id=match_id,
                points_deducted=points,
                suspension_days=days,
            )

        new_status = CancellationStatus.APPROVED if approved else CancellationStatus.DENIED
        result = session.exec(
            update(LateCancellation)
            .where(
                LateCancellation.id == cancellation.id,
                LateCancellation.status == CancellationStatus.PENDING,
            )
            .values(
                status=new_status,
                reviewed_by_admin_id=admin.admin_id,
                review_reason=reason,
                reviewed_at=utc_now(),
                penalty_id=penalty.id if penalty else None,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError("Late cancellation has already been reviewed")

        record_admin_action(
            session,
            match_id=match_id,
            admin_id=admin.admin_id,
            action_type=(
                AdminActionType.APPROVE_LATE_CANCELLATION if approved else AdminActionType.DENY_LATE_CANCELLATION
            ),
            reason=reason,
            old_value={"cancellationStatus": CancellationStatus.PENDING.value},
            new_value={
                "cancellationStatus": new_status.value,
                "penaltyId": penalty.id if penalty else None,
            },
            affected_user_ids=[cancellation.cancelled_by_id],
        )

    session.refresh(cancellation)
    if penalty is not None:
        session.refresh(penalty)
    logger.info(
        f"Late cancellation for match {match_id} {new_status.value.lower()} by admin {admin.admin_id}"
        f"{' with ' + severity.value + ' penalty' if penalty else ''}"
    )

    if notifier is not None:
        notifier.publish(
            NotificationMessage(
                type="LATE_CANCELLATION_REVIEWED",
                title="Cancellation Reviewed",
                message=f"Your late cancellation was {new_status.value.lower()}. {reason}",
                user_ids=[cancellation.cancelled_by_id],
                match_id=match_id,
            )
        )
        if penalty is not None:
            notifier.publish(penalty_notification(penalty))
    return cancellation, penalty
