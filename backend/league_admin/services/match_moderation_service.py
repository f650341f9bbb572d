"""
Match moderation: visibility, abuse reports and admin messages to participants.

Hide/unhide and report/clear-report are toggles. Setting a flag that is
already set, or clearing one that is not, is a CONFLICT. Every toggle goes
through the guarded match update and leaves a MatchAdminAction entry, and a
message to participants is audited the same way.
"""
import logging
from typing import Any, Dict, Optional

from sqlmodel import Session

from league_admin.auth import AdminContext
from league_admin.clock import utc_now
from league_admin.database import atomic
from league_admin.errors import ConflictError, ValidationError, require_reason
from league_admin.models.enums import AdminActionType, MatchReportCategory
from league_admin.models.match import Match
from league_admin.services.match_audit import (
    load_match,
    participant_user_ids,
    record_admin_action,
    update_match_guarded,
)
from league_admin.services.notification_service import NotificationDispatcher, NotificationMessage

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE_SUBJECT = "Message from the league admin"


def _toggle(
    session: Session,
    match_id: int,
    admin: AdminContext,
    action_type: AdminActionType,
    reason: str,
    precondition,
    conflict_message: str,
    values_for,
) -> Match:
    with atomic(session):
        match = load_match(session, match_id)
        if not precondition(match):
            raise ConflictError(conflict_message)
        old_value, values, new_value = values_for(match)
        update_match_guarded(session, match, values)
        record_admin_action(
            session,
            match_id=match_id,
            admin_id=admin.admin_id,
            action_type=action_type,
            reason=reason,
            old_value=old_value,
            new_value=new_value,
        )
    session.refresh(match)
    return match


def hide_match(session: Session, match_id: int, admin: AdminContext, reason: Optional[str]) -> Match:
    """Hide a match from public listings."""
    reason = require_reason(reason, "reason is required")

    def values_for(match: Match):
        values = {
            "is_hidden_from_public": True,
            "hidden_at": utc_now(),
            "hidden_by_admin_id": admin.admin_id,
            "hidden_reason": reason,
        }
        return {"isHiddenFromPublic": False}, values, {"isHiddenFromPublic": True, "hiddenReason": reason}

    match = _toggle(
        session,
        match_id,
        admin,
        AdminActionType.HIDE_MATCH,
        f"Match hidden: {reason}",
        lambda m: not m.is_hidden_from_public,
        "Match is already hidden",
        values_for,
    )
    logger.info(f"Match {match_id} hidden by admin {admin.admin_id}: {reason}")
    return match


def unhide_match(session: Session, match_id: int, admin: AdminContext, reason: Optional[str] = None) -> Match:
    def values_for(match: Match):
        values = {
            "is_hidden_from_public": False,
            "hidden_at": None,
            "hidden_by_admin_id": None,
            "hidden_reason": None,
        }
        old_value = {"isHiddenFromPublic": True, "hiddenReason": match.hidden_reason}
        return old_value, values, {"isHiddenFromPublic": False}

    match = _toggle(
        session,
        match_id,
        admin,
        AdminActionType.UNHIDE_MATCH,
        (reason or "").strip() or "Match visibility restored",
        lambda m: m.is_hidden_from_public,
        "Match is not hidden",
        values_for,
    )
    logger.info(f"Match {match_id} unhidden by admin {admin.admin_id}")
    return match


def report_match_abuse(
    session: Session,
    match_id: int,
    admin: AdminContext,
    reason: Optional[str],
    category: Optional[MatchReportCategory],
) -> Match:
    """Flag a match for abuse; reported matches lead the admin dashboard."""
    reason = require_reason(reason, "reason is required")
    if category is None:
        raise ValidationError("category is required")
    try:
        category = MatchReportCategory(category)
    except ValueError:
        raise ValidationError("Invalid report category")

    def values_for(match: Match):
        values = {
            "is_reported_for_abuse": True,
            "reported_at": utc_now(),
            "reported_by_admin_id": admin.admin_id,
            "report_reason": reason,
            "report_category": category,
        }
        new_value = {"isReportedForAbuse": True, "reportCategory": category.value, "reportReason": reason}
        return {"isReportedForAbuse": False}, values, new_value

    match = _toggle(
        session,
        match_id,
        admin,
        AdminActionType.REPORT_ABUSE,
        f"Match reported for abuse ({category.value}): {reason}",
        lambda m: not m.is_reported_for_abuse,
        "Match is already reported",
        values_for,
    )
    logger.info(f"Match {match_id} reported for abuse by admin {admin.admin_id}: {category.value}")
    return match


def clear_match_report(session: Session, match_id: int, admin: AdminContext, reason: Optional[str] = None) -> Match:
    def values_for(match: Match):
        values = {
            "is_reported_for_abuse": False,
            "reported_at": None,
            "reported_by_admin_id": None,
            "report_reason": None,
            "report_category": None,
        }
        old_value = {
            "isReportedForAbuse": True,
            "reportCategory": match.report_category.value if match.report_category else None,
            "reportReason": match.report_reason,
        }
        return old_value, values, {"isReportedForAbuse": False}

    match = _toggle(
        session,
        match_id,
        admin,
        AdminActionType.CLEAR_REPORT,
        (reason or "").strip() or "Abuse report cleared after review",
        lambda m: m.is_reported_for_abuse,
        "Match has no active report",
        values_for,
    )
    logger.info(f"Match {match_id} abuse report cleared by admin {admin.admin_id}")
    return match


def message_participants(
    session: Session,
    match_id: int,
    admin: AdminContext,
    message: Optional[str],
    subject: Optional[str] = None,
    notifier: Optional[NotificationDispatcher] = None,
) -> Dict[str, Any]:
    """Send an admin message to every participant through the notification outbox."""
    message = require_reason(message, "message is required")
    subject = (subject or "").strip() or DEFAULT_MESSAGE_SUBJECT

    with atomic(session):
        load_match(session, match_id)
        recipients = participant_user_ids(session, match_id)
        record_admin_action(
            session,
            match_id=match_id,
            admin_id=admin.admin_id,
            action_type=AdminActionType.MESSAGE_PARTICIPANTS,
            reason=subject,
            new_value={"subject": subject, "message": message},
            affected_user_ids=recipients,
        )

    queued = 0
    if notifier is not None:
        queued = notifier.publish(
            NotificationMessage(
                type="ADMIN_MESSAGE",
                title=subject,
                message=message,
                user_ids=recipients,
                match_id=match_id,
            )
        )
    logger.info(f"Admin {admin.admin_id} messaged {len(recipients)} participant(s) of match {match_id}")
    return {"sent": queued, "recipients": recipients}
