"""Closed value sets shared by the admin models and request bodies."""
from enum import Enum


class UserRole(str, Enum):
    PLAYER = "PLAYER"
    ADMIN = "ADMIN"


class MatchStatus(str, Enum):
    DRAFT = "DRAFT"
    SCHEDULED = "SCHEDULED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    UNFINISHED = "UNFINISHED"
    CANCELLED = "CANCELLED"
    VOID = "VOID"
    WALKOVER = "WALKOVER"


class TeamSide(str, Enum):
    TEAM1 = "team1"
    TEAM2 = "team2"


class DisputeStatus(str, Enum):
    OPEN = "OPEN"
    IN_REVIEW = "IN_REVIEW"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


ACTIVE_DISPUTE_STATUSES = (DisputeStatus.OPEN, DisputeStatus.IN_REVIEW)


class DisputePriority(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class DisputeCategory(str, Enum):
    WRONG_SCORE = "WRONG_SCORE"
    NO_SHOW = "NO_SHOW"
    BEHAVIOR = "BEHAVIOR"
    OTHER = "OTHER"


class ResolutionAction(str, Enum):
    UPHOLD_ORIGINAL = "UPHOLD_ORIGINAL"
    UPHOLD_DISPUTER = "UPHOLD_DISPUTER"
    CUSTOM_SCORE = "CUSTOM_SCORE"
    VOID_MATCH = "VOID_MATCH"
    AWARD_WALKOVER = "AWARD_WALKOVER"
    REQUEST_MORE_INFO = "REQUEST_MORE_INFO"

    @property
    def is_terminal(self) -> bool:
        return self is not ResolutionAction.REQUEST_MORE_INFO


class CancellationStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"


class PenaltyType(str, Enum):
    WARNING = "WARNING"
    POINTS_DEDUCTION = "POINTS_DEDUCTION"
    SUSPENSION = "SUSPENSION"
    PERMANENT_BAN = "PERMANENT_BAN"


class PenaltySeverity(str, Enum):
    MINOR = "MINOR"
    MODERATE = "MODERATE"
    MAJOR = "MAJOR"
    SEVERE = "SEVERE"


class AdminActionType(str, Enum):
    EDIT_RESULT = "EDIT_RESULT"
    VOID_MATCH = "VOID_MATCH"
    CONVERT_TO_WALKOVER = "CONVERT_TO_WALKOVER"
    RESOLVE_DISPUTE = "RESOLVE_DISPUTE"
    APPROVE_LATE_CANCELLATION = "APPROVE_LATE_CANCELLATION"
    DENY_LATE_CANCELLATION = "DENY_LATE_CANCELLATION"
    APPLY_PENALTY = "APPLY_PENALTY"
    HIDE_MATCH = "HIDE_MATCH"
    UNHIDE_MATCH = "UNHIDE_MATCH"
    REPORT_ABUSE = "REPORT_ABUSE"
    CLEAR_REPORT = "CLEAR_REPORT"
    MESSAGE_PARTICIPANTS = "MESSAGE_PARTICIPANTS"


class MatchReportCategory(str, Enum):
    FAKE_MATCH = "FAKE_MATCH"
    RATING_MANIPULATION = "RATING_MANIPULATION"
    INAPPROPRIATE_CONTENT = "INAPPROPRIATE_CONTENT"
    HARASSMENT = "HARASSMENT"
    SPAM = "SPAM"
    OTHER = "OTHER"


class MatchContext(str, Enum):
    """League matches carry a league, season or division; friendly matches carry none."""

    ALL = "all"
    LEAGUE = "league"
    FRIENDLY = "friendly"


class NotificationStatus(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
