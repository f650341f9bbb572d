from league_admin.models.dispute import Dispute, DisputeNote
from league_admin.models.late_cancellation import LateCancellation
from league_admin.models.match import Match, MatchParticipant
from league_admin.models.match_admin_action import MatchAdminAction
from league_admin.models.notification import Notification
from league_admin.models.penalty import Penalty
from league_admin.models.user import User

__all__ = [
    "User",
    "Match",
    "MatchParticipant",
    "Dispute",
    "DisputeNote",
    "LateCancellation",
    "Penalty",
    "MatchAdminAction",
    "Notification",
]
