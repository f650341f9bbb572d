"""
Division standings from recorded results.

Only COMPLETED and WALKOVER matches with a winning side count. VOID matches
(including ones voided through dispute resolution) never contribute.
"""
from collections import defaultdict
from typing import Dict, List

from sqlmodel import Session, select

from league_admin.models.enums import MatchStatus
from league_admin.models.match import Match, MatchParticipant
from league_admin.models.user import User

COUNTED_STATUSES = (MatchStatus.COMPLETED, MatchStatus.WALKOVER)


def compute_division_standings(session: Session, division_id: int) -> List[Dict]:
    """Rows sorted by wins, then fewer losses, then user id."""
    rows = session.exec(
        select(Match, MatchParticipant)
        .join(MatchParticipant, MatchParticipant.match_id == Match.id)
        .where(
            Match.division_id == division_id,
            Match.status.in_(COUNTED_STATUSES),
            Match.outcome.is_not(None),
        )
    ).all()

    table: Dict[int, Dict] = defaultdict(lambda: {"played": 0, "wins": 0, "losses": 0, "walkover_wins": 0})
    for match, participant in rows:
        entry = table[participant.user_id]
        entry["played"] += 1
        if participant.team == match.outcome:
            entry["wins"] += 1
            if match.is_walkover:
                entry["walkover_wins"] += 1
        else:
            entry["losses"] += 1

    names = {}
    if table:
        names = {
            u.id: u.name for u in session.exec(select(User).where(User.id.in_(list(table)))).all()
        }

    standings = [
        {"user_id": user_id, "name": names.get(user_id, ""), **entry}
        for user_id, entry in table.items()
    ]
    standings.sort(key=lambda r: (-r["wins"], r["losses"], r["user_id"]))
    for position, row in enumerate(standings, start=1):
        row["position"] = position
    return standings
