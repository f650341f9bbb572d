"""Tests for match moderation (hide, abuse reports, admin messages) and walkover conversion"""

import pytest
from sqlmodel import Session, select

from league_admin.errors import ConflictError, ValidationError
from league_admin.models.enums import (
    AdminActionType,
    DisputeCategory,
    MatchContext,
    MatchReportCategory,
    MatchStatus,
    TeamSide,
)
from league_admin.models.match import Match
from league_admin.models.match_admin_action import MatchAdminAction
from league_admin.models.notification import Notification
from league_admin.services.dispute_service import raise_dispute
from league_admin.services.match_moderation_service import (
    DEFAULT_MESSAGE_SUBJECT,
    clear_match_report,
    hide_match,
    message_participants,
    report_match_abuse,
    unhide_match,
)
from league_admin.services.match_override_service import convert_to_walkover, void_match
from league_admin.services.match_query_service import AdminMatchFilters, get_match_stats, list_admin_matches


def _reload(session: Session, match_id: int) -> Match:
    session.expire_all()
    return session.get(Match, match_id)


def _actions(session: Session, match_id: int) -> list:
    return session.exec(
        select(MatchAdminAction).where(MatchAdminAction.match_id == match_id).order_by(MatchAdminAction.id)
    ).all()


# ============================================================================
# Hide / unhide
# ============================================================================


def test_hide_and_unhide(session, completed_match, admin):
    version = completed_match.version
    hidden = hide_match(session, completed_match.id, admin, "Offensive team name")
    assert hidden.is_hidden_from_public is True
    assert hidden.hidden_by_admin_id == admin.admin_id
    assert hidden.hidden_reason == "Offensive team name"
    assert hidden.hidden_at is not None
    assert hidden.version == version + 1

    shown = unhide_match(session, completed_match.id, admin)
    assert shown.is_hidden_from_public is False
    assert shown.hidden_at is None
    assert shown.hidden_by_admin_id is None
    assert shown.hidden_reason is None

    entries = _actions(session, completed_match.id)
    assert [e.action_type for e in entries] == [AdminActionType.HIDE_MATCH, AdminActionType.UNHIDE_MATCH]
    assert entries[0].reason == "Match hidden: Offensive team name"
    assert entries[0].new_value == {"isHiddenFromPublic": True, "hiddenReason": "Offensive team name"}
    assert entries[1].reason == "Match visibility restored"
    assert entries[1].old_value == {"isHiddenFromPublic": True, "hiddenReason": "Offensive team name"}


def test_hide_requires_reason(session, completed_match, admin):
    with pytest.raises(ValidationError):
        hide_match(session, completed_match.id, admin, "   ")
    assert _reload(session, completed_match.id).is_hidden_from_public is False
    assert _actions(session, completed_match.id) == []


def test_hide_toggles_conflict(session, completed_match, admin):
    with pytest.raises(ConflictError, match="not hidden"):
        unhide_match(session, completed_match.id, admin)

    hide_match(session, completed_match.id, admin, "spam")
    with pytest.raises(ConflictError, match="already hidden"):
        hide_match(session, completed_match.id, admin, "spam again")
    assert len(_actions(session, completed_match.id)) == 1


def test_hide_endpoints(client, completed_match, admin_headers):
    response = client.post(
        f"/api/admin/matches/{completed_match.id}/hide", json={"reason": "Test data"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["isHiddenFromPublic"] is True
    assert response.json()["data"]["hiddenReason"] == "Test data"

    # unhide takes no body
    response = client.post(f"/api/admin/matches/{completed_match.id}/unhide", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["isHiddenFromPublic"] is False

    response = client.post(f"/api/admin/matches/{completed_match.id}/unhide", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "CONFLICT"


# ============================================================================
# Abuse reports
# ============================================================================


def test_report_and_clear(session, completed_match, admin):
    reported = report_match_abuse(
        session, completed_match.id, admin, "Same four players, ten matches a day", MatchReportCategory.FAKE_MATCH
    )
    assert reported.is_reported_for_abuse is True
    assert reported.report_category == MatchReportCategory.FAKE_MATCH
    assert reported.reported_by_admin_id == admin.admin_id

    cleared = clear_match_report(session, completed_match.id, admin, "Confirmed real matches")
    assert cleared.is_reported_for_abuse is False
    assert cleared.report_category is None
    assert cleared.report_reason is None

    report_entry, clear_entry = _actions(session, completed_match.id)
    assert report_entry.action_type == AdminActionType.REPORT_ABUSE
    assert report_entry.reason == "Match reported for abuse (FAKE_MATCH): Same four players, ten matches a day"
    assert report_entry.new_value["reportCategory"] == "FAKE_MATCH"
    assert clear_entry.action_type == AdminActionType.CLEAR_REPORT
    assert clear_entry.reason == "Confirmed real matches"
    assert clear_entry.old_value["reportCategory"] == "FAKE_MATCH"


def test_report_requires_reason_and_category(session, completed_match, admin):
    with pytest.raises(ValidationError, match="reason"):
        report_match_abuse(session, completed_match.id, admin, None, MatchReportCategory.SPAM)
    with pytest.raises(ValidationError, match="category"):
        report_match_abuse(session, completed_match.id, admin, "spam", None)
    with pytest.raises(ValidationError, match="Invalid report category"):
        report_match_abuse(session, completed_match.id, admin, "spam", "NOT_A_CATEGORY")
    assert _reload(session, completed_match.id).is_reported_for_abuse is False


def test_report_toggles_conflict(session, completed_match, admin):
    with pytest.raises(ConflictError, match="no active report"):
        clear_match_report(session, completed_match.id, admin)

    report_match_abuse(session, completed_match.id, admin, "spam", MatchReportCategory.SPAM)
    with pytest.raises(ConflictError, match="already reported"):
        report_match_abuse(session, completed_match.id, admin, "more spam", MatchReportCategory.SPAM)

    clear_match_report(session, completed_match.id, admin)
    assert _actions(session, completed_match.id)[-1].reason == "Abuse report cleared after review"


def test_report_endpoint_validates_category(client, completed_match, admin_headers):
    response = client.post(
        f"/api/admin/matches/{completed_match.id}/report",
        json={"reason": "rating farming", "category": "BOGUS"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"

    response = client.post(
        f"/api/admin/matches/{completed_match.id}/report",
        json={"reason": "rating farming", "category": "RATING_MANIPULATION"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["reportCategory"] == "RATING_MANIPULATION"

    response = client.post(f"/api/admin/matches/{completed_match.id}/clear-report", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["isReportedForAbuse"] is False


# ============================================================================
# Messages to participants
# ============================================================================


def test_message_participants(session, completed_match, admin, notifier, players):
    result = message_participants(
        session, completed_match.id, admin, "Please confirm your score by Friday", notifier=notifier
    )
    assert result["sent"] == 4
    assert sorted(result["recipients"]) == sorted(p.id for p in players)

    rows = session.exec(select(Notification)).all()
    assert {r.type for r in rows} == {"ADMIN_MESSAGE"}
    assert {r.title for r in rows} == {DEFAULT_MESSAGE_SUBJECT}
    assert sorted(r.user_id for r in rows) == sorted(p.id for p in players)

    (entry,) = _actions(session, completed_match.id)
    assert entry.action_type == AdminActionType.MESSAGE_PARTICIPANTS
    assert entry.reason == DEFAULT_MESSAGE_SUBJECT
    assert entry.new_value == {"subject": DEFAULT_MESSAGE_SUBJECT, "message": "Please confirm your score by Friday"}


def test_message_requires_text(session, completed_match, admin, notifier):
    with pytest.raises(ValidationError, match="message is required"):
        message_participants(session, completed_match.id, admin, "  ", notifier=notifier)
    assert session.exec(select(Notification)).all() == []
    assert _actions(session, completed_match.id) == []


def test_message_endpoint(client, completed_match, admin_headers):
    response = client.post(
        f"/api/admin/matches/{completed_match.id}/message",
        json={"subject": "Court change", "message": "Play on court 3"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["data"]["sent"] == 4
    assert len(body["data"]["recipients"]) == 4

    missing = client.post("/api/admin/matches/9999/message", json={"message": "hi"}, headers=admin_headers)
    assert missing.status_code == 404


# ============================================================================
# Walkover conversion
# ============================================================================


def test_convert_to_walkover(session, completed_match, admin, notifier, players):
    # players[2] plays for team2
    match = convert_to_walkover(
        session, completed_match.id, admin, players[2].id, "Team 1 did not show", notifier=notifier
    )
    assert match.status == MatchStatus.WALKOVER
    assert match.is_walkover is True
    assert match.walkover_reason == "Team 1 did not show"
    assert (match.team1_score, match.team2_score) == (0, 2)
    assert match.set_scores is None
    assert match.outcome == TeamSide.TEAM2

    (entry,) = _actions(session, completed_match.id)
    assert entry.action_type == AdminActionType.CONVERT_TO_WALKOVER
    assert entry.old_value["team1Score"] == 2
    assert entry.new_value["team2Score"] == 2
    assert sorted(entry.affected_user_ids) == sorted(p.id for p in players)

    rows = session.exec(select(Notification)).all()
    assert {r.title for r in rows} == {"Walkover Recorded"}


def test_walkover_reason_can_differ_from_audit_reason(session, completed_match, admin, players):
    match = convert_to_walkover(
        session, completed_match.id, admin, players[0].id, "Checked with both captains", walkover_reason="Injury"
    )
    assert match.walkover_reason == "Injury"
    assert match.admin_notes == "Checked with both captains"
    assert (match.team1_score, match.team2_score) == (2, 0)


def test_walkover_winner_must_be_participant(session, completed_match, admin, admin_user):
    with pytest.raises(ValidationError, match="participant"):
        convert_to_walkover(session, completed_match.id, admin, admin_user.id, "no show")
    with pytest.raises(ValidationError, match="winnerId"):
        convert_to_walkover(session, completed_match.id, admin, None, "no show")
    assert _reload(session, completed_match.id).status == MatchStatus.COMPLETED


def test_void_match_cannot_become_walkover(session, completed_match, admin, players):
    void_match(session, completed_match.id, admin, "Ineligible player")
    with pytest.raises(ConflictError):
        convert_to_walkover(session, completed_match.id, admin, players[0].id, "no show")


def test_walkover_endpoint(client, completed_match, players, admin_headers):
    response = client.post(
        f"/api/admin/matches/{completed_match.id}/walkover",
        json={"winnerId": players[3].id, "reason": "Forfeit", "walkoverReason": "Travel issues"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "WALKOVER"
    assert data["outcome"] == "TEAM2"
    assert data["walkoverReason"] == "Travel issues"

    response = client.post(
        f"/api/admin/matches/{completed_match.id}/walkover", json={"winnerId": players[0].id}, headers=admin_headers
    )
    assert response.status_code == 400


# ============================================================================
# Dashboard filters and ordering
# ============================================================================


def test_match_context_filter(session, make_match):
    league = make_match()
    friendly = make_match(league_id=None, season_id=None, division_id=None)
    division_only = make_match(league_id=None, season_id=None, division_id=3)

    def ids(context):
        result = list_admin_matches(session, AdminMatchFilters(match_context=context))
        return sorted(m.id for m in result["matches"])

    assert ids(MatchContext.ALL) == sorted([league.id, friendly.id, division_only.id])
    assert ids(MatchContext.LEAGUE) == sorted([league.id, division_only.id])
    assert ids(MatchContext.FRIENDLY) == [friendly.id]


def test_hidden_and_reported_filters(session, make_match, admin):
    plain = make_match()
    hidden = make_match()
    reported = make_match()
    hide_match(session, hidden.id, admin, "duplicate")
    report_match_abuse(session, reported.id, admin, "spam", MatchReportCategory.SPAM)

    only_hidden = list_admin_matches(session, AdminMatchFilters(show_hidden=True))
    assert [m.id for m in only_hidden["matches"]] == [hidden.id]

    visible = list_admin_matches(session, AdminMatchFilters(show_hidden=False))
    assert sorted(m.id for m in visible["matches"]) == sorted([plain.id, reported.id])

    only_reported = list_admin_matches(session, AdminMatchFilters(show_reported=True))
    assert [m.id for m in only_reported["matches"]] == [reported.id]

    assert list_admin_matches(session, AdminMatchFilters(show_reported=False))["total"] == 3


def test_reported_matches_listed_first(session, make_match, admin, players):
    plain = make_match()
    reported = make_match()
    disputed = make_match()
    raise_dispute(session, disputed.id, players[1], DisputeCategory.WRONG_SCORE)
    report_match_abuse(session, reported.id, admin, "fake", MatchReportCategory.FAKE_MATCH)

    result = list_admin_matches(session, AdminMatchFilters())
    assert [m.id for m in result["matches"]] == [reported.id, disputed.id, plain.id]


def test_stats_count_hidden_and_reported(session, make_match, admin):
    first = make_match()
    second = make_match()
    make_match()
    hide_match(session, first.id, admin, "duplicate")
    hide_match(session, second.id, admin, "duplicate")
    report_match_abuse(session, second.id, admin, "spam", MatchReportCategory.SPAM)

    stats = get_match_stats(session)
    assert stats["total_matches"] == 3
    assert stats["hidden"] == 2
    assert stats["reported"] == 1


def test_list_endpoint_moderation_params(client, session, make_match, admin, admin_headers):
    friendly = make_match(league_id=None, season_id=None, division_id=None)
    make_match()
    hide_match(session, friendly.id, admin, "test match")

    response = client.get(
        "/api/admin/matches?matchContext=friendly&showHidden=true", headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert [m["id"] for m in data["matches"]] == [friendly.id]
    assert data["stats"]["hidden"] == 1

    response = client.get("/api/admin/matches?matchContext=tournament", headers=admin_headers)
    assert response.status_code == 400
