"""Tests for the admin matches dashboard (filters, stats, detail)"""

from datetime import datetime, timedelta, timezone

from league_admin.models.enums import DisputeCategory, MatchStatus
from league_admin.services.dispute_service import raise_dispute
from league_admin.services.match_query_service import AdminMatchFilters, get_match_stats, list_admin_matches


def test_stats_cover_every_status(session, make_match, players):
    make_match()
    make_match(status=MatchStatus.SCHEDULED, team1_score=None, team2_score=None, set_scores=None, outcome=None)
    disputed = make_match()
    raise_dispute(session, disputed.id, players[0], DisputeCategory.WRONG_SCORE)
    make_match(division_id=2, status=MatchStatus.WALKOVER, is_walkover=True)
    make_match(status=MatchStatus.CANCELLED, has_late_cancellation=True, outcome=None)

    stats = get_match_stats(session)
    assert stats["total_matches"] == 5
    assert set(stats["by_status"]) == {s.value for s in MatchStatus}
    assert stats["by_status"]["COMPLETED"] == 2
    assert stats["by_status"]["VOID"] == 0
    assert stats["disputed"] == 1
    assert stats["late_cancellations"] == 1
    assert stats["walkovers"] == 1
    assert stats["requires_admin_review"] == 2

    assert get_match_stats(session, division_id=2)["total_matches"] == 1


def test_list_filters_and_ordering(session, make_match, players):
    plain = make_match()
    disputed = make_match()
    raise_dispute(session, disputed.id, players[2], DisputeCategory.OTHER)
    make_match(status=MatchStatus.VOID, outcome=None)

    result = list_admin_matches(session, AdminMatchFilters(statuses=[MatchStatus.COMPLETED]))
    assert result["total"] == 2
    assert [m.id for m in result["matches"]] == [disputed.id, plain.id]

    result = list_admin_matches(session, AdminMatchFilters(is_disputed=False, statuses=[MatchStatus.COMPLETED]))
    assert [m.id for m in result["matches"]] == [plain.id]


def test_date_range_filter(session, make_match):
    now = datetime.now(timezone.utc)
    old = make_match(scheduled_at=now - timedelta(days=30))
    recent = make_match(scheduled_at=now - timedelta(days=2))

    result = list_admin_matches(session, AdminMatchFilters(start_date=now - timedelta(days=7)))
    assert [m.id for m in result["matches"]] == [recent.id]
    result = list_admin_matches(session, AdminMatchFilters(end_date=now - timedelta(days=7)))
    assert [m.id for m in result["matches"]] == [old.id]


def test_pagination(session, make_match):
    for _ in range(5):
        make_match()
    result = list_admin_matches(session, AdminMatchFilters(page=2, limit=2))
    assert result["total"] == 5
    assert result["total_pages"] == 3
    assert len(result["matches"]) == 2


def test_list_endpoint_search_by_participant(client, make_match, admin_headers):
    match = make_match()
    response = client.get("/api/admin/matches?search=CAROL&status=COMPLETED,WALKOVER", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["total"] == 1
    assert data["matches"][0]["id"] == match.id
    assert len(data["matches"][0]["participants"]) == 4
    assert data["stats"]["totalMatches"] == 1
    assert data["totalPages"] == 1

    response = client.get("/api/admin/matches?search=zelda", headers=admin_headers)
    assert response.json()["data"]["total"] == 0


def test_list_endpoint_rejects_unknown_status(client, admin_headers):
    response = client.get("/api/admin/matches?status=FINISHED", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


def test_stats_endpoint(client, make_match, admin_headers):
    make_match(league_id=7)
    make_match(league_id=8)
    response = client.get("/api/admin/matches/stats?leagueId=7", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalMatches"] == 1
    assert data["byStatus"]["COMPLETED"] == 1
    assert data["requiresAdminReview"] == 0


def test_match_detail(client, completed_match, admin_headers):
    response = client.get(f"/api/admin/matches/{completed_match.id}", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == completed_match.id
    assert data["setsToWin"] == 2
    assert {p["team"] for p in data["participants"]} == {"team1", "team2"}

    missing = client.get("/api/admin/matches/9999", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "error": "NOT_FOUND", "message": "Match not found"}
