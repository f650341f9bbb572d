import os

# Must be set before league_admin is imported: the app engine and settings read them at import time
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["NOTIFICATION_WORKER_ENABLED"] = "false"
os.environ.setdefault("APP_ENV", "test")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from league_admin.auth import AdminContext  # noqa: E402
from league_admin.database import get_session  # noqa: E402
from league_admin.main import app  # noqa: E402
from league_admin.models.enums import MatchStatus, TeamSide, UserRole  # noqa: E402
from league_admin.models.match import Match, MatchParticipant  # noqa: E402
from league_admin.models.user import User  # noqa: E402
from league_admin.services.notification_service import NotificationDispatcher, get_notifier  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Tables are created and dropped per test (see session_fixture)
# 4. get_session and get_notifier overridden to use test_engine (see client_fixture)
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


class FakeSmsSender:
    """Stands in for TwilioService; records sends or fails every call."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send_sms(self, to: str, body: str) -> dict:
        if self.fail:
            return {"sid": None, "status": "failed", "error": "carrier rejected message"}
        self.sent.append((to, body))
        return {"sid": f"SM{len(self.sent)}", "status": "queued", "error": None}


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema."""
    import league_admin.models  # noqa: F401

    SQLModel.metadata.create_all(test_engine)
    with Session(test_engine) as session:
        yield session
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="sms_sender")
def sms_sender_fixture():
    return FakeSmsSender()


@pytest.fixture(name="notifier")
def notifier_fixture(sms_sender: FakeSmsSender):
    """Dispatcher bound to the test engine; its worker thread is never started."""
    return NotificationDispatcher(test_engine, sender=sms_sender, max_attempts=3, poll_seconds=0.01)


@pytest.fixture(name="client")
def client_fixture(session: Session, notifier: NotificationDispatcher):
    """Provide a test client with overridden database session and notifier"""
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_notifier] = lambda: notifier

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Domain fixtures
# ============================================================================


@pytest.fixture(name="admin_user")
def admin_user_fixture(session: Session) -> User:
    admin = User(name="League Admin", username="admin", role=UserRole.ADMIN)
    session.add(admin)
    session.commit()
    session.refresh(admin)
    return admin


@pytest.fixture(name="admin")
def admin_fixture(admin_user: User) -> AdminContext:
    return AdminContext(admin_id=admin_user.id, name=admin_user.name)


@pytest.fixture(name="admin_headers")
def admin_headers_fixture(admin_user: User) -> dict:
    return {"X-Admin-Id": str(admin_user.id)}


@pytest.fixture(name="players")
def players_fixture(session: Session) -> list:
    """Four players; the first has a phone number, the rest are in-app only."""
    players = [
        User(name="Alice Smith", username="alice", phone="(555) 123-4567"),
        User(name="Bob Jones", username="bob"),
        User(name="Carol White", username="carol"),
        User(name="Dan Brown", username="dan"),
    ]
    for player in players:
        session.add(player)
    session.commit()
    for player in players:
        session.refresh(player)
    return players


@pytest.fixture(name="make_match")
def make_match_fixture(session: Session, players: list):
    """
    Factory for a doubles match: players[0:2] on team1, players[2:4] on team2.

    Defaults to a COMPLETED 2-1 win for team1 in division 1.
    """

    def _make(**overrides) -> Match:
        values = dict(
            league_id=1,
            season_id=1,
            division_id=1,
            status=MatchStatus.COMPLETED,
            scheduled_at=datetime.now(timezone.utc) - timedelta(days=1),
            team1_score=2,
            team2_score=1,
            set_scores=[
                {"setNumber": 1, "team1Games": 6, "team2Games": 3},
                {"setNumber": 2, "team1Games": 4, "team2Games": 6},
                {"setNumber": 3, "team1Games": 6, "team2Games": 2},
            ],
            outcome=TeamSide.TEAM1,
        )
        values.update(overrides)
        match = Match(**values)
        session.add(match)
        session.commit()
        session.refresh(match)
        for i, player in enumerate(players):
            team = TeamSide.TEAM1 if i < 2 else TeamSide.TEAM2
            session.add(MatchParticipant(match_id=match.id, user_id=player.id, team=team))
        session.commit()
        session.refresh(match)
        return match

    return _make


@pytest.fixture(name="completed_match")
def completed_match_fixture(make_match) -> Match:
    return make_match()


@pytest.fixture(name="player_headers")
def player_headers_fixture():
    def _headers(user: User) -> dict:
        return {"X-User-Id": str(user.id)}

    return _headers
