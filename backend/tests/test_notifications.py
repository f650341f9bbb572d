"""Tests for the notification outbox and its delivery worker"""

from sqlmodel import select

from league_admin.models.enums import NotificationStatus
from league_admin.models.notification import Notification
from league_admin.services.notification_service import NotificationDispatcher, NotificationMessage


def _message(players, **overrides):
    values = dict(
        type="MATCH_RESULT_UPDATED",
        title="Match Result Updated",
        message="An admin has updated the match result.",
        user_ids=[p.id for p in players],
        match_id=None,
    )
    values.update(overrides)
    return NotificationMessage(**values)


def test_publish_queues_one_row_per_recipient(session, notifier, players):
    queued = notifier.publish(_message(players, user_ids=[players[0].id, players[0].id, players[1].id]))
    assert queued == 2
    rows = session.exec(select(Notification)).all()
    assert [r.status for r in rows] == [NotificationStatus.PENDING, NotificationStatus.PENDING]


def test_publish_never_raises(session, players):
    class BrokenEngine:
        def connect(self, *args, **kwargs):
            raise RuntimeError("database is gone")

    dispatcher = NotificationDispatcher(BrokenEngine(), sender=object())
    assert dispatcher.publish(_message(players)) == 0


def test_dispatch_sends_sms_to_users_with_phone(session, notifier, sms_sender, players):
    notifier.publish(_message(players))
    counts = notifier.dispatch_pending()

    assert counts == {"sent": 4, "retrying": 0, "failed": 0}
    # Only the first player has a phone number
    assert [to for to, _ in sms_sender.sent] == ["+15551234567"]
    assert sms_sender.sent[0][1].startswith("Match Result Updated: ")

    session.expire_all()
    rows = session.exec(select(Notification)).all()
    assert {r.status for r in rows} == {NotificationStatus.SENT}
    assert all(r.delivered_at is not None for r in rows)


def test_failed_delivery_retries_then_gives_up(session, notifier, sms_sender, players):
    sms_sender.fail = True
    notifier.publish(_message(players[:1]))

    assert notifier.dispatch_pending() == {"sent": 0, "retrying": 1, "failed": 0}
    assert notifier.dispatch_pending() == {"sent": 0, "retrying": 1, "failed": 0}
    assert notifier.dispatch_pending() == {"sent": 0, "retrying": 0, "failed": 1}
    assert notifier.dispatch_pending() == {"sent": 0, "retrying": 0, "failed": 0}

    session.expire_all()
    [row] = session.exec(select(Notification)).all()
    assert row.status == NotificationStatus.FAILED
    assert row.attempts == 3
    assert row.last_error == "carrier rejected message"


def test_retry_succeeds_after_transient_failure(session, notifier, sms_sender, players):
    sms_sender.fail = True
    notifier.publish(_message(players[:1]))
    notifier.dispatch_pending()

    sms_sender.fail = False
    assert notifier.dispatch_pending()["sent"] == 1
    session.expire_all()
    [row] = session.exec(select(Notification)).all()
    assert row.status == NotificationStatus.SENT
    assert row.attempts == 2
    assert row.last_error is None


def test_player_notifications_endpoint(client, notifier, players, player_headers):
    notifier.publish(_message(players[:2], title="First"))
    notifier.publish(_message(players[:1], title="Second"))

    response = client.get("/api/notifications", headers=player_headers(players[0]))
    assert response.status_code == 200
    assert [n["title"] for n in response.json()["data"]] == ["Second", "First"]

    response = client.get("/api/notifications", headers=player_headers(players[1]))
    assert [n["title"] for n in response.json()["data"]] == ["First"]
