"""
Player notifications as a persisted outbox.

publish() runs after the caller's transaction has committed. It writes one
PENDING row per recipient in its own session and wakes the worker; it never
raises. The worker delivers rows (SMS when the player has a phone number,
in-app only otherwise) and retries failures until the attempt limit, so
delivery is at-least-once and never affects the admin operation.
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from league_admin.clock import utc_now
from league_admin.config import settings
from league_admin.models.enums import NotificationStatus
from league_admin.models.notification import Notification
from league_admin.models.user import User
from league_admin.services.twilio_service import get_twilio_service, get_user_phone_number

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    pass


@dataclass
class NotificationMessage:
    type: str
    title: str
    message: str
    user_ids: List[int] = field(default_factory=list)
    match_id: Optional[int] = None


class NotificationDispatcher:
    def __init__(
        self,
        engine: Engine,
        sender=None,
        max_attempts: Optional[int] = None,
        poll_seconds: Optional[float] = None,
    ):
        self._engine = engine
        self._sender = sender
        self.max_attempts = max_attempts or settings.notification_max_attempts
        self.poll_seconds = poll_seconds or settings.notification_poll_seconds
        self._wake = threading.Event()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def sender(self):
        if self._sender is None:
            self._sender = get_twilio_service()
        return self._sender

    def publish(self, message: NotificationMessage) -> int:
        """Queue the message for every recipient. Returns rows queued; 0 on failure."""
        recipients = list(dict.fromkeys(message.user_ids))
        if not recipients:
            return 0
        try:
            with Session(self._engine) as session:
                for user_id in recipients:
                    session.add(
                        Notification(
                            user_id=user_id,
                            type=message.type,
                            title=message.title,
                            message=message.message,
                            match_id=message.match_id,
                        )
                    )
                session.commit()
        except Exception:
            logger.exception(f"Failed to queue {message.type} notification for match {message.match_id}")
            return 0

        logger.info(f"Queued {message.type} notification for {len(recipients)} recipient(s)")
        self._wake.set()
        return len(recipients)

    def dispatch_pending(self, limit: int = 100) -> Dict[str, int]:
        """Make one delivery pass over queued rows, oldest first."""
        counts = {"sent": 0, "retrying": 0, "failed": 0}
        with Session(self._engine) as session:
            rows = session.exec(
                select(Notification)
                .where(Notification.status == NotificationStatus.PENDING)
                .order_by(Notification.id)
                .limit(limit)
            ).all()

            for row in rows:
                row.attempts += 1
                try:
                    self._deliver(session, row)
                except Exception as exc:
                    row.last_error = str(exc)
                    if row.attempts >= self.max_attempts:
                        row.status = NotificationStatus.FAILED
                        counts["failed"] += 1
                        logger.error(f"Notification {row.id} failed permanently after {row.attempts} attempts: {exc}")
                    else:
                        counts["retrying"] += 1
                        logger.warning(f"Notification {row.id} delivery failed (attempt {row.attempts}): {exc}")
                else:
                    row.status = NotificationStatus.SENT
                    row.delivered_at = utc_now()
                    row.last_error = None
                    counts["sent"] += 1
                session.add(row)
                session.commit()
        return counts

    def _deliver(self, session: Session, row: Notification) -> None:
        user = session.get(User, row.user_id)
        if user is None:
            raise DeliveryError(f"User {row.user_id} no longer exists")
        phone = get_user_phone_number(user)
        if phone is None:
            return  # In-app only
        result = self.sender.send_sms(phone, f"{row.title}: {row.message}")
        if result["status"] == "failed":
            raise DeliveryError(result["error"] or "SMS send failed")

    # Background worker

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="notification-dispatcher", daemon=True)
        self._thread.start()
        logger.info(f"Notification dispatcher started (poll every {self.poll_seconds}s)")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        self._wake.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.dispatch_pending()
            except Exception:
                logger.exception("Notification dispatch pass failed")
            self._wake.wait(self.poll_seconds)
            self._wake.clear()


def list_user_notifications(session: Session, user_id: int) -> List[Notification]:
    return session.exec(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    ).all()


_dispatcher: Optional[NotificationDispatcher] = None


def get_notifier() -> NotificationDispatcher:
    """Get or create the app-wide dispatcher (overridable FastAPI dependency)."""
    global _dispatcher
    if _dispatcher is None:
        from league_admin.database import engine

        _dispatcher = NotificationDispatcher(engine)
    return _dispatcher
