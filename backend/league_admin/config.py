import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    """Runtime policy knobs read from the environment."""

    app_env: str
    log_level: str
    late_cancellation_window_hours: int
    default_penalty_severity: str
    notification_worker_enabled: bool
    notification_poll_seconds: float
    notification_max_attempts: int

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            app_env=os.getenv("APP_ENV", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            late_cancellation_window_hours=int(os.getenv("LATE_CANCELLATION_WINDOW_HOURS", "24")),
            default_penalty_severity=os.getenv("DEFAULT_PENALTY_SEVERITY", "MODERATE").upper(),
            notification_worker_enabled=_env_bool("NOTIFICATION_WORKER_ENABLED", "true"),
            notification_poll_seconds=float(os.getenv("NOTIFICATION_POLL_SECONDS", "5")),
            notification_max_attempts=int(os.getenv("NOTIFICATION_MAX_ATTEMPTS", "5")),
        )


settings = Settings.from_env()
