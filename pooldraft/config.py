import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    raw_db_url = os.getenv("DATABASE_URL")

    if raw_db_url:
        if raw_db_url.startswith("postgres://"):
            raw_db_url = raw_db_url.replace("postgres://", "postgresql://", 1)
        SQLALCHEMY_DATABASE_URI = raw_db_url
    else:
        SQLALCHEMY_DATABASE_URI = "sqlite:///drafts.db"

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me-dev-secret")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Defaults copied into a pool's DraftSettings row when its draft is created
    DRAFT_PICK_TIME_SECONDS = int(os.getenv("DRAFT_PICK_TIME_SECONDS", "86400"))
    DRAFT_REMINDER_MINUTES = int(os.getenv("DRAFT_REMINDER_MINUTES", "720"))
    DRAFT_ENABLE_AUTO_SKIP = _env_bool("DRAFT_ENABLE_AUTO_SKIP", True)
    DRAFT_AUTO_SKIP_AFTER_SECONDS = int(os.getenv("DRAFT_AUTO_SKIP_AFTER_SECONDS", "86400"))
    DRAFT_BREAK_BETWEEN_ROUNDS_SECONDS = int(os.getenv("DRAFT_BREAK_BETWEEN_ROUNDS_SECONDS", "0"))
    DRAFT_MAX_ROUNDS = int(os.getenv("DRAFT_MAX_ROUNDS", "50"))

    # Shared secret for the external scheduler hitting /api/drafts/check-timeouts
    DRAFT_CRON_SECRET = os.getenv("DRAFT_CRON_SECRET", None)

    # Object with deliver(participant_id, event_type, payload); None -> email
    DRAFT_NOTIFICATION_SINK = None

    DRAFT_STATUS_CACHE_TTL = float(os.getenv("DRAFT_STATUS_CACHE_TTL", "5"))
    DRAFT_TIMEZONE = os.getenv("DRAFT_TIMEZONE", "UTC")
    DRAFT_ROOM_BASE_URL = os.getenv("DRAFT_ROOM_BASE_URL", "http://localhost:5000")

RESEND_API_KEY = os.getenv("RESEND_API_KEY", None)
RESEND_FROM_EMAIL = os.getenv("RESEND_FROM_EMAIL", None)
