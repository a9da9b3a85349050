from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env lives at the project root: courier_push/core/config.py -> core -> courier_push -> root
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"

# VAPID claims must name a contact; web-push services reject anything else
VAPID_SUBJECT_PREFIXES = ("mailto:", "https://")


class Settings(BaseSettings):
    database_url: str = "sqlite:///./courier_push.db"
    # CORS: comma separated origin list; in production the storefront domain
    cors_origins: str = "*"
    # Max requests per IP per minute on the subscription endpoints
    rate_limit_per_minute: int = 60
    environment: str = "development"
    log_level: str = "INFO"
    # Shown as the notification title when the caller sends none
    app_name: str = "MyPartsRunner"
    # Web Push (VAPID). Public key goes to the browser, private key signs deliveries (pywebpush).
    vapid_public_key: str = ""
    vapid_private_key: str = ""
    vapid_subject: str = "mailto:notifications@mypartsrunner.com"
    push_ttl: int = 2419200  # seconds the push service keeps an undelivered message (4 weeks)
    # Parallel deliveries per request; 1 = strictly sequential
    push_max_workers: int = 4
    # Older callers only set a title like "New Order Available"; data.type is the real signal
    legacy_title_matching: bool = True

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("vapid_public_key", "vapid_private_key", mode="before")
    @classmethod
    def strip_vapid_key(cls, v: str | None) -> str:
        """Keys are often pasted with trailing newlines."""
        return (v or "").strip()

    @field_validator("vapid_subject", mode="before")
    @classmethod
    def normalize_vapid_subject(cls, v: str | None) -> str:
        v = (v or "").strip()
        if v and not v.startswith(VAPID_SUBJECT_PREFIXES):
            # A bare address is accepted for convenience
            return f"mailto:{v}"
        return v

    @field_validator("push_max_workers", mode="after")
    @classmethod
    def at_least_one_worker(cls, v: int) -> int:
        return max(1, v)


settings = Settings()


def is_push_configured() -> bool:
    """Both VAPID keys present?"""
    return bool(settings.vapid_public_key and settings.vapid_private_key)
