"""Browser push subscriptions (Web Push API)."""
from datetime import datetime, timezone

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PushSubscription(SQLModel, table=True):
    __tablename__ = "push_subscriptions"
    __table_args__ = (UniqueConstraint("user_id", "endpoint", name="uq_push_subscriptions_user_endpoint"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    endpoint: str = Field(index=True)  # pruned by endpoint when the push service answers 404/410
    p256dh: str = ""  # client public key (base64url)
    auth: str = ""    # auth secret (base64url)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    def subscription_info(self) -> dict:
        """Shape pywebpush expects."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }
