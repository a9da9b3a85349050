from typing import Any

from pydantic import BaseModel, Field


class SendPushRequest(BaseModel):
    userIds: list[str] | None = None
    title: str | None = None
    body: str | None = None
    # type / orderId drive eligibility; every other key is forwarded to the service worker untouched
    data: dict[str, Any] | None = None

    @property
    def data_type(self) -> str | None:
        return (self.data or {}).get("type")

    @property
    def order_id(self) -> str | None:
        order_id = (self.data or {}).get("orderId")
        if order_id is None or order_id == "":
            return None
        return str(order_id)


class SendPushResponse(BaseModel):
    sent: int = 0
    failed: int = 0
    message: str | None = None  # only on early exits


class SubscriptionKeys(BaseModel):
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)


class SubscriptionIn(BaseModel):
    """PushSubscription.toJSON() from the browser."""
    endpoint: str = Field(min_length=1)
    keys: SubscriptionKeys


class SaveSubscriptionRequest(BaseModel):
    userId: str = Field(min_length=1)
    subscription: SubscriptionIn


class DeleteSubscriptionRequest(BaseModel):
    userId: str = Field(min_length=1)
    endpoint: str = Field(min_length=1)
