from .push import (
    DeleteSubscriptionRequest,
    SaveSubscriptionRequest,
    SendPushRequest,
    SendPushResponse,
    SubscriptionIn,
    SubscriptionKeys,
)

__all__ = [
    "DeleteSubscriptionRequest",
    "SaveSubscriptionRequest",
    "SendPushRequest",
    "SendPushResponse",
    "SubscriptionIn",
    "SubscriptionKeys",
]
