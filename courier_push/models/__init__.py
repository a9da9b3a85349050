from .order import Order
from .profile import Profile
from .push_subscription import PushSubscription

__all__ = [
    "Order",
    "Profile",
    "PushSubscription",
]
