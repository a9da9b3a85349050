"""Per-client limits (slowapi) on the subscription endpoints."""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings

SUBSCRIPTION_LIMIT = f"{settings.rate_limit_per_minute}/minute"


def client_key(request: Request) -> str:
    """First X-Forwarded-For hop when proxied, the socket peer otherwise."""
    first_hop = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    return first_hop or get_remote_address(request)


limiter = Limiter(key_func=client_key)
