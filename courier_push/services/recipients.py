"""
Who actually gets a notification.

"Order available" broadcasts go to drivers only, and only while the order is
still pending and unassigned. Everything else passes straight through.
"""
import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from courier_push.core.config import settings
from courier_push.models import Order, Profile
from courier_push.models.order import ORDER_STATUS_PENDING
from courier_push.models.profile import USER_TYPE_DRIVER
from courier_push.schemas import SendPushRequest

log = logging.getLogger("courier_push.recipients")

ORDER_AVAILABLE_TYPE = "order_available"
# Titles older callers send instead of data.type
LEGACY_ORDER_TITLES = ("New Order", "Order Available")

MSG_ORDER_NOT_FOUND = "Order not found"
MSG_ORDER_ASSIGNED = "Order already assigned to a driver"
MSG_ORDER_LOOKUP_FAILED = "Order lookup failed"
MSG_NO_DRIVERS = "No drivers to notify"


@dataclass
class Recipients:
    user_ids: list[str] = field(default_factory=list)
    reason: str | None = None  # set when user_ids is empty


def is_order_available(req: SendPushRequest, legacy_titles: bool | None = None) -> bool:
    if req.data_type == ORDER_AVAILABLE_TYPE:
        return True
    if legacy_titles is None:
        legacy_titles = settings.legacy_title_matching
    if legacy_titles and req.title:
        return any(phrase in req.title for phrase in LEGACY_ORDER_TITLES)
    return False


def _order_block_reason(db: Session, order_id: str) -> str | None:
    """None when the order can still be offered to drivers."""
    try:
        order = db.get(Order, order_id)
    except SQLAlchemyError:
        # Never notify on an order state we could not read
        log.exception("Order lookup failed order_id=%s", order_id)
        db.rollback()
        return MSG_ORDER_LOOKUP_FAILED
    if order is None:
        return MSG_ORDER_NOT_FOUND
    if order.status != ORDER_STATUS_PENDING:
        return f"Order status is {order.status}, not pending"
    if order.driver_id:
        return MSG_ORDER_ASSIGNED
    return None


def _drivers_only(db: Session, user_ids: list[str]) -> list[str]:
    stmt = select(Profile.id, Profile.user_type).where(Profile.id.in_(user_ids))
    user_types = {pid: utype for pid, utype in db.exec(stmt).all()}
    return [uid for uid in user_ids if user_types.get(uid) == USER_TYPE_DRIVER]


def resolve_recipients(db: Session, req: SendPushRequest) -> Recipients:
    """Final recipient list for a request with non-empty userIds (duplicates collapse, order kept)."""
    user_ids = list(dict.fromkeys(req.userIds or []))
    if not is_order_available(req):
        return Recipients(user_ids=user_ids)

    order_id = req.order_id
    if order_id:
        reason = _order_block_reason(db, order_id)
        if reason:
            log.info("Skipping order broadcast order_id=%s: %s", order_id, reason)
            return Recipients(reason=reason)

    drivers = _drivers_only(db, user_ids)
    if not drivers:
        log.info("Order broadcast has no drivers among %d recipient(s)", len(user_ids))
        return Recipients(reason=MSG_NO_DRIVERS)
    return Recipients(user_ids=drivers)
