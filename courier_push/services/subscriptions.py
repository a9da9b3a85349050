"""Push subscription store: lookup for dispatch, pruning, client registration."""
import logging

from sqlmodel import Session, select

from courier_push.models import PushSubscription
from courier_push.models.push_subscription import utcnow

log = logging.getLogger("courier_push.subscriptions")


def subscriptions_for_users(db: Session, user_ids: list[str]) -> list[PushSubscription]:
    """Every registered device of the given users. Store errors propagate."""
    if not user_ids:
        return []
    stmt = (
        select(PushSubscription)
        .where(PushSubscription.user_id.in_(user_ids))
        .order_by(PushSubscription.id)
    )
    return list(db.exec(stmt).all())


def delete_by_endpoint(db: Session, endpoint: str) -> int:
    """Remove a dead endpoint. Deleting an already absent row is fine (returns 0)."""
    rows = db.exec(select(PushSubscription).where(PushSubscription.endpoint == endpoint)).all()
    for row in rows:
        db.delete(row)
    if rows:
        db.commit()
    return len(rows)


def save_subscription(
    db: Session,
    user_id: str,
    endpoint: str,
    p256dh: str,
    auth: str,
) -> tuple[PushSubscription, bool]:
    """
    Upsert on (user_id, endpoint). Keys rotate when the browser re-subscribes,
    so an existing row gets the new keys. Returns (row, created).
    """
    stmt = select(PushSubscription).where(
        PushSubscription.user_id == user_id,
        PushSubscription.endpoint == endpoint,
    )
    existing = db.exec(stmt).first()
    if existing:
        existing.p256dh = p256dh
        existing.auth = auth
        existing.updated_at = utcnow()
        db.add(existing)
        db.commit()
        db.refresh(existing)
        log.info("Updated push subscription id=%s user=%s", existing.id, user_id)
        return existing, False
    sub = PushSubscription(user_id=user_id, endpoint=endpoint, p256dh=p256dh, auth=auth)
    db.add(sub)
    db.commit()
    db.refresh(sub)
    log.info("Created push subscription id=%s user=%s", sub.id, user_id)
    return sub, True


def delete_user_subscription(db: Session, user_id: str, endpoint: str) -> int:
    """User revoked notification permission on a device."""
    stmt = select(PushSubscription).where(
        PushSubscription.user_id == user_id,
        PushSubscription.endpoint == endpoint,
    )
    rows = db.exec(stmt).all()
    for row in rows:
        db.delete(row)
    if rows:
        db.commit()
    return len(rows)
