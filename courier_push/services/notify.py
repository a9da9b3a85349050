"""send-push pipeline: resolve recipients -> look up subscriptions -> deliver -> prune."""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from courier_push.schemas import SendPushRequest, SendPushResponse
from courier_push.services.dispatcher import PushDispatcher
from courier_push.services.recipients import resolve_recipients
from courier_push.services.subscriptions import subscriptions_for_users

log = logging.getLogger("courier_push.push")

MSG_NO_SUBSCRIPTIONS = "No subscriptions found"


class SubscriptionLookupError(Exception):
    """Subscription store unreachable; the request cannot be served."""


def send_push(db: Session, dispatcher: PushDispatcher, req: SendPushRequest) -> SendPushResponse:
    recipients = resolve_recipients(db, req)
    if not recipients.user_ids:
        return SendPushResponse(message=recipients.reason)

    try:
        subs = subscriptions_for_users(db, recipients.user_ids)
    except SQLAlchemyError as e:
        log.exception("Subscription lookup failed for %d user(s)", len(recipients.user_ids))
        raise SubscriptionLookupError(str(e)) from e
    if not subs:
        return SendPushResponse(message=MSG_NO_SUBSCRIPTIONS)

    payload = dispatcher.build_payload(req.title, req.body, req.data)
    result = dispatcher.dispatch(db, subs, payload)
    log.info(
        "send-push users=%d subscriptions=%d sent=%d failed=%d pruned=%d",
        len(recipients.user_ids),
        len(subs),
        result.sent,
        result.failed,
        result.pruned,
    )
    return SendPushResponse(sent=result.sent, failed=result.failed)
