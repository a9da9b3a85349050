import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from sqlmodel import Session

from courier_push.api.deps import get_dispatcher, get_vapid
from courier_push.core.database import get_db
from courier_push.core.rate_limit import SUBSCRIPTION_LIMIT, limiter
from courier_push.schemas import (
    DeleteSubscriptionRequest,
    SaveSubscriptionRequest,
    SendPushRequest,
    SendPushResponse,
)
from courier_push.services.dispatcher import PushDispatcher, VapidConfig
from courier_push.services.notify import SubscriptionLookupError, send_push
from courier_push.services.subscriptions import delete_user_subscription, save_subscription

router = APIRouter(tags=["push"])
log = logging.getLogger("courier_push.push")


async def _json_body(request: Request):
    """Parsed JSON; an empty body counts as {}, an unparseable one as None."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        return None


@router.post("/send-push", response_model=SendPushResponse, response_model_exclude_none=True)
async def send_push_notification(
    request: Request,
    db: Session = Depends(get_db),
    dispatcher: PushDispatcher = Depends(get_dispatcher),
):
    """
    Notify userIds on every registered device.
    Order-available broadcasts only reach drivers, and only while the order is pending and unassigned.
    """
    raw = await _json_body(request)
    if raw is None:
        log.warning("send-push: unreadable request body")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Invalid request body")
    user_ids = raw.get("userIds") if isinstance(raw, dict) else None
    if not isinstance(user_ids, list) or not user_ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="userIds required")
    try:
        body = SendPushRequest.model_validate(raw)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid notification: {e.errors()[0].get('msg')}")

    try:
        return await run_in_threadpool(send_push, db, dispatcher, body)
    except SubscriptionLookupError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch subscriptions",
        )


@router.post("/save-push-subscription")
@limiter.limit(SUBSCRIPTION_LIMIT)
async def save_push_subscription(request: Request, db: Session = Depends(get_db)):
    """Browser registered (or refreshed) a subscription after the user allowed notifications."""
    raw = await _json_body(request)
    try:
        body = SaveSubscriptionRequest.model_validate(raw)
    except ValidationError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing subscription or userId")
    sub, created = await run_in_threadpool(
        save_subscription,
        db,
        body.userId,
        body.subscription.endpoint,
        body.subscription.keys.p256dh,
        body.subscription.keys.auth,
    )
    return {"message": "Subscription saved successfully", "created": created, "id": sub.id}


@router.post("/delete-push-subscription")
@limiter.limit(SUBSCRIPTION_LIMIT)
async def delete_push_subscription(request: Request, db: Session = Depends(get_db)):
    """User turned notifications off on this device. Deleting twice is fine."""
    raw = await _json_body(request)
    try:
        body = DeleteSubscriptionRequest.model_validate(raw)
    except ValidationError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing endpoint or userId")
    deleted = await run_in_threadpool(delete_user_subscription, db, body.userId, body.endpoint)
    return {"deleted": deleted}


@router.get("/vapid-public-key")
def vapid_public_key(vapid: VapidConfig | None = Depends(get_vapid)):
    """applicationServerKey for pushManager.subscribe()."""
    if vapid is None or not vapid.public_key:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Push not configured")
    return {"publicKey": vapid.public_key}
