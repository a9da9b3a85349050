"""
Web Push delivery (pywebpush + VAPID).

A PushDispatcher is built once at startup with an immutable VapidConfig and
shared by every request. Deliveries fan out on a small thread pool; counting
and pruning of dead endpoints stay on the request thread, which owns the DB
session.
"""
import json
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable

import requests
from pywebpush import WebPushException, webpush
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from courier_push.core.config import Settings
from courier_push.models import PushSubscription
from courier_push.services.subscriptions import delete_by_endpoint

log = logging.getLogger("courier_push.push")

# Push service says the subscription is gone for good
DEAD_ENDPOINT_STATUSES = frozenset({404, 410})


class PushDeliveryError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class VapidConfig:
    public_key: str
    private_key: str
    subject: str  # mailto: contact sent in the VAPID claims

    @classmethod
    def from_settings(cls, s: Settings) -> "VapidConfig":
        return cls(
            public_key=s.vapid_public_key,
            private_key=s.vapid_private_key,
            subject=s.vapid_subject,
        )

    @property
    def configured(self) -> bool:
        return bool(self.public_key and self.private_key)


# (subscription_info, payload) -> None; raises PushDeliveryError on rejection
Transport = Callable[[dict, str], None]


class WebPushTransport:
    """Signs and sends one encrypted message with pywebpush."""

    def __init__(self, vapid: VapidConfig, ttl: int = 0):
        self.vapid = vapid
        self.ttl = ttl

    def __call__(self, subscription_info: dict, payload: str) -> None:
        if not self.vapid.configured:
            raise PushDeliveryError("VAPID keys are not configured")
        try:
            webpush(
                subscription_info=subscription_info,
                data=payload,
                vapid_private_key=self.vapid.private_key,
                # pywebpush fills aud/exp into the dict it gets
                vapid_claims={"sub": self.vapid.subject},
                ttl=self.ttl,
            )
        except WebPushException as e:
            status = e.response.status_code if e.response is not None else None
            raise PushDeliveryError(str(e), status_code=status) from e
        except requests.RequestException as e:
            raise PushDeliveryError(str(e)) from e


@dataclass
class DispatchResult:
    sent: int = 0
    failed: int = 0
    pruned: int = 0


@dataclass(frozen=True)
class _Target:
    user_id: str
    endpoint: str
    info: dict


class PushDispatcher:
    def __init__(self, transport: Transport, app_name: str = "MyPartsRunner", max_workers: int = 1):
        self.transport = transport
        self.app_name = app_name
        self.max_workers = max(1, max_workers)

    @classmethod
    def from_settings(cls, s: Settings) -> "PushDispatcher":
        transport = WebPushTransport(VapidConfig.from_settings(s), ttl=s.push_ttl)
        return cls(transport, app_name=s.app_name, max_workers=s.push_max_workers)

    def build_payload(self, title: str | None, body: str | None, data: dict[str, Any] | None) -> str:
        """JSON the service worker's push handler reads."""
        return json.dumps({
            "title": title or self.app_name,
            "body": body or "",
            "data": data or {},
        })

    def _deliver(self, target: _Target, payload: str) -> PushDeliveryError | None:
        try:
            self.transport(target.info, payload)
        except PushDeliveryError as e:
            return e
        return None

    def dispatch(self, db: Session, subscriptions: list[PushSubscription], payload: str) -> DispatchResult:
        """
        Attempt every subscription exactly once; one failure never stops the rest.
        Dead endpoints (404/410) are deleted as their result comes in.
        """
        result = DispatchResult()
        # Snapshot rows before any commit expires them
        targets = [_Target(s.user_id, s.endpoint, s.subscription_info()) for s in subscriptions]
        if not targets:
            return result

        workers = min(self.max_workers, len(targets))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="webpush") as executor:
            future_to_target = {executor.submit(self._deliver, t, payload): t for t in targets}
            for future in as_completed(future_to_target):
                target = future_to_target[future]
                try:
                    error = future.result()
                except Exception as e:
                    log.exception("Push delivery crashed user=%s: %s", target.user_id, e)
                    result.failed += 1
                    continue
                if error is None:
                    result.sent += 1
                    continue
                result.failed += 1
                log.warning(
                    "Push failed user=%s status=%s endpoint=%s...: %s",
                    target.user_id,
                    error.status_code,
                    target.endpoint[:50],
                    error,
                )
                if error.status_code in DEAD_ENDPOINT_STATUSES:
                    result.pruned += self._prune(db, target.endpoint)
        return result

    def _prune(self, db: Session, endpoint: str) -> int:
        try:
            return delete_by_endpoint(db, endpoint)
        except SQLAlchemyError:
            log.exception("Could not delete dead subscription endpoint=%s...", endpoint[:50])
            db.rollback()
            return 0
