"""FastAPI routes for the Newsletter domain: sign-up and admin broadcasts."""

import hmac
import os

from fastapi import APIRouter, Header
from protean.utils.globals import current_domain

from newsletter.api.schemas import (
    BroadcastResponse,
    PurgeResponse,
    SendBroadcastRequest,
    StatusResponse,
    SubscribeRequest,
    SubscriberIdResponse,
    SubscriberSchema,
    UpdateSubscriberRequest,
)
from newsletter.broadcast.service import BroadcastService
from newsletter.domain import newsletter
from newsletter.subscriber.management import (
    DeactivateSubscriber,
    DeleteSubscriber,
    PurgeInactiveSubscribers,
    RestoreSubscriber,
    Subscribe,
    UpdateSubscriber,
    list_subscribers,
)
from shared.errors import UnauthorizedError


def _require_admin(admin_id: str | None) -> str:
    admin_id = (admin_id or "").strip()
    if not admin_id:
        raise UnauthorizedError()
    return admin_id


def _purge_inactive() -> int:
    return current_domain.process(PurgeInactiveSubscribers(), asynchronous=False)


def _subscriber(subscriber) -> SubscriberSchema:
    return SubscriberSchema(
        id=str(subscriber.id),
        email=subscriber.email,
        full_name=subscriber.full_name,
        is_active=subscriber.is_active,
        unsubscribed_at=subscriber.unsubscribed_at.isoformat() if subscriber.unsubscribed_at else None,
        created_at=subscriber.created_at.isoformat() if subscriber.created_at else None,
    )


# ---------------------------------------------------------------------------
# Public Router
# ---------------------------------------------------------------------------
newsletter_router = APIRouter(prefix="/newsletter", tags=["newsletter"])


@newsletter_router.post("", status_code=201, response_model=SubscriberIdResponse)
async def subscribe(body: SubscribeRequest) -> SubscriberIdResponse:
    result = current_domain.process(Subscribe(email=body.email, full_name=body.full_name), asynchronous=False)
    return SubscriberIdResponse(subscriber_id=result)


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
broadcast_router = APIRouter(prefix="/admin/broadcast", tags=["admin-broadcast"])


@broadcast_router.get("/subscribers")
async def get_subscribers(active: bool | None = None, x_admin_id: str | None = Header(None)) -> dict:
    _require_admin(x_admin_id)
    _purge_inactive()
    return {"subscribers": [_subscriber(s).model_dump() for s in list_subscribers(active=active)]}


@broadcast_router.put("/subscribers/{subscriber_id}", response_model=StatusResponse)
async def update_subscriber(
    subscriber_id: str,
    body: UpdateSubscriberRequest,
    x_admin_id: str | None = Header(None),
) -> StatusResponse:
    _require_admin(x_admin_id)
    if body.email is not None or body.full_name is not None:
        current_domain.process(
            UpdateSubscriber(subscriber_id=subscriber_id, email=body.email, full_name=body.full_name),
            asynchronous=False,
        )
    if body.is_active is True:
        current_domain.process(RestoreSubscriber(subscriber_id=subscriber_id), asynchronous=False)
    elif body.is_active is False:
        current_domain.process(DeactivateSubscriber(subscriber_id=subscriber_id), asynchronous=False)
    return StatusResponse()


@broadcast_router.delete("/subscribers/{subscriber_id}", response_model=StatusResponse)
async def delete_subscriber(subscriber_id: str, x_admin_id: str | None = Header(None)) -> StatusResponse:
    _require_admin(x_admin_id)
    current_domain.process(DeleteSubscriber(subscriber_id=subscriber_id), asynchronous=False)
    return StatusResponse()


@broadcast_router.post("/subscribers/{subscriber_id}/restore", response_model=StatusResponse)
async def restore_subscriber(subscriber_id: str, x_admin_id: str | None = Header(None)) -> StatusResponse:
    _require_admin(x_admin_id)
    current_domain.process(RestoreSubscriber(subscriber_id=subscriber_id), asynchronous=False)
    return StatusResponse()


@broadcast_router.post("/subscribers/purge", response_model=PurgeResponse)
async def purge_subscribers(x_admin_id: str | None = Header(None)) -> PurgeResponse:
    _require_admin(x_admin_id)
    return PurgeResponse(deleted_count=_purge_inactive())


# Sync on purpose: the fan-out blocks until every send finishes, so it runs in
# the threadpool.
@broadcast_router.post("/send", response_model=BroadcastResponse)
def send_broadcast(body: SendBroadcastRequest, x_admin_id: str | None = Header(None)) -> BroadcastResponse:
    sent_by = _require_admin(x_admin_id)
    with newsletter.domain_context():
        summary = BroadcastService().send(
            mode=body.mode,
            subject=body.subject,
            headline=body.headline,
            body=body.body,
            sent_by=sent_by,
            target_subscriber_id=body.target_subscriber_id,
            image_url=body.image_url,
        )
    return BroadcastResponse(
        broadcast_id=summary.broadcast_id,
        mode=summary.mode,
        sent_count=summary.sent_count,
        failed_count=summary.failed_count,
    )


# ---------------------------------------------------------------------------
# Cron Router
# ---------------------------------------------------------------------------
cron_router = APIRouter(prefix="/cron", tags=["cron"])


def _require_cron_secret(authorization: str | None) -> None:
    secret = os.environ.get("CRON_SECRET", "").strip()
    if not secret or not hmac.compare_digest(authorization or "", f"Bearer {secret}"):
        raise UnauthorizedError()


@cron_router.get("/newsletter-purge", response_model=PurgeResponse)
async def newsletter_purge(authorization: str | None = Header(None)) -> PurgeResponse:
    _require_cron_secret(authorization)
    return PurgeResponse(deleted_count=_purge_inactive())
