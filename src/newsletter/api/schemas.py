"""Pydantic request/response schemas for the Newsletter API."""

from pydantic import BaseModel


class SubscribeRequest(BaseModel):
    email: str
    full_name: str | None = None


class UpdateSubscriberRequest(BaseModel):
    email: str | None = None
    full_name: str | None = None
    is_active: bool | None = None


class SendBroadcastRequest(BaseModel):
    mode: str
    subject: str
    headline: str
    body: str
    target_subscriber_id: str | None = None
    image_url: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "mode": "all",
                    "subject": "Weekend sale",
                    "headline": "20% off all helmets",
                    "body": "Only this weekend.\nSee you in store!",
                }
            ]
        }
    }


class SubscriberSchema(BaseModel):
    id: str
    email: str
    full_name: str | None = None
    is_active: bool
    unsubscribed_at: str | None = None
    created_at: str | None = None


class SubscriberIdResponse(BaseModel):
    subscriber_id: str


class BroadcastResponse(BaseModel):
    broadcast_id: str
    mode: str
    sent_count: int
    failed_count: int


class StatusResponse(BaseModel):
    status: str = "ok"


class PurgeResponse(BaseModel):
    deleted_count: int
