"""
Pydantic schemas for Web Push subscriptions.
"""
from pydantic import BaseModel, Field
from typing import Any, Optional


class SubscriptionKeys(BaseModel):
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)


class SubscriptionRequest(BaseModel):
    """Browser PushSubscription JSON as produced by ``subscription.toJSON()``."""
    endpoint: str = Field(min_length=1)
    keys: SubscriptionKeys


class VapidKey(BaseModel):
    public_key: Optional[str] = None


class PushPayload(BaseModel):
    title: str
    body: str
    data: Optional[dict[str, Any]] = None


class NotificationResult(BaseModel):
    success: bool
    message: str
