"""
Web Push subscription routes.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from carhub.database import get_db
from carhub.models.user import User
from carhub.schemas.notification import NotificationResult, PushPayload, SubscriptionRequest, VapidKey
from carhub.services.notifications import NotificationService
from carhub.auth import get_current_active_user

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notifications


@router.get("/vapid-key", response_model=VapidKey)
async def get_vapid_key(notifications: NotificationService = Depends(get_notification_service)):
    """
    Public VAPID key the browser needs to subscribe.
    """
    return VapidKey(public_key=notifications.public_key)


@router.post("/subscribe", response_model=NotificationResult)
async def subscribe(
    subscription: SubscriptionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    await notifications.subscribe(
        db,
        current_user.id,
        endpoint=subscription.endpoint,
        p256dh=subscription.keys.p256dh,
        auth=subscription.keys.auth,
    )
    return NotificationResult(success=True, message="Subscribed to push notifications")


@router.post("/unsubscribe", response_model=NotificationResult)
async def unsubscribe(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    removed = await notifications.unsubscribe(db, current_user.id)
    return NotificationResult(success=True, message=f"Removed {removed} subscription(s)")


@router.post("/test", response_model=NotificationResult)
async def send_test_notification(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    """
    Push a test notification to the caller's own subscriptions.
    """
    delivered = await notifications.send_to_user(
        db,
        current_user.id,
        PushPayload(title="Test notification", body="Push notifications are working.", data={"type": "test"}).model_dump(),
    )
    await db.commit()
    if delivered:
        return NotificationResult(success=True, message="Test notification sent")
    return NotificationResult(success=False, message="No active subscription received the notification")
