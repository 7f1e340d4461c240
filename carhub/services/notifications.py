"""
Web Push delivery and service reminders.
"""
import asyncio
import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from loguru import logger
from pywebpush import WebPushException, webpush
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from carhub.clock import local_to_utc, utcnow
from carhub.database import Base
from carhub.models.notification import PushSubscription, ServiceReminder
from carhub.models.service import Service
from carhub.models.user import User, UserRole
from carhub.schemas.notification import PushPayload

# Push services answer these when a subscription no longer exists
GONE_STATUSES = (404, 410)


@dataclass(frozen=True)
class VapidConfig:
    """VAPID credentials used to sign push requests."""
    public_key: Optional[str]
    private_key: Optional[str]
    email: str = "mailto:admin@carhub.com"

    @property
    def enabled(self) -> bool:
        return bool(self.public_key and self.private_key)

    @property
    def claims(self) -> dict:
        subject = self.email if self.email.startswith(("mailto:", "https:")) else f"mailto:{self.email}"
        return {"sub": subject}


def reminder_payload(service: Service, minutes: int) -> dict:
    customer = service.customer.name if service.customer else "Customer"
    vehicle = service.vehicle.description if service.vehicle else "vehicle"
    return PushPayload(
        title="Service reminder",
        body=f"Service scheduled in {minutes} min: {customer} - {vehicle}",
        data={
            "serviceId": service.id,
            "type": "service_reminder",
            "customerId": service.customer_id,
            "vehicleId": service.vehicle_id,
        },
    ).model_dump()


class NotificationService:
    """Push subscriptions, reminder bookkeeping and the reminder sweep."""

    def __init__(self, vapid: VapidConfig, session_factory: async_sessionmaker):
        self.vapid = vapid
        self.session_factory = session_factory
        self._tables_ready = False

    @property
    def public_key(self) -> Optional[str]:
        return self.vapid.public_key

    async def ensure_tables(self) -> None:
        """Create the push tables on first use if the schema predates them."""
        if self._tables_ready:
            return
        async with self.session_factory() as session:
            conn = await session.connection()
            await conn.run_sync(
                Base.metadata.create_all,
                tables=[PushSubscription.__table__, ServiceReminder.__table__],
                checkfirst=True,
            )
            await session.commit()
        self._tables_ready = True

    # Subscriptions

    async def subscribe(self, db: AsyncSession, user_id: int, endpoint: str, p256dh: str, auth: str) -> PushSubscription:
        """Replace the user's subscription with the given browser endpoint."""
        await db.execute(delete(PushSubscription).where(PushSubscription.user_id == user_id))
        subscription = PushSubscription(user_id=user_id, endpoint=endpoint, p256dh=p256dh, auth=auth)
        db.add(subscription)
        await db.commit()
        await db.refresh(subscription)
        logger.info("User {} subscribed to push notifications", user_id)
        return subscription

    async def unsubscribe(self, db: AsyncSession, user_id: int) -> int:
        result = await db.execute(delete(PushSubscription).where(PushSubscription.user_id == user_id))
        await db.commit()
        logger.info("User {} unsubscribed from push notifications", user_id)
        return result.rowcount or 0

    # Reminders

    async def create_service_reminder(
        self, db: AsyncSession, service: Service, minutes: int, now: Optional[datetime] = None
    ) -> Optional[ServiceReminder]:
        """
        Store a reminder ``minutes`` before the service's scheduled time.

        Returns None when the service has no date/time or the reminder
        instant has already passed. The caller commits.
        """
        if service.scheduled_date is None or service.scheduled_time is None:
            logger.warning("Service {} has no schedule; reminder skipped", service.id)
            return None

        due = local_to_utc(service.scheduled_date, service.scheduled_time) - timedelta(minutes=minutes)
        if due <= (now or utcnow()):
            logger.info("Reminder for service {} would be in the past; skipped", service.id)
            return None

        reminder = ServiceReminder(
            service_id=service.id,
            reminder_minutes=minutes,
            scheduled_for=due,
            notification_sent=False,
        )
        db.add(reminder)
        logger.info("Reminder for service {} scheduled at {} UTC", service.id, due)
        return reminder

    # Delivery

    def _push(self, subscription_info: dict, payload: dict) -> None:
        webpush(
            subscription_info=subscription_info,
            data=json.dumps(payload),
            vapid_private_key=self.vapid.private_key,
            vapid_claims=dict(self.vapid.claims),
        )

    async def send_to_user(self, db: AsyncSession, user_id: int, payload: dict) -> bool:
        """
        Push ``payload`` to every subscription of ``user_id``.

        Subscriptions the push service reports as gone are deleted in the
        caller's transaction. Returns True when at least one push succeeded.
        """
        if not self.vapid.enabled:
            logger.warning("VAPID keys not configured; push to user {} skipped", user_id)
            return False

        result = await db.execute(select(PushSubscription).where(PushSubscription.user_id == user_id))
        subscriptions = result.scalars().all()
        if not subscriptions:
            logger.debug("No push subscriptions for user {}", user_id)
            return False

        delivered = False
        for subscription in subscriptions:
            try:
                await asyncio.to_thread(self._push, subscription.subscription_info(), payload)
                delivered = True
            except WebPushException as exc:
                status_code = getattr(exc.response, "status_code", None)
                if status_code in GONE_STATUSES:
                    await db.delete(subscription)
                    logger.info("Removed expired push subscription {}", subscription.id)
                else:
                    logger.error("Push to subscription {} failed: {}", subscription.id, exc)
            except Exception as exc:
                logger.error("Push to subscription {} failed: {}", subscription.id, exc)
        return delivered

    async def reminder_recipients(self, db: AsyncSession, service: Service) -> List[int]:
        """The service's technician plus every active admin, without repeats."""
        result = await db.execute(
            select(User.id).where(User.role == UserRole.ADMIN, User.is_active.is_(True)).order_by(User.id)
        )
        recipients = [service.technician_id] if service.technician_id else []
        for admin_id in result.scalars().all():
            if admin_id not in recipients:
                recipients.append(admin_id)
        return recipients

    async def _claim(self, db: AsyncSession, reminder_id: int) -> bool:
        result = await db.execute(
            update(ServiceReminder)
            .where(ServiceReminder.id == reminder_id, ServiceReminder.notification_sent.is_(False))
            .values(notification_sent=True)
        )
        return result.rowcount == 1

    async def send_due_reminders(self, now: Optional[datetime] = None) -> int:
        """
        Deliver every unsent reminder whose time has come.

        Each reminder is claimed with a guarded update that is committed
        before any push goes out, so overlapping sweeps never send one twice
        and no write lock is held while the push service answers.
        Returns the number of reminders processed.
        """
        await self.ensure_tables()
        now = now or utcnow()

        async with self.session_factory() as db:
            result = await db.execute(
                select(ServiceReminder.id)
                .where(ServiceReminder.notification_sent.is_(False))
                .where(ServiceReminder.scheduled_for <= now)
                .order_by(ServiceReminder.scheduled_for)
            )
            due_ids = list(result.scalars().all())

        if due_ids:
            logger.info("Found {} pending reminders to process", len(due_ids))

        processed = 0
        for reminder_id in due_ids:
            try:
                if await self._process_reminder(reminder_id):
                    processed += 1
            except Exception:
                logger.exception("Failed to process reminder {}", reminder_id)
        return processed

    async def _process_reminder(self, reminder_id: int) -> bool:
        async with self.session_factory() as db:
            if not await self._claim(db, reminder_id):
                await db.rollback()
                return False
            # Sent from here on, whatever the delivery outcome
            await db.commit()

            reminder = (
                await db.execute(
                    select(ServiceReminder)
                    .where(ServiceReminder.id == reminder_id)
                    .options(
                        selectinload(ServiceReminder.service).selectinload(Service.customer),
                        selectinload(ServiceReminder.service).selectinload(Service.vehicle),
                    )
                )
            ).scalar_one()
            service = reminder.service

            payload = reminder_payload(service, reminder.reminder_minutes)
            for user_id in await self.reminder_recipients(db, service):
                await self.send_to_user(db, user_id, payload)

            await db.commit()
            logger.info("Processed reminder {} for service {}", reminder_id, service.id)
            return True


def build_notification_service(settings, session_factory) -> NotificationService:
    vapid = VapidConfig(
        public_key=settings.vapid_public_key,
        private_key=settings.vapid_private_key,
        email=settings.vapid_email,
    )
    if not vapid.enabled:
        logger.warning("VAPID keys missing; push notifications are disabled")
    return NotificationService(vapid, session_factory)

