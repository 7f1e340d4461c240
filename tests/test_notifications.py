import os
import tempfile
import unittest
from datetime import date, datetime, time
from types import SimpleNamespace
from unittest import mock

from pywebpush import WebPushException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from carhub.database import build_engine, init_db
from carhub.models import Customer, PushSubscription, Service, ServiceReminder, User, UserRole, Vehicle
from carhub.models.service import ServiceStatus
from carhub.services.notifications import NotificationService, VapidConfig, reminder_payload


class TestServiceReminders(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.engine = build_engine(f"sqlite+aiosqlite:///{os.path.join(self.tmpdir.name, 'push.db')}")
        await init_db(self.engine)
        self.session_factory = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)
        self.notifications = NotificationService(
            VapidConfig(public_key="public-key", private_key="private-key"),
            self.session_factory,
        )

        async with self.session_factory() as db:
            admin = User(username="admin", hashed_password="x", role=UserRole.ADMIN, is_active=True, permissions=[])
            technician = User(username="tech", hashed_password="x", role=UserRole.TECHNICIAN,
                              is_active=True, permissions=[])
            customer = Customer(name="Maria Souza", loyalty_points=0)
            db.add_all([admin, technician, customer])
            await db.flush()
            vehicle = Vehicle(customer_id=customer.id, license_plate="ABC1D23", brand="Fiat", model="Uno", year=2018)
            db.add(vehicle)
            await db.flush()
            service = Service(
                customer_id=customer.id,
                vehicle_id=vehicle.id,
                technician_id=technician.id,
                status=ServiceStatus.SCHEDULED,
                scheduled_date=date(2030, 1, 1),
                scheduled_time=time(10, 0),
                estimated_value=150,
            )
            db.add(service)
            db.add_all([
                PushSubscription(user_id=admin.id, endpoint="https://push.example/gone", p256dh="k", auth="a"),
                PushSubscription(user_id=technician.id, endpoint="https://push.example/ok", p256dh="k", auth="a"),
            ])
            await db.commit()
            self.admin_id, self.technician_id, self.service_id = admin.id, technician.id, service.id

    async def asyncTearDown(self):
        await self.engine.dispose()
        self.tmpdir.cleanup()

    async def _create_reminder(self, minutes=30, now=datetime(2029, 12, 31, 12, 0)):
        async with self.session_factory() as db:
            service = await db.get(Service, self.service_id)
            reminder = await self.notifications.create_service_reminder(db, service, minutes, now=now)
            await db.commit()
            return reminder

    async def _reminders(self):
        async with self.session_factory() as db:
            return (await db.execute(select(ServiceReminder))).scalars().all()

    async def test_reminder_due_time_is_utc(self):
        reminder = await self._create_reminder()
        # 10:00 at UTC-3 is 13:00 UTC, minus 30 minutes
        self.assertEqual(reminder.scheduled_for, datetime(2030, 1, 1, 12, 30))
        self.assertFalse(reminder.notification_sent)

    async def test_reminder_in_the_past_is_not_created(self):
        reminder = await self._create_reminder(now=datetime(2030, 1, 1, 12, 30))
        self.assertIsNone(reminder)
        self.assertEqual(await self._reminders(), [])

    async def test_not_due_yet(self):
        await self._create_reminder()
        processed = await self.notifications.send_due_reminders(now=datetime(2030, 1, 1, 12, 0))
        self.assertEqual(processed, 0)
        self.assertFalse((await self._reminders())[0].notification_sent)

    async def test_due_reminder_is_sent_once(self):
        await self._create_reminder()

        def fake_webpush(subscription_info, **kwargs):
            if subscription_info["endpoint"].endswith("/gone"):
                raise WebPushException("Push failed: 410 Gone", response=SimpleNamespace(status_code=410))

        with mock.patch("carhub.services.notifications.webpush", side_effect=fake_webpush) as webpush:
            processed = await self.notifications.send_due_reminders(now=datetime(2030, 1, 1, 12, 31))
            again = await self.notifications.send_due_reminders(now=datetime(2030, 1, 1, 12, 32))

        self.assertEqual(processed, 1)
        self.assertEqual(again, 0)
        self.assertEqual(webpush.call_count, 2)
        self.assertTrue((await self._reminders())[0].notification_sent)

        async with self.session_factory() as db:
            endpoints = (await db.execute(select(PushSubscription.endpoint))).scalars().all()
        self.assertEqual(endpoints, ["https://push.example/ok"])

    async def test_failed_delivery_still_marks_sent(self):
        await self._create_reminder()
        error = WebPushException("Push failed: 500", response=SimpleNamespace(status_code=500))

        with mock.patch("carhub.services.notifications.webpush", side_effect=error):
            processed = await self.notifications.send_due_reminders(now=datetime(2030, 1, 2))

        self.assertEqual(processed, 1)
        self.assertTrue((await self._reminders())[0].notification_sent)
        async with self.session_factory() as db:
            remaining = (await db.execute(select(PushSubscription))).scalars().all()
        self.assertEqual(len(remaining), 2)

    async def test_claim_is_committed_before_delivery(self):
        await self._create_reminder()
        seen = []

        async def record_sent_flags(db, user_id, payload):
            seen.append([reminder.notification_sent for reminder in await self._reminders()])
            return True

        with mock.patch.object(self.notifications, "send_to_user", side_effect=record_sent_flags):
            processed = await self.notifications.send_due_reminders(now=datetime(2030, 1, 2))

        self.assertEqual(processed, 1)
        # One push per recipient, each made after the claim was already visible
        self.assertEqual(seen, [[True], [True]])

    async def test_recipients_are_technician_then_admins(self):
        async with self.session_factory() as db:
            service = await db.get(Service, self.service_id)
            recipients = await self.notifications.reminder_recipients(db, service)
        self.assertEqual(recipients, [self.technician_id, self.admin_id])

    async def test_push_skipped_without_vapid_keys(self):
        disabled = NotificationService(VapidConfig(public_key=None, private_key=None), self.session_factory)
        with mock.patch("carhub.services.notifications.webpush") as webpush:
            async with self.session_factory() as db:
                delivered = await disabled.send_to_user(db, self.admin_id, {"title": "hi"})
        self.assertFalse(delivered)
        webpush.assert_not_called()

    async def test_subscribe_replaces_previous_endpoint(self):
        async with self.session_factory() as db:
            await self.notifications.subscribe(db, self.admin_id, "https://push.example/new", "k2", "a2")
            rows = (
                await db.execute(select(PushSubscription).where(PushSubscription.user_id == self.admin_id))
            ).scalars().all()
        self.assertEqual([row.endpoint for row in rows], ["https://push.example/new"])


class TestReminderPayload(unittest.TestCase):

    def test_payload(self):
        service = SimpleNamespace(
            id=7,
            customer_id=3,
            vehicle_id=4,
            customer=SimpleNamespace(name="Maria"),
            vehicle=SimpleNamespace(description="Fiat Uno (ABC1D23)"),
        )
        payload = reminder_payload(service, 30)
        self.assertEqual(payload["data"], {
            "serviceId": 7, "type": "service_reminder", "customerId": 3, "vehicleId": 4,
        })
        self.assertIn("Maria", payload["body"])
        self.assertIn("30 min", payload["body"])


if __name__ == '__main__':
    unittest.main()
