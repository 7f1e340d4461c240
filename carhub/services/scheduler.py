"""
Recurring reminder sweep.
"""
import asyncio
from typing import Optional

from loguru import logger

from carhub.services.notifications import NotificationService


class ReminderScheduler:
    """Runs ``NotificationService.send_due_reminders`` on a fixed interval."""

    def __init__(self, notifications: NotificationService, interval_seconds: float = 60):
        self.notifications = notifications
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        """One sweep; errors are logged so the next tick still happens."""
        try:
            return await self.notifications.send_due_reminders()
        except Exception:
            logger.exception("Reminder sweep failed")
            return 0

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="reminder-scheduler")
        logger.info("Reminder scheduler started - checking every {}s", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Reminder scheduler stopped")
