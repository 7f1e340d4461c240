"""
Point the application at a throwaway SQLite database before anything
imports ``carhub.config``.
"""
import os
import tempfile

_db_dir = tempfile.mkdtemp(prefix="carhub-tests-")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'carhub.db')}"
os.environ["REMINDERS_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("VAPID_PUBLIC_KEY", None)
os.environ.pop("VAPID_PRIVATE_KEY", None)
