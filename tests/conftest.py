from __future__ import annotations

import os
import tempfile
from pathlib import Path

# Settings and the engine are built at import time; point them at a throwaway
# SQLite file before any academy module is imported.
_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="academy-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR / 'academy.sqlite3'}"
os.environ["INTERNAL_API_TOKEN"] = "internal-secret"
os.environ["INTERNAL_API_ALLOWLIST"] = "127.0.0.1/32"
os.environ["NOTIFICATIONS_WEBHOOK_URL"] = ""
os.environ["APP_ENV"] = "test"
