"""
SQLite persistence for endpoints and console history.

Each operation opens its own connection in a worker thread and commits a
single-row transaction.
"""

import asyncio
import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar, Union

from config.environments import get_storage_config


logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA = """
CREATE TABLE IF NOT EXISTS endpoints (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    url TEXT NOT NULL,
    insecure BOOLEAN NOT NULL DEFAULT 0,
    username TEXT,
    password_encrypted TEXT,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_endpoints_name ON endpoints(name);

CREATE TRIGGER IF NOT EXISTS update_endpoints_timestamp
AFTER UPDATE ON endpoints
BEGIN
    UPDATE endpoints SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
END;

CREATE TABLE IF NOT EXISTS console_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    endpoint_id INTEGER NOT NULL,
    method TEXT NOT NULL CHECK(method IN ('GET', 'POST', 'PUT', 'DELETE', 'PATCH', 'HEAD')),
    path TEXT NOT NULL,
    body TEXT,
    response_status INTEGER,
    response_body TEXT,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (endpoint_id) REFERENCES endpoints(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_console_history_endpoint ON console_history(endpoint_id, created_at DESC);
CREATE INDEX IF NOT EXISTS idx_console_history_created ON console_history(created_at DESC);
"""


class Database:
    """Location of the SQLite file plus helpers to run work off the event loop."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else Path(get_storage_config()["db_path"])
        self._initialized = False

    def connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _initialize(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self.connect()) as conn:
            conn.executescript(SCHEMA)
            conn.commit()
        logger.debug("Database ready at %s", self.path)

    async def initialize(self) -> None:
        """Create the tables if absent. Existing tables are left untouched."""
        if not self._initialized:
            await asyncio.to_thread(self._initialize)
            self._initialized = True

    async def run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        """
        Run ``fn(conn)`` in a worker thread inside one transaction.

        Args:
            fn: Callable receiving an open connection

        Returns:
            Whatever ``fn`` returns
        """
        await self.initialize()

        def _call() -> T:
            with closing(self.connect()) as conn:
                with conn:
                    return fn(conn)

        return await asyncio.to_thread(_call)


def row_to_dict(row: Optional[sqlite3.Row]) -> Optional[dict]:
    return dict(row) if row is not None else None


def to_bool(value: Any) -> bool:
    return bool(int(value)) if value is not None else False


def to_datetime(value: Any) -> Optional[datetime]:
    """Parse an SQLite ``CURRENT_TIMESTAMP`` value (UTC, no zone suffix)."""
    if value is None:
        return None
    return datetime.fromisoformat(str(value)).replace(tzinfo=timezone.utc)
