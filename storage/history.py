"""
Console history records and their retention policy.
"""

import logging
import sqlite3
import time
from typing import Callable, List, Optional

from config.environments import get_history_config
from explorer_types.domain import ConsoleHistoryEntry

from .database import Database, to_datetime


logger = logging.getLogger(__name__)


def _row_to_entry(row: sqlite3.Row) -> ConsoleHistoryEntry:
    return ConsoleHistoryEntry(
        id=row["id"],
        endpoint_id=row["endpoint_id"],
        method=row["method"],
        path=row["path"],
        body=row["body"],
        response_status=row["response_status"],
        response_body=row["response_body"],
        created_at=to_datetime(row["created_at"]),
    )


class HistoryRepository:
    """Append-only access to ``console_history``."""

    def __init__(self, database: Database):
        self.database = database

    async def append(self, entry: ConsoleHistoryEntry) -> int:
        def _insert(conn: sqlite3.Connection) -> int:
            cursor = conn.execute(
                "INSERT INTO console_history "
                "(endpoint_id, method, path, body, response_status, response_body) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    entry.endpoint_id,
                    entry.method,
                    entry.path,
                    entry.body,
                    entry.response_status,
                    entry.response_body,
                ),
            )
            return cursor.lastrowid

        return await self.database.run(_insert)

    async def recent(self, limit: int = 50, endpoint_id: Optional[int] = None) -> List[ConsoleHistoryEntry]:
        """
        Newest entries first.

        Args:
            limit: Maximum number of entries
            endpoint_id: Restrict to one endpoint

        Returns:
            List of ConsoleHistoryEntry
        """
        def _select(conn: sqlite3.Connection) -> List[sqlite3.Row]:
            if endpoint_id is not None:
                return conn.execute(
                    "SELECT * FROM console_history WHERE endpoint_id = ? "
                    "ORDER BY created_at DESC, id DESC LIMIT ?",
                    (endpoint_id, limit),
                ).fetchall()
            return conn.execute(
                "SELECT * FROM console_history ORDER BY created_at DESC, id DESC LIMIT ?",
                (limit,),
            ).fetchall()

        return [_row_to_entry(row) for row in await self.database.run(_select)]

    async def count(self) -> int:
        def _count(conn: sqlite3.Connection) -> int:
            return conn.execute("SELECT COUNT(*) FROM console_history").fetchone()[0]

        return await self.database.run(_count)

    async def prune(self, keep_last: int) -> int:
        """
        Delete everything but the newest ``keep_last`` rows.

        Returns:
            Number of rows removed
        """
        def _delete(conn: sqlite3.Connection) -> int:
            return conn.execute(
                "DELETE FROM console_history WHERE id NOT IN ("
                "SELECT id FROM console_history ORDER BY created_at DESC, id DESC LIMIT ?)",
                (keep_last,),
            ).rowcount

        removed = await self.database.run(_delete)
        if removed:
            logger.info("Pruned %d console history row(s), kept newest %d", removed, keep_last)
        return removed


class HistoryRetention:
    """
    Prunes history at most once per interval.

    ``maybe_prune`` is cheap to call after every write; it only touches the
    database when the interval has elapsed.
    """

    def __init__(
        self,
        repository: HistoryRepository,
        keep_last: Optional[int] = None,
        interval_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        config = get_history_config()
        self.repository = repository
        self.keep_last = keep_last if keep_last is not None else config["keep_last"]
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else config["prune_interval_seconds"]
        )
        self._clock = clock
        self._last_run: Optional[float] = None

    def due(self) -> bool:
        if self._last_run is None:
            return True
        return self._clock() - self._last_run >= self.interval_seconds

    async def maybe_prune(self) -> Optional[int]:
        """
        Prune if the interval has elapsed.

        Returns:
            Rows removed, or None when pruning was skipped
        """
        if not self.due():
            return None
        self._last_run = self._clock()
        return await self.repository.prune(self.keep_last)
