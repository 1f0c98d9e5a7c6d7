"""
Endpoint records.
"""

import logging
import sqlite3
from typing import List, Optional

from explorer_types.domain import (
    EndpointIdentity,
    SecretRecord,
    UnreadableSecret,
    encode_secret_record,
    load_secret_record,
)

from .database import Database, to_bool


logger = logging.getLogger(__name__)


def _row_to_endpoint(row: sqlite3.Row) -> EndpointIdentity:
    secret = load_secret_record(row["password_encrypted"])
    if isinstance(secret, UnreadableSecret):
        logger.warning("Endpoint %s has an unreadable stored secret: %s", row["id"], secret.reason)
    return EndpointIdentity(
        id=row["id"],
        name=row["name"],
        url=row["url"],
        insecure=to_bool(row["insecure"]),
        username=row["username"],
        secret=secret,
    )


class EndpointRepository:
    """CRUD over the ``endpoints`` table."""

    def __init__(self, database: Database):
        self.database = database

    async def create(
        self,
        name: str,
        url: str,
        insecure: bool = False,
        username: Optional[str] = None,
    ) -> EndpointIdentity:
        def _insert(conn: sqlite3.Connection) -> int:
            cursor = conn.execute(
                "INSERT INTO endpoints (name, url, insecure, username) VALUES (?, ?, ?, ?)",
                (name, url, int(insecure), username),
            )
            return cursor.lastrowid

        endpoint_id = await self.database.run(_insert)
        return EndpointIdentity(id=endpoint_id, name=name, url=url, insecure=insecure, username=username)

    async def get(self, endpoint_id: int) -> Optional[EndpointIdentity]:
        """
        Load one endpoint.

        Returns:
            EndpointIdentity, or None if no row has this id
        """
        def _select(conn: sqlite3.Connection) -> Optional[sqlite3.Row]:
            return conn.execute("SELECT * FROM endpoints WHERE id = ?", (endpoint_id,)).fetchone()

        row = await self.database.run(_select)
        return _row_to_endpoint(row) if row is not None else None

    async def list(self) -> List[EndpointIdentity]:
        def _select(conn: sqlite3.Connection) -> List[sqlite3.Row]:
            return conn.execute("SELECT * FROM endpoints ORDER BY name").fetchall()

        return [_row_to_endpoint(row) for row in await self.database.run(_select)]

    async def update(
        self,
        endpoint_id: int,
        name: str,
        url: str,
        insecure: bool,
        username: Optional[str],
    ) -> bool:
        def _update(conn: sqlite3.Connection) -> int:
            cursor = conn.execute(
                "UPDATE endpoints SET name = ?, url = ?, insecure = ?, username = ? WHERE id = ?",
                (name, url, int(insecure), username, endpoint_id),
            )
            return cursor.rowcount

        return await self.database.run(_update) > 0

    async def set_secret(self, endpoint_id: int, record: Optional[SecretRecord]) -> bool:
        """Replace the stored secret record; None clears it."""
        value = encode_secret_record(record)

        def _update(conn: sqlite3.Connection) -> int:
            cursor = conn.execute(
                "UPDATE endpoints SET password_encrypted = ? WHERE id = ?",
                (value, endpoint_id),
            )
            return cursor.rowcount

        return await self.database.run(_update) > 0

    async def delete(self, endpoint_id: int) -> bool:
        def _delete(conn: sqlite3.Connection) -> int:
            return conn.execute("DELETE FROM endpoints WHERE id = ?", (endpoint_id,)).rowcount

        return await self.database.run(_delete) > 0
