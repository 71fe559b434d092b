"""
Database connection helper for the hosted backend's Postgres.

This module centralizes how connections are created. Right now we use
`psycopg.AsyncConnection.connect(settings.db_url)` which opens a new
connection per call; the remote adapter never caches rows, so every
read is a fresh round trip anyway.

Why this exists:
- Single place to swap connection strategy (pooling, different driver).
- Keeps repository code focused on SQL and row mapping.
- Turns "database unreachable" into `TransientNetworkError` so callers
  see one error type for connectivity problems.

Usage:
    from db import get_conn
    async with await get_conn() as conn:
        async with conn.cursor() as cur:
            await cur.execute("SELECT 1;")
"""

import psycopg
from psycopg.rows import dict_row

from errors import TransientNetworkError
from settings import settings


async def get_conn(autocommit: bool = False) -> psycopg.AsyncConnection:
    """Return a new async psycopg connection using `settings.db_url`.

    Rows come back as dicts keyed by column name. We add a short
    `connect_timeout` so requests don't hang indefinitely if the hosted
    database is unreachable.
    """

    try:
        return await psycopg.AsyncConnection.connect(
            settings.db_url,
            connect_timeout=5,
            autocommit=autocommit,
            row_factory=dict_row,
        )
    except psycopg.OperationalError as exc:
        raise TransientNetworkError(f"Database unreachable: {exc}") from exc
