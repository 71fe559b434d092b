"""
Repository: SQL operations for the hosted `reports` and `messages` tables.

This file contains only DB interaction code plus the row <-> model
mapping. The hosted schema uses snake_case columns and stores the
location as JSONB; the domain model is what the rest of the code sees.
The mapping functions must stay exhaustive: a column left out here is
silently dropped data.

Important notes:
- SQL strings are simple and use positional parameters for psycopg.
- Writes commit before the method returns; callers expect that the DB
  write is durable afterwards.
- `append_message` touches the parent report's `updated_at` in the same
  transaction as the insert.
- psycopg errors are translated into the adapter error taxonomy.
"""

import json
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import psycopg
from psycopg.types.json import Jsonb

from db import get_conn
from errors import AdapterError, TransientNetworkError
from models import CreateReportInput, Location, Message, Report

REPORT_COLUMNS = (
    "id, user_id, title, description, photo_url, location, status, urgency, created_at, updated_at"
)
MESSAGE_COLUMNS = "id, report_id, sender, text, created_at, system"


def row_to_message(row: Dict[str, Any]) -> Message:
    return Message(
        id=str(row["id"]),
        report_id=str(row["report_id"]),
        sender=row["sender"],
        text=row["text"],
        created_at=row["created_at"],
        system=bool(row.get("system") or False),
    )


def row_to_report(row: Dict[str, Any], message_rows: List[Dict[str, Any]]) -> Report:
    location = row["location"]
    if isinstance(location, str):
        location = json.loads(location)
    return Report(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        title=row["title"],
        description=row.get("description"),
        photo_url=row["photo_url"],
        location=Location.model_validate(location),
        status=row["status"],
        urgency=row.get("urgency"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        messages=[row_to_message(m) for m in message_rows],
    )


def report_to_row(input: CreateReportInput, user_id: str, photo_url: str) -> Dict[str, Any]:
    return {
        "user_id": user_id,
        "title": input.title,
        "description": input.description,
        "photo_url": photo_url,
        "location": input.location.model_dump(exclude_none=True),
        "status": "submitted",
        "urgency": input.urgency.value if input.urgency is not None else None,
    }


@asynccontextmanager
async def translate_errors():
    try:
        yield
    except psycopg.OperationalError as exc:
        raise TransientNetworkError(f"Database unreachable: {exc}") from exc
    except psycopg.Error as exc:
        raise AdapterError(f"Database error: {exc}") from exc


class ReportRepo:
    """DB access only. No business logic here.

    Responsibilities:
    - Execute queries and return plain dict rows
    - Keep transaction/commit boundaries local and explicit
    """

    async def fetch_reports(self, user_id: str) -> List[Dict[str, Any]]:
        """Reports of `user_id`, newest first."""

        async with translate_errors():
            async with await get_conn() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        f"SELECT {REPORT_COLUMNS} FROM reports "
                        "WHERE user_id=%s ORDER BY created_at DESC",
                        (user_id,),
                    )
                    return await cur.fetchall()

    async def fetch_report(self, report_id: str) -> Optional[Dict[str, Any]]:
        async with translate_errors():
            async with await get_conn() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        f"SELECT {REPORT_COLUMNS} FROM reports WHERE id=%s",
                        (report_id,),
                    )
                    return await cur.fetchone()

    async def fetch_messages(self, report_id: str) -> List[Dict[str, Any]]:
        """Messages of one report, oldest first."""

        async with translate_errors():
            async with await get_conn() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        f"SELECT {MESSAGE_COLUMNS} FROM messages "
                        "WHERE report_id=%s ORDER BY created_at ASC, id ASC",
                        (report_id,),
                    )
                    return await cur.fetchall()

    async def insert_report(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a report row and return it as stored (id + timestamps filled in)."""

        async with translate_errors():
            async with await get_conn() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        "INSERT INTO reports (user_id, title, description, photo_url, location, status, urgency) "
                        f"VALUES (%s, %s, %s, %s, %s, %s, %s) RETURNING {REPORT_COLUMNS}",
                        (
                            row["user_id"],
                            row["title"],
                            row.get("description"),
                            row["photo_url"],
                            Jsonb(row["location"]),
                            row["status"],
                            row.get("urgency"),
                        ),
                    )
                    stored = await cur.fetchone()
                await conn.commit()
                return stored

    async def insert_message(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a message row as is. `created_at` may be given explicitly."""

        async with translate_errors():
            async with await get_conn() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        "INSERT INTO messages (report_id, sender, text, system, created_at) "
                        f"VALUES (%s, %s, %s, %s, COALESCE(%s, now())) RETURNING {MESSAGE_COLUMNS}",
                        (
                            row["report_id"],
                            row["sender"],
                            row["text"],
                            row.get("system", False),
                            row.get("created_at"),
                        ),
                    )
                    stored = await cur.fetchone()
                await conn.commit()
                return stored

    async def append_message(self, row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Insert a message and refresh the parent's `updated_at`.

        Returns None (and writes nothing) when the report does not exist.
        """

        async with translate_errors():
            async with await get_conn() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        "UPDATE reports SET updated_at=now() WHERE id=%s RETURNING updated_at",
                        (row["report_id"],),
                    )
                    touched = await cur.fetchone()
                    if touched is None:
                        await conn.rollback()
                        return None
                    await cur.execute(
                        "INSERT INTO messages (report_id, sender, text, system, created_at) "
                        f"VALUES (%s, %s, %s, %s, %s) RETURNING {MESSAGE_COLUMNS}",
                        (
                            row["report_id"],
                            row["sender"],
                            row["text"],
                            row.get("system", False),
                            touched["updated_at"],
                        ),
                    )
                    stored = await cur.fetchone()
                await conn.commit()
                return stored

    async def ping(self) -> None:
        """Lightweight DB health check. Raises on error."""

        async with translate_errors():
            async with await get_conn() as conn:
                async with conn.cursor() as cur:
                    await cur.execute("SELECT 1;")
