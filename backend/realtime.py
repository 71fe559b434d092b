"""
Realtime change feed for new messages.

The hosted database publishes every inserted message with
`pg_notify('report_messages_<report_id>', row_to_json(NEW))` (see
`scripts/create_tables.py`), so filtering by report happens server side.
`MessageFeed.subscribe()` opens one dedicated autocommit connection per
subscription and returns once it LISTENs on that report's channel. A
background task then hands each mapped `Message` to the subscriber until
the handle is called or the connection drops.
"""

import asyncio
import json
from typing import Awaitable, Callable, Optional, Set

import psycopg
import structlog
from psycopg import sql

from adapter import ErrorCallback, MessageCallback, Subscription
from db import get_conn
from errors import TransientNetworkError
from repo_reports import row_to_message

logger = structlog.get_logger(component="realtime")


def channel_name(report_id: str) -> str:
    return f"report_messages_{report_id}"


class MessageFeed:
    def __init__(self, connect: Callable[..., Awaitable[psycopg.AsyncConnection]] = get_conn):
        self._connect = connect
        self._tasks: Set[asyncio.Task] = set()

    async def subscribe(
        self,
        report_id: str,
        callback: MessageCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        """LISTEN on `report_id`'s channel and return once it is live.

        Raises `TransientNetworkError` when the channel cannot be opened.
        """

        channel = channel_name(report_id)
        conn = await self._connect(autocommit=True)
        try:
            await conn.execute(sql.SQL("LISTEN {}").format(sql.Identifier(channel)))
        except psycopg.Error as exc:
            await conn.close()
            raise TransientNetworkError("Realtime channel unavailable") from exc

        holder = {}
        subscription = Subscription(callback, release=lambda: holder["task"].cancel(), on_error=on_error)
        task = asyncio.create_task(self._listen(conn, channel, subscription))
        holder["task"] = task
        self._tasks.add(task)

        def finished(done: asyncio.Task) -> None:
            self._tasks.discard(done)
            # cancelled before its first step, so `_listen` never closed it
            if done.cancelled() and not conn.closed:
                closer = asyncio.ensure_future(conn.close())
                self._tasks.add(closer)
                closer.add_done_callback(self._tasks.discard)

        task.add_done_callback(finished)
        logger.debug("Subscribed", channel=channel)
        return subscription

    async def _listen(self, conn: psycopg.AsyncConnection, channel: str, subscription: Subscription) -> None:
        try:
            async for notify in conn.notifies():
                try:
                    message = row_to_message(json.loads(notify.payload))
                except (ValueError, KeyError) as exc:
                    logger.warning("Dropping malformed notification", channel=channel, error=str(exc))
                    continue
                try:
                    subscription.deliver(message)
                except Exception:
                    logger.exception("Message callback failed", channel=channel, message_id=message.id)
        except psycopg.Error as exc:
            logger.error("Realtime channel failed", channel=channel, error=str(exc))
            error = TransientNetworkError("Realtime channel lost")
            error.__cause__ = exc
            subscription.fail(error)
        finally:
            await conn.close()
            logger.debug("Channel closed", channel=channel)
