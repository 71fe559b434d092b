"""
Hosted backend implementation of the data adapter contract.

Collaborators:
- `ReportRepo` for the `reports` / `messages` rows (hosted Postgres)
- `AuthClient` for password sign-in, sign-out and session lookup
- `StorageClient` for photo uploads
- `MessageFeed` for realtime inserts (only `RealtimeRemoteAdapter`)

There is no caching layer: every `get_*` call is a fresh round trip.
`get_reports` / `get_report` load each report's messages with one extra
query per report (N+1). That is acceptable for a citizen's own handful of
reports and keeps the SQL trivial.

`create_report` is three separate writes (upload, report row, system
message row) with no compensation. If a row insert fails after the
upload succeeded the call raises `PartialWriteError` and the uploaded
photo stays orphaned in the bucket.
"""

import asyncio
import uuid
from typing import List, Optional

import structlog

from adapter import ACK_TEXT, DataAdapter, ErrorCallback, MessageCallback, RealtimeCapable, Subscription
from errors import AdapterError, NotFoundError, PartialWriteError
from models import (
    AuthResponse,
    CreateReportInput,
    LoginCredentials,
    Message,
    PhotoFile,
    Report,
    SendMessageInput,
    User,
)
from realtime import MessageFeed
from remote_clients import AuthClient, StorageClient, auth_user_to_user
from repo_reports import ReportRepo, report_to_row, row_to_message, row_to_report
from settings import settings

logger = structlog.get_logger(component="remote_adapter")

PHOTO_PREFIX = "photos"


class RemoteAdapter(DataAdapter):
    """`DataAdapter` backed by the hosted service. Push updates not enabled."""

    def __init__(
        self,
        repo: Optional[ReportRepo] = None,
        auth: Optional[AuthClient] = None,
        storage: Optional[StorageClient] = None,
    ):
        self.repo = repo or ReportRepo()
        self.auth = auth or AuthClient(
            settings.supabase_url, settings.supabase_anon_key, settings.http_timeout
        )
        self.storage = storage or StorageClient(
            settings.supabase_url,
            settings.supabase_anon_key,
            settings.storage_bucket,
            settings.http_timeout,
        )
        self._token: Optional[str] = None
        self._user: Optional[User] = None

    # Auth

    async def login(self, credentials: LoginCredentials) -> AuthResponse:
        session = await asyncio.to_thread(
            self.auth.sign_in_with_password, credentials.email, credentials.password
        )
        user = auth_user_to_user(session["user"])
        self._token = session.get("access_token")
        self._user = user
        logger.info("Login succeeded", user_id=user.id)
        return AuthResponse(user=user, token=self._token)

    async def logout(self) -> None:
        token, self._token, self._user = self._token, None, None
        if token:
            await asyncio.to_thread(self.auth.sign_out, token)

    async def get_current_user(self) -> Optional[User]:
        if not self._token:
            return None
        user = await asyncio.to_thread(self.auth.get_user, self._token)
        if user is None:
            logger.info("Session expired")
            self._token, self._user = None, None
            return None
        self._user = user
        return user

    # Reports

    async def _with_messages(self, row) -> Report:
        message_rows = await self.repo.fetch_messages(str(row["id"]))
        return row_to_report(row, message_rows)

    async def get_reports(self, user_id: str) -> List[Report]:
        rows = await self.repo.fetch_reports(user_id)
        return list(await asyncio.gather(*(self._with_messages(row) for row in rows)))

    async def get_report(self, report_id: str) -> Report:
        row = await self.repo.fetch_report(report_id)
        if row is None:
            raise NotFoundError("Report not found")
        return await self._with_messages(row)

    async def upload_photo(self, file: PhotoFile) -> str:
        name = uuid.uuid4().hex
        if file.extension:
            name = f"{name}.{file.extension}"
        path = f"{PHOTO_PREFIX}/{name}"

        await asyncio.to_thread(
            self.storage.upload, path, file.data, file.content_type, self._token
        )
        return self.storage.public_url(path)

    async def create_report(self, input: CreateReportInput, user_id: str) -> Report:
        photo_url = await self.upload_photo(input.photo_file)

        try:
            report_row = await self.repo.insert_report(report_to_row(input, user_id, photo_url))
            ack_row = await self.repo.insert_message(
                {
                    "report_id": str(report_row["id"]),
                    "sender": "city",
                    "text": ACK_TEXT,
                    "system": True,
                    "created_at": report_row["created_at"],
                }
            )
        except AdapterError as exc:
            logger.error(
                "Report creation stopped after photo upload",
                user_id=user_id,
                photo_url=photo_url,
                error=str(exc),
            )
            raise PartialWriteError(
                f"Report could not be saved: {exc}", photo_url=photo_url
            ) from exc

        logger.info("Report created", report_id=str(report_row["id"]), user_id=user_id)
        return row_to_report(report_row, [ack_row])

    # Messages

    async def get_messages(self, report_id: str) -> List[Message]:
        rows = await self.repo.fetch_messages(report_id)
        return [row_to_message(row) for row in rows]

    async def send_message(self, input: SendMessageInput, user_id: str) -> Message:
        row = await self.repo.append_message(
            {"report_id": input.report_id, "sender": "user", "text": input.text}
        )
        if row is None:
            raise NotFoundError("Report not found")
        return row_to_message(row)

    async def ping(self) -> None:
        await self.repo.ping()


class RealtimeRemoteAdapter(RemoteAdapter, RealtimeCapable):
    """`RemoteAdapter` plus push delivery of new messages."""

    def __init__(self, *args, feed: Optional[MessageFeed] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.feed = feed or MessageFeed()

    async def subscribe_to_messages(
        self,
        report_id: str,
        callback: MessageCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        return await self.feed.subscribe(report_id, callback, on_error=on_error)
