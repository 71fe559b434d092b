"""
In-memory implementation of the data adapter contract.

Used for local development and tests: no network, but every call sleeps
for a random 200-800ms (configurable) so loading states in the UI get
exercised the same way they would against the hosted backend.

State lives in an explicit `MockStore` object rather than module
globals. The selector in `api.py` builds one per process; tests build a
fresh one each so they never see each other's reports.

The session survives restarts through `SessionStorage`, a small JSON
file acting as a durable key-value store. The `mock_user` key holds the
serialized current user; a missing key means "no session".
"""

import asyncio
import json
import random
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import structlog

from adapter import ACK_TEXT, DataAdapter
from errors import AuthError, NotFoundError
from models import (
    AuthResponse,
    CreateReportInput,
    LoginCredentials,
    Location,
    Message,
    PhotoFile,
    Report,
    ReportStatus,
    SendMessageInput,
    Sender,
    Urgency,
    User,
)
from settings import settings

logger = structlog.get_logger(component="mock_adapter")

SESSION_KEY = "mock_user"
BLOB_PREFIX = "blob:mock/"

MOCK_USERS: Dict[str, Tuple[User, str]] = {
    "usuario@ejemplo.cl": (
        User(id="1", email="usuario@ejemplo.cl", name="María González Morales"),
        "password123",
    ),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStorage:
    """Durable key-value store backed by one JSON file.

    Values must be JSON serializable. The file is rewritten on every
    change; it only ever holds a handful of keys.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or settings.mock_session_file)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Session file is corrupt, ignoring it", path=str(self.path))
            return {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def get(self, key: str) -> Any:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class MockStore:
    """Process-wide in-memory state of the mock backend."""

    def __init__(self):
        self.reports: List[Report] = []
        self.blobs: Dict[str, PhotoFile] = {}
        self.current_user: Optional[User] = None
        self._report_seq = 1
        self._message_seq = 1

    def next_report_id(self) -> str:
        value = str(self._report_seq)
        self._report_seq += 1
        return value

    def next_message_id(self) -> str:
        value = str(self._message_seq)
        self._message_seq += 1
        return value

    def find_report(self, report_id: str) -> Optional[Report]:
        for report in self.reports:
            if report.id == report_id:
                return report
        return None

    def put_blob(self, file: PhotoFile) -> str:
        url = f"{BLOB_PREFIX}{uuid.uuid4()}"
        self.blobs[url] = file
        return url

    def resolve_blob(self, url: str) -> Optional[PhotoFile]:
        """Return the in-memory file behind a `blob:mock/...` URL, if still alive."""
        return self.blobs.get(url)

    def seed_demo(self, user_id: str, now: Optional[datetime] = None) -> List[Report]:
        """Load canned reports for `user_id`, including a reply from the city."""

        now = now or utcnow()
        samples = [
            ("Bache en la calzada", "Hoyo profundo frente al número 120.",
             Location(lat=-33.4489, lng=-70.6693, address="Av. Libertador 120, Santiago"),
             ReportStatus.IN_PROGRESS, Urgency.HIGH, 3,
             "Una cuadrilla fue asignada y llegará esta semana."),
            ("Luminaria apagada", None,
             Location(lat=-33.4372, lng=-70.6506, address="Plaza Central, Santiago"),
             ReportStatus.IN_REVIEW, Urgency.MEDIUM, 2, None),
            ("Basura acumulada", "Contenedor desbordado desde el lunes.",
             Location(lat=-33.4569, lng=-70.6483),
             ReportStatus.RESOLVED, Urgency.LOW, 1,
             "El contenedor fue vaciado. Gracias por su aviso."),
        ]

        created = []
        for title, description, location, status, urgency, days_ago, reply in samples:
            created_at = now - timedelta(days=days_ago)
            report_id = self.next_report_id()
            messages = [
                Message(
                    id=self.next_message_id(),
                    report_id=report_id,
                    sender=Sender.CITY,
                    text=ACK_TEXT,
                    created_at=created_at,
                    system=True,
                )
            ]
            updated_at = created_at
            if reply:
                updated_at = created_at + timedelta(hours=5)
                messages.append(
                    Message(
                        id=self.next_message_id(),
                        report_id=report_id,
                        sender=Sender.CITY,
                        text=reply,
                        created_at=updated_at,
                    )
                )
            report = Report(
                id=report_id,
                user_id=user_id,
                title=title,
                description=description,
                photo_url=f"{BLOB_PREFIX}seed-{report_id}",
                location=location,
                status=status,
                urgency=urgency,
                created_at=created_at,
                updated_at=updated_at,
                messages=messages,
            )
            self.reports.append(report)
            created.append(report.model_copy(deep=True))

        logger.info("Seeded demo reports", user_id=user_id, count=len(created))
        return created


class MockAdapter(DataAdapter):
    """`DataAdapter` over a `MockStore`. Does not support realtime.

    Example usage:
        adapter = MockAdapter(MockStore(), SessionStorage("/tmp/s.json"), latency_ms=(0, 0))
        await adapter.login(LoginCredentials(email="usuario@ejemplo.cl", password="password123"))
    """

    def __init__(
        self,
        store: Optional[MockStore] = None,
        storage: Optional[SessionStorage] = None,
        latency_ms: Optional[Tuple[int, int]] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store or MockStore()
        self.storage = storage or SessionStorage()
        self.latency_ms = latency_ms or (settings.mock_latency_min_ms, settings.mock_latency_max_ms)
        self.clock = clock

    async def _delay(self) -> None:
        low, high = self.latency_ms
        if high <= 0:
            return
        await asyncio.sleep(random.uniform(low, high) / 1000)

    def _require_report(self, report_id: str) -> Report:
        report = self.store.find_report(report_id)
        if report is None:
            raise NotFoundError("Report not found")
        return report

    # Auth

    async def login(self, credentials: LoginCredentials) -> AuthResponse:
        await self._delay()

        record = MOCK_USERS.get(credentials.email)
        if record is None or record[1] != credentials.password:
            logger.info("Login rejected", email=credentials.email)
            raise AuthError("Invalid email or password")

        user = record[0].model_copy()
        self.store.current_user = user
        self.storage.set(SESSION_KEY, user.model_dump(mode="json"))
        logger.info("Login succeeded", user_id=user.id)
        return AuthResponse(user=user.model_copy())

    async def logout(self) -> None:
        await self._delay()
        self.store.current_user = None
        self.storage.remove(SESSION_KEY)

    async def get_current_user(self) -> Optional[User]:
        if self.store.current_user is not None:
            return self.store.current_user.model_copy()

        stored = self.storage.get(SESSION_KEY)
        if stored:
            self.store.current_user = User.model_validate(stored)
            return self.store.current_user.model_copy()
        return None

    # Reports

    async def get_reports(self, user_id: str) -> List[Report]:
        await self._delay()
        owned = [r for r in self.store.reports if r.user_id == user_id]
        owned.sort(key=lambda r: r.created_at, reverse=True)
        return [r.model_copy(deep=True) for r in owned]

    async def get_report(self, report_id: str) -> Report:
        await self._delay()
        return self._require_report(report_id).model_copy(deep=True)

    async def create_report(self, input: CreateReportInput, user_id: str) -> Report:
        await self._delay()

        photo_url = await self.upload_photo(input.photo_file)
        now = self.clock()
        report_id = self.store.next_report_id()

        ack = Message(
            id=self.store.next_message_id(),
            report_id=report_id,
            sender=Sender.CITY,
            text=ACK_TEXT,
            created_at=now,
            system=True,
        )
        report = Report(
            id=report_id,
            user_id=user_id,
            title=input.title,
            description=input.description,
            photo_url=photo_url,
            location=input.location.model_copy(),
            status=ReportStatus.SUBMITTED,
            urgency=input.urgency,
            created_at=now,
            updated_at=now,
            messages=[ack],
        )
        self.store.reports.append(report)
        logger.info("Report created", report_id=report_id, user_id=user_id)
        return report.model_copy(deep=True)

    async def upload_photo(self, file: PhotoFile) -> str:
        return self.store.put_blob(file)

    # Messages

    async def get_messages(self, report_id: str) -> List[Message]:
        await self._delay()
        return list(self._require_report(report_id).messages)

    async def send_message(self, input: SendMessageInput, user_id: str) -> Message:
        await self._delay()

        report = self._require_report(input.report_id)
        message = Message(
            id=self.store.next_message_id(),
            report_id=input.report_id,
            sender=Sender.USER,
            text=input.text,
            created_at=self.clock(),
        )
        report.messages.append(message)
        report.updated_at = message.created_at
        logger.debug("Message appended", report_id=report.id, message_id=message.id)
        return message
