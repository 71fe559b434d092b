"""
Chat thread state: confirmed messages merged with optimistic ones.

When the citizen sends a message it is shown immediately as a pending
entry with a client-generated correlation id (`temp-<uuid>`). Once the
adapter confirms, the pending entry is replaced by the stored message;
if the send fails it is dropped. Confirmed messages are keyed by id so a
realtime push and a refetch of the same message collapse into one entry.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List

from models import Message, Sender
from service_reports import ReportService


class ChatThread:
    def __init__(self, service: ReportService, report_id: str, user_id: str):
        self.service = service
        self.report_id = report_id
        self.user_id = user_id
        self._confirmed: Dict[str, Message] = {}
        self._pending: Dict[str, Message] = {}

    @property
    def pending(self) -> List[Message]:
        return list(self._pending.values())

    @property
    def messages(self) -> List[Message]:
        """Confirmed messages (oldest first) followed by pending ones."""

        confirmed = sorted(self._confirmed.values(), key=lambda m: (m.created_at, m.id))
        return confirmed + self.pending

    def merge(self, messages: Iterable[Message]) -> None:
        for message in messages:
            if message.report_id == self.report_id:
                self._confirmed[message.id] = message

    def receive(self, message: Message) -> None:
        """Subscription callback."""
        self.merge([message])

    async def refresh(self) -> None:
        self.merge(await self.service.get_messages(self.report_id))

    async def send(self, text: str) -> Message:
        correlation_id = f"temp-{uuid.uuid4()}"
        self._pending[correlation_id] = Message(
            id=correlation_id,
            report_id=self.report_id,
            sender=Sender.USER,
            text=text,
            created_at=datetime.now(timezone.utc),
        )
        try:
            stored = await self.service.send_message(
                self.report_id, {"text": text}, self.user_id
            )
        finally:
            del self._pending[correlation_id]

        self.merge([stored])
        return stored
