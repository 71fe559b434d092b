"""
Service / facade layer.

This module applies the form rules before any adapter interaction. It is
intentionally free of storage details and calls whichever `DataAdapter`
the selector picked. All entry points (HTTP routes, client stores) should
go through this service so validation has a single chokepoint.

Key responsibilities:
- validate raw form input (`validation.py`) and raise `ValidationError`
  with one message per field; invalid input never reaches the adapter
- turn validated forms into typed adapter inputs
- scope single-report reads to the signed-in citizen
- expose the optional realtime capability without callers type-checking
  the adapter
"""

from typing import Any, List, Mapping, Optional

import structlog

from adapter import DataAdapter, ErrorCallback, MessageCallback, Subscription, supports_realtime
from errors import AuthError, NotFoundError, ValidationError
from models import (
    AuthResponse,
    CreateReportInput,
    Location,
    LoginCredentials,
    Message,
    Report,
    SendMessageInput,
    User,
)
from validation import validate_login, validate_message, validate_report

logger = structlog.get_logger(component="service")


class ReportService:
    """Validation + delegation in front of a `DataAdapter`.

    Example usage:
        svc = ReportService(get_adapter())
        report = await svc.create_report(form, user_id="1")
    """

    def __init__(self, adapter: DataAdapter):
        self.adapter = adapter

    # Auth

    async def login(self, form: Mapping[str, Any]) -> AuthResponse:
        result = validate_login(form)
        if not result.success:
            raise ValidationError(result.errors)
        return await self.adapter.login(
            LoginCredentials(email=result.data.email, password=result.data.password)
        )

    async def logout(self) -> None:
        await self.adapter.logout()

    async def current_user(self) -> Optional[User]:
        return await self.adapter.get_current_user()

    async def require_user(self) -> User:
        user = await self.adapter.get_current_user()
        if user is None:
            raise AuthError("Not signed in")
        return user

    # Reports

    async def list_reports(self, user_id: str) -> List[Report]:
        return await self.adapter.get_reports(user_id)

    async def get_report(self, report_id: str, user_id: Optional[str] = None) -> Report:
        """Fetch one report. With `user_id`, other citizens' reports look missing."""

        report = await self.adapter.get_report(report_id)
        if user_id is not None and report.user_id != user_id:
            raise NotFoundError("Report not found")
        return report

    async def create_report(self, form: Mapping[str, Any], user_id: str) -> Report:
        result = validate_report(form)
        if not result.success:
            logger.info("Report form rejected", user_id=user_id, fields=sorted(result.errors))
            raise ValidationError(result.errors)

        data = result.data
        input = CreateReportInput(
            title=data.title,
            description=data.description,
            photo_file=data.photo_file,
            location=Location(**data.location.model_dump()),
            urgency=data.urgency,
        )
        return await self.adapter.create_report(input, user_id)

    # Messages

    async def get_messages(self, report_id: str) -> List[Message]:
        return await self.adapter.get_messages(report_id)

    async def send_message(self, report_id: str, form: Mapping[str, Any], user_id: str) -> Message:
        result = validate_message(form)
        if not result.success:
            raise ValidationError(result.errors)
        return await self.adapter.send_message(
            SendMessageInput(report_id=report_id, text=result.data.text), user_id
        )

    async def subscribe(
        self,
        report_id: str,
        callback: MessageCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Optional[Subscription]:
        """Push subscription when the adapter supports it, else None (caller polls)."""

        if not supports_realtime(self.adapter):
            return None
        return await self.adapter.subscribe_to_messages(report_id, callback, on_error=on_error)

    async def health_check(self) -> None:
        await self.adapter.ping()
