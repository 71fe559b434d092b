"""
Data adapter contract.

`DataAdapter` is the single seam between the presentation layer and
persistence. Every operation is declared in domain terms (reports,
messages, users) so the mock store and the hosted backend can satisfy it
with whatever internal representation they like. All operations are
coroutines; callers must treat each one as a potentially slow network
call.

Realtime delivery is an optional capability: adapters that can push new
messages also inherit `RealtimeCapable`. Use `supports_realtime()` rather
than `hasattr` checks.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

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

MessageCallback = Callable[[Message], None]
ErrorCallback = Callable[[Exception], None]

# text of the system message every new report starts with
ACK_TEXT = "We have received your request. Our team will review it shortly."


class DataAdapter(ABC):
    """Every operation the application may perform against "the backend"."""

    # Auth
    @abstractmethod
    async def login(self, credentials: LoginCredentials) -> AuthResponse:
        """Sign in. Raises `AuthError` on invalid credentials."""

    @abstractmethod
    async def logout(self) -> None:
        """Drop the session. Idempotent."""

    @abstractmethod
    async def get_current_user(self) -> Optional[User]:
        """Return the active session's user, or None. Never raises for "no session"."""

    # Reports
    @abstractmethod
    async def get_reports(self, user_id: str) -> List[Report]:
        """Reports owned by `user_id`, newest first."""

    @abstractmethod
    async def get_report(self, report_id: str) -> Report:
        """Raises `NotFoundError` when no such report is visible."""

    @abstractmethod
    async def create_report(self, input: CreateReportInput, user_id: str) -> Report:
        """Create a report plus its system acknowledgment message.

        `input` must already have passed `validation.validate_report`.
        """

    @abstractmethod
    async def upload_photo(self, file: PhotoFile) -> str:
        """Store the image and return a URL that resolves to it."""

    # Messages
    @abstractmethod
    async def get_messages(self, report_id: str) -> List[Message]:
        """Messages of a report, oldest first."""

    @abstractmethod
    async def send_message(self, input: SendMessageInput, user_id: str) -> Message:
        """Append a user message. Raises `NotFoundError` for an unknown report."""

    async def ping(self) -> None:
        """Backend reachability check used by `/health`. Raises on error."""


class Subscription:
    """Unsubscribe handle returned by `subscribe_to_messages`.

    Calling the handle stops delivery and releases the underlying channel.
    Only the first call does anything; later calls are no-ops, and
    `deliver()` drops messages once the handle has been called.

    When the channel dies on its own, `fail()` records the error on
    `error`, closes the handle and reports it to `on_error` if one was given.
    """

    def __init__(
        self,
        callback: MessageCallback,
        release: Optional[Callable[[], None]] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        self._callback = callback
        self._release = release
        self._on_error = on_error
        self._closed = False
        self.error: Optional[Exception] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, message: Message) -> bool:
        if self._closed:
            return False
        self._callback(message)
        return True

    def fail(self, error: Exception) -> None:
        if self._closed:
            return
        self.error = error
        self._closed = True
        self._release = None
        if self._on_error is not None:
            self._on_error(error)

    def __call__(self) -> None:
        if self._closed:
            return
        self._closed = True
        release, self._release = self._release, None
        if release is not None:
            release()

class RealtimeCapable(ABC):
    """Mixin for adapters that can push newly inserted messages."""

    @abstractmethod
    async def subscribe_to_messages(
        self,
        report_id: str,
        callback: MessageCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        """Invoke `callback` once per message appended to `report_id` from now on.

        Returns only once the channel is live, so no message appended after
        the await completes is missed. Raises when the channel cannot be
        opened; later channel failures go to `on_error`.
        """


def supports_realtime(adapter: DataAdapter) -> bool:
    return isinstance(adapter, RealtimeCapable)
