"""
Client state stores.

Small observable holders read by the presentation layer:

- `AuthStore` tracks the signed-in user and a loading flag while the
  session is being restored.
- `ThemeStore` remembers the light/dark preference in the same durable
  `SessionStorage` the mock adapter keeps its session in.

Listeners registered with `subscribe()` are called with the store after
every state change.
"""

from typing import Callable, List, Optional

import structlog

from errors import AdapterError
from mock_adapter import SessionStorage
from models import User
from service_reports import ReportService

logger = structlog.get_logger(component="stores")

THEME_KEY = "theme"
THEMES = ("light", "dark")


class _Observable:
    def __init__(self):
        self._listeners: List[Callable] = []

    def subscribe(self, listener: Callable) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)


class AuthStore(_Observable):
    def __init__(self, service: ReportService):
        super().__init__()
        self.service = service
        self.user: Optional[User] = None
        self.is_loading = True

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def _set(self, user: Optional[User], is_loading: Optional[bool] = None) -> None:
        self.user = user
        if is_loading is not None:
            self.is_loading = is_loading
        self._notify()

    async def initialize(self) -> None:
        """Restore the session. Any failure leaves the store signed out."""

        try:
            user = await self.service.current_user()
        except AdapterError as exc:
            logger.warning("Session restore failed", error=str(exc))
            user = None
        self._set(user, is_loading=False)

    async def login(self, email: str, password: str) -> None:
        response = await self.service.login({"email": email, "password": password})
        self._set(response.user)

    async def logout(self) -> None:
        await self.service.logout()
        self._set(None)


class ThemeStore(_Observable):
    def __init__(self, storage: SessionStorage):
        super().__init__()
        self.storage = storage
        stored = storage.get(THEME_KEY)
        self.theme = stored if stored in THEMES else "light"

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme!r}")
        self.theme = theme
        self.storage.set(THEME_KEY, theme)
        self._notify()

    def toggle(self) -> None:
        self.set_theme("light" if self.theme == "dark" else "dark")
