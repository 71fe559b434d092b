"""
Error taxonomy shared by adapters, the service facade and the HTTP layer.

Adapters raise subclasses of `AdapterError` and never swallow failures.
`ValidationError` is raised by the service facade before any adapter call
and therefore never comes out of an adapter.
"""

from typing import Dict


class AdapterError(Exception):
    """Base class for failures reported by a data adapter."""


class AuthError(AdapterError):
    """Invalid credentials or an expired/missing session."""


class NotFoundError(AdapterError):
    """The requested report does not exist or is not visible to the caller."""


class TransientNetworkError(AdapterError):
    """The backend could not be reached. Not retried automatically."""


class PartialWriteError(AdapterError):
    """A multi-step write stopped half way.

    Raised by the remote adapter when the photo upload succeeded but a
    following row insert failed. The uploaded object is left in place;
    `photo_url` points at it so an operator can clean it up.
    """

    def __init__(self, message: str, photo_url: str | None = None):
        super().__init__(message)
        self.photo_url = photo_url


class ValidationError(Exception):
    """Form input failed one or more declared rules.

    `errors` maps a dotted field path (e.g. `location.lat`) to one
    human-readable message.
    """

    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = dict(errors)
