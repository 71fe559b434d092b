"""
Pydantic models used across the backend.

These are plain data records with no behavior. Attribute names are
snake_case; the JSON shape uses camelCase aliases (`userId`, `photoUrl`,
`createdAt`, ...) because that is what the UI consumes. Both names are
accepted on input.

Guidelines:
- Keep models minimal and stable. Storage-specific shapes (snake_case
  rows, JSONB columns) are mapped in `repo_reports.py`, not here.
- Form-level rules (lengths, photo size/type) live in `validation.py`.
  The models here only carry the enum and range constraints that hold
  for every stored record.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReportStatus(str, Enum):
    SUBMITTED = "submitted"
    IN_REVIEW = "in_review"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Sender(str, Enum):
    USER = "user"
    CITY = "city"


class DomainModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class User(DomainModel):
    id: str
    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class Location(DomainModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None


class Message(DomainModel):
    """One entry of a report's thread. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str
    report_id: str
    sender: Sender
    text: str
    created_at: datetime
    system: bool = False


class Report(DomainModel):
    """Root aggregate. `messages` is ascending by `created_at`."""

    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    photo_url: str
    location: Location
    status: ReportStatus = ReportStatus.SUBMITTED
    urgency: Optional[Urgency] = None
    created_at: datetime
    updated_at: datetime
    messages: List[Message] = Field(default_factory=list)


class LoginCredentials(DomainModel):
    email: str
    password: str


class AuthResponse(DomainModel):
    user: User
    token: Optional[str] = None


class PhotoFile(DomainModel):
    """An uploaded image payload as received from the client."""

    filename: str
    content_type: str
    data: bytes = b""

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        if "." not in self.filename:
            return ""
        return self.filename.rsplit(".", 1)[-1].lower()


class CreateReportInput(DomainModel):
    title: str
    description: Optional[str] = None
    photo_file: PhotoFile
    location: Location
    urgency: Urgency


class SendMessageInput(DomainModel):
    report_id: str
    text: str
