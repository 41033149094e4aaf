"""
Core domain models for device identity, sessions and submitted records.

Records map to backend documents through `to_document()`; the field names
on the wire are the ones the backend collections have always used.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from device.interfaces.media_picker import MediaKind
from device.interfaces.record_store import SERVER_TIMESTAMP

ANONYMOUS = "Anonymous"
UNKNOWN_DEVICE = "unknown"
UNKNOWN_INSTALLATION = "Unknown Installation Date"


@dataclass(frozen=True)
class DeviceIdentity:
    """Durable per-installation identifier and installation time (ISO-8601)."""

    id: UUID
    installed_at: str


@dataclass(frozen=True)
class PrimaryAccountRecord:
    """Credentials of the first login ever performed on the installation."""

    username: str
    secret: str

    def matches(self, username: str, secret: str) -> bool:
        return self.username == username and self.secret == secret


@dataclass(frozen=True)
class Session:
    """The logged-in user for the current app run."""

    username: str
    secret: str
    is_primary: bool

    def __repr__(self) -> str:
        return f"Session(username={self.username!r}, is_primary={self.is_primary})"


@dataclass
class LocationRecord:
    """A submitted geolocation fix."""

    latitude: float | None
    longitude: float | None
    device_id: str
    installed_at: str
    captured_at: datetime | None = None
    username: str | None = None
    secret: str | None = None
    doc_id: str | None = None

    @classmethod
    def for_submission(
        cls,
        latitude: float,
        longitude: float,
        identity: DeviceIdentity,
        session: Session | None,
    ) -> LocationRecord:
        return cls(
            latitude=latitude,
            longitude=longitude,
            device_id=str(identity.id),
            installed_at=identity.installed_at,
            username=session.username if session else None,
            secret=session.secret if session else None,
        )

    def to_document(self) -> dict[str, Any]:
        """Backend document with a server-assigned timestamp."""
        data: dict[str, Any] = {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timestamp": SERVER_TIMESTAMP,
            "UUID": self.device_id,
            "installation_date": self.installed_at,
        }
        if self.username is not None:
            data.update({"username": self.username, "password": self.secret})
        return data

    @property
    def display_username(self) -> str:
        return self.username or ANONYMOUS


@dataclass
class MediaRecord:
    """A submitted photo or video, referenced by its uploaded URL."""

    url: str | None
    media_kind: MediaKind
    captured_at: datetime | None = None
    username: str | None = None
    secret: str | None = None
    doc_id: str | None = None

    @classmethod
    def for_submission(
        cls, url: str, media_kind: MediaKind, session: Session | None
    ) -> MediaRecord:
        return cls(
            url=url,
            media_kind=MediaKind(media_kind),
            username=session.username if session else None,
            secret=session.secret if session else None,
        )

    def to_document(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "url": self.url,
            "timestamp": SERVER_TIMESTAMP,
            "mediaType": MediaKind(self.media_kind).value,
        }
        if self.username is not None:
            data.update({"username": self.username, "password": self.secret})
        return data

    @property
    def display_username(self) -> str:
        return self.username or ANONYMOUS


def login_audit_document(session: Session) -> dict[str, Any]:
    """Document appended to the login audit collection."""
    return {
        "username": session.username,
        "password": session.secret,
        "timestamp": SERVER_TIMESTAMP,
    }
