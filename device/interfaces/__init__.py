"""
Device Collaborator Interfaces.

This package defines the abstract interfaces for everything the
submission pipeline talks to outside the process. These interfaces enable:
- Clear service boundaries
- Dependency injection
- Independent testing of each component

ARCHITECTURE:
- core/ only coordinates these interfaces
- Concrete implementations live in services/
"""

from device.interfaces.media_picker import (
    MediaKind,
    MediaMode,
    MediaPickerInterface,
)
from device.interfaces.permissions import (
    Capability,
    PermissionInterface,
    PermissionStatus,
)
from device.interfaces.positioning import Position, PositioningInterface
from device.interfaces.record_store import (
    LOCATIONS_COLLECTION,
    LOGIN_COLLECTION,
    MEDIA_COLLECTION,
    SERVER_TIMESTAMP,
    RecordStoreInterface,
    StoredDocument,
)
from device.interfaces.upload import UploadInterface

__all__ = [
    # Interfaces
    "RecordStoreInterface",
    "PositioningInterface",
    "PermissionInterface",
    "MediaPickerInterface",
    "UploadInterface",
    # Data Classes / Enums
    "StoredDocument",
    "Position",
    "Capability",
    "PermissionStatus",
    "MediaKind",
    "MediaMode",
    # Constants
    "LOCATIONS_COLLECTION",
    "MEDIA_COLLECTION",
    "LOGIN_COLLECTION",
    "SERVER_TIMESTAMP",
]
