"""
Device Collaborator Services.

Concrete implementations of device.interfaces.
"""

from device.services.media_picker_service import PresetMediaPicker
from device.services.permission_service import ConfigPermissionService
from device.services.positioning_service import StaticPositioningService
from device.services.record_store_service import SqliteRecordStore
from device.services.upload_service import MediaUploadService

__all__ = [
    "ConfigPermissionService",
    "MediaUploadService",
    "PresetMediaPicker",
    "SqliteRecordStore",
    "StaticPositioningService",
]
