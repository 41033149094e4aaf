"""
App Context - Component Wiring.

Builds one instance of every component for an app run and tears them down
in reverse order. Surfaces (CLI, web) receive the context instead of
reaching for module-level state.
"""

from dataclasses import dataclass, field
from typing import Any

from config import get_config
from core.aggregation_core import AggregationView
from core.capture_core import CapturePipeline
from core.export_core import ExportJob
from core.identity_core import IdentityStore
from core.session_core import SessionManager
from device.interfaces import (
    LOCATIONS_COLLECTION,
    MEDIA_COLLECTION,
    MediaPickerInterface,
    PermissionInterface,
    PositioningInterface,
    RecordStoreInterface,
    UploadInterface,
)
from device.services import (
    ConfigPermissionService,
    MediaUploadService,
    SqliteRecordStore,
    StaticPositioningService,
)
from logging_config import get_logger
from utils.preferences import PreferencesStore

logger = get_logger(__name__)

# Public names of the record collections, as used by the CLI and HTTP routes.
COLLECTIONS = {
    "locations": LOCATIONS_COLLECTION,
    "media": MEDIA_COLLECTION,
}


@dataclass
class AppContext:
    config: dict[str, Any]
    preferences: PreferencesStore
    record_store: RecordStoreInterface
    identity: IdentityStore
    sessions: SessionManager
    pipeline: CapturePipeline
    export_job: ExportJob
    views: dict[str, AggregationView] = field(default_factory=dict)

    def view(self, collection: str) -> AggregationView:
        return self.views[collection]

    def close(self) -> None:
        """Closes live streams, flushes the audit log and closes the store."""
        for view in self.views.values():
            view.close()
        self.sessions.close()
        self.record_store.close()
        logger.info("App context closed")


def build_app_context(
    config: dict[str, Any] | None = None,
    record_store: RecordStoreInterface | None = None,
    preferences: PreferencesStore | None = None,
    positioning: PositioningInterface | None = None,
    permissions: PermissionInterface | None = None,
    uploader: UploadInterface | None = None,
    media_picker: MediaPickerInterface | None = None,
) -> AppContext:
    """
    Constructs an AppContext from configuration.

    Any collaborator can be passed in to replace the configured default.
    """
    cfg = config or get_config()
    location = cfg.get("LOCATION_DATA", {})

    positioning = positioning or StaticPositioningService(
        latitude=location.get("latitude"),
        longitude=location.get("longitude"),
        enabled=cfg.get("LOCATION_SERVICE_ENABLED"),
    )
    permissions = permissions or ConfigPermissionService(
        denied=cfg.get("DENIED_PERMISSIONS"),
        permanently_denied=cfg.get("PERMANENTLY_DENIED_PERMISSIONS"),
    )
    uploader = uploader or MediaUploadService(
        base_url=cfg.get("UPLOAD_BASE_URL"),
        cloud_name=cfg.get("UPLOAD_CLOUD_NAME"),
        upload_preset=cfg.get("UPLOAD_PRESET"),
        timeout=cfg.get("UPLOAD_TIMEOUT_SECONDS"),
    )

    preferences = preferences or PreferencesStore(cfg["PREFERENCES_PATH"])
    record_store = record_store or SqliteRecordStore(
        cfg["DATABASE_PATH"], poll_interval=cfg.get("RECORD_STORE_POLL_SECONDS")
    )
    identity = IdentityStore(preferences, offset_hours=cfg.get("DISPLAY_TZ_OFFSET_HOURS"))
    sessions = SessionManager(preferences, record_store)
    pipeline = CapturePipeline(
        identity=identity,
        sessions=sessions,
        record_store=record_store,
        positioning=positioning,
        permissions=permissions,
        uploader=uploader,
        media_picker=media_picker,
        platform=cfg.get("PLATFORM"),
        location_timeout=cfg.get("LOCATION_TIMEOUT_SECONDS"),
        file_access_timeout=cfg.get("FILE_ACCESS_TIMEOUT_SECONDS"),
        max_video_bytes=cfg.get("MAX_VIDEO_BYTES"),
    )
    export_job = ExportJob(
        record_store,
        export_dir=cfg["EXPORT_DIR"],
        offset_hours=cfg.get("DISPLAY_TZ_OFFSET_HOURS"),
    )
    views = {
        collection: AggregationView(record_store, collection)
        for collection in COLLECTIONS.values()
    }

    return AppContext(
        config=cfg,
        preferences=preferences,
        record_store=record_store,
        identity=identity,
        sessions=sessions,
        pipeline=pipeline,
        export_job=export_job,
        views=views,
    )
