"""
Capture Core - Location and Media Submission Pipeline.

Turns one user action into exactly one appended record:
- submit_location(): permission + positioning fix -> LocationRecord
- submit_media(): mode prompt + permissions + pick + size gate + upload
  -> MediaRecord

Location submission is guarded against re-entry; a second call while one is
in flight fails fast with AlreadyInProgress.
"""

import os
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from config import get_config
from core.errors import (
    AlreadyInProgress,
    BackendUnavailable,
    FieldReportError,
    FileAccessTimeout,
    FileTooLarge,
    LocalStorageUnavailable,
    PermissionDenied,
    PositionTimeout,
    PositionUnavailable,
    RecordSaveFailed,
    ServiceUnavailable,
)
from core.identity_core import IdentityStore
from core.models import LocationRecord, MediaRecord, Session
from core.session_core import SessionManager
from device.interfaces.media_picker import MediaKind, MediaMode, MediaPickerInterface
from device.interfaces.permissions import (
    Capability,
    PermissionInterface,
    PermissionStatus,
)
from device.interfaces.positioning import Position, PositioningInterface
from device.interfaces.record_store import (
    LOCATIONS_COLLECTION,
    MEDIA_COLLECTION,
    RecordStoreInterface,
)
from device.interfaces.upload import UploadInterface
from logging_config import get_logger

logger = get_logger(__name__)

_TIMED_OUT = object()


def _run_with_timeout(func: Callable[[], Any], timeout: float, name: str) -> Any:
    """
    Runs `func` on a daemon thread and waits at most `timeout` seconds.

    Returns the function's result, re-raises its exception, or returns
    _TIMED_OUT. A timed-out call is abandoned, not interrupted.
    """
    outcome: dict[str, Any] = {}
    done = threading.Event()

    def runner():
        try:
            outcome["value"] = func()
        except BaseException as e:
            outcome["error"] = e
        finally:
            done.set()

    threading.Thread(target=runner, name=name, daemon=True).start()
    if not done.wait(timeout):
        return _TIMED_OUT
    if "error" in outcome:
        raise outcome["error"]
    return outcome["value"]


def required_capabilities(mode: MediaMode, platform: str) -> list[Capability]:
    """
    Returns the runtime permissions a media mode needs on a platform.

    Video recording always needs camera and microphone. Otherwise android
    needs storage access for gallery videos only, and ios needs photo
    library access for everything.
    """
    mode = MediaMode(mode)
    if mode == MediaMode.VIDEO_CAMERA:
        return [Capability.CAMERA, Capability.MICROPHONE]
    if platform == "android":
        if mode == MediaMode.VIDEO_GALLERY:
            return [Capability.STORAGE]
        return []
    if platform == "ios":
        return [Capability.PHOTOS]
    return []


def _server_time(data: dict[str, Any]) -> datetime | None:
    value = data.get("timestamp")
    return value if isinstance(value, datetime) else None


class CapturePipeline:
    """
    Submits locations and media for the current device and session.

    Features:
    - Re-entrancy guard on location submission (one in flight at a time)
    - Bounded waits on the positioning fix and the video size check
    - Distinct errors for upload failure vs. record save failure
    """

    def __init__(
        self,
        identity: IdentityStore,
        sessions: SessionManager,
        record_store: RecordStoreInterface,
        positioning: PositioningInterface,
        permissions: PermissionInterface,
        uploader: UploadInterface,
        media_picker: MediaPickerInterface | None = None,
        platform: str | None = None,
        location_timeout: float | None = None,
        file_access_timeout: float | None = None,
        max_video_bytes: int | None = None,
        accuracy: str | None = None,
    ):
        self._config = get_config()
        self._identity = identity
        self._sessions = sessions
        self._store = record_store
        self._positioning = positioning
        self._permissions = permissions
        self._uploader = uploader
        self._picker = media_picker

        self._platform = platform or self._config.get("PLATFORM", "android")
        self._location_timeout = location_timeout or self._config.get(
            "LOCATION_TIMEOUT_SECONDS", 30
        )
        self._file_access_timeout = file_access_timeout or self._config.get(
            "FILE_ACCESS_TIMEOUT_SECONDS", 10
        )
        self._max_video_bytes = max_video_bytes or self._config.get(
            "MAX_VIDEO_BYTES", 50 * 1024 * 1024
        )
        self._accuracy = accuracy or self._config.get("LOCATION_ACCURACY", "best")

        self._send_lock = threading.Lock()
        self._location_sent = False
        self._sessions.add_listener(self._on_session_changed)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_sending(self) -> bool:
        """True while a location submission is in flight."""
        return self._send_lock.locked()

    @property
    def location_sent(self) -> bool:
        """True once a location was submitted during the current session."""
        return self._location_sent

    def _on_session_changed(self, session: Session | None) -> None:
        self._location_sent = False

    # ------------------------------------------------------------------
    # Location
    # ------------------------------------------------------------------

    def submit_location(self) -> LocationRecord:
        """
        Acquires a fix and appends a LocationRecord.

        Raises:
            AlreadyInProgress: If another submission is underway.
            ServiceUnavailable: Location services are off.
            PermissionDenied: Location permission refused.
            PositionTimeout / PositionUnavailable: No fix could be obtained.
            LocalStorageUnavailable: Device identity unreadable.
            BackendUnavailable: The record could not be appended.
        """
        if not self._send_lock.acquire(blocking=False):
            raise AlreadyInProgress()
        try:
            position = self._determine_position()
            identity = self._identity.ensure_identity()
            record = LocationRecord.for_submission(
                position.latitude,
                position.longitude,
                identity,
                self._sessions.current_session,
            )
            stored = self._store.append(LOCATIONS_COLLECTION, record.to_document())
            record.doc_id = stored.doc_id
            record.captured_at = _server_time(stored.data)
            self._location_sent = True
            logger.info(f"Location sent ({stored.doc_id})")
            return record
        except FieldReportError as e:
            logger.warning(f"Location submission failed: {e}")
            raise
        finally:
            self._send_lock.release()

    def _determine_position(self) -> Position:
        if not self._positioning.is_service_enabled():
            raise ServiceUnavailable()

        status = self._permissions.status(Capability.LOCATION)
        if status == PermissionStatus.DENIED:
            status = self._permissions.request(Capability.LOCATION)
            if status == PermissionStatus.DENIED:
                raise PermissionDenied(Capability.LOCATION.value)
        if status == PermissionStatus.PERMANENTLY_DENIED:
            raise PermissionDenied(Capability.LOCATION.value, permanently=True)

        timeout = self._location_timeout
        try:
            result = _run_with_timeout(
                lambda: self._positioning.current_position(timeout, self._accuracy),
                timeout,
                "PositionFix",
            )
        except FieldReportError:
            raise
        except TimeoutError as e:
            raise PositionTimeout(timeout) from e
        except Exception as e:
            raise PositionUnavailable(f"Location provider failed: {e}") from e

        if result is _TIMED_OUT:
            raise PositionTimeout(timeout)
        return result

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------

    def submit_media(
        self,
        mode: MediaMode | str | None = None,
        picker: MediaPickerInterface | None = None,
    ) -> MediaRecord | None:
        """
        Prompts for a media mode, uploads the picked file and appends a MediaRecord.

        Args:
            mode: Preselected mode; the picker is asked when omitted.
            picker: Overrides the pipeline's media picker for this call.

        Returns:
            The appended record, or None if the user canceled.

        Raises:
            PermissionDenied: A required permission was refused.
            FileAccessTimeout: The video size check took too long.
            FileTooLarge: The video exceeds the size limit.
            UploadFailed / NetworkError: The upload did not succeed.
            RecordSaveFailed: Upload succeeded but the record was not saved.
        """
        picker = picker or self._picker
        if picker is None:
            raise ValueError("No media picker configured")

        if mode is None:
            mode = picker.choose_mode()
            if mode is None:
                return None
        mode = MediaMode(mode)

        for capability in required_capabilities(mode, self._platform):
            status = self._permissions.request(capability)
            if status != PermissionStatus.GRANTED:
                raise PermissionDenied(
                    capability.value,
                    permanently=status == PermissionStatus.PERMANENTLY_DENIED,
                )

        file_path = picker.pick(mode)
        if file_path is None:
            return None

        if mode.kind == MediaKind.VIDEO:
            self._check_video_size(Path(file_path))

        url = self._uploader.upload(file_path, mode.kind)
        record = MediaRecord.for_submission(url, mode.kind, self._sessions.current_session)

        try:
            stored = self._store.append(MEDIA_COLLECTION, record.to_document())
        except BackendUnavailable as e:
            logger.warning(f"Uploaded {url} but the record was not saved: {e}")
            raise RecordSaveFailed(str(e), uploaded_url=url) from e

        record.doc_id = stored.doc_id
        record.captured_at = _server_time(stored.data)
        logger.info(f"{mode.kind.value.capitalize()} sent ({stored.doc_id})")
        return record

    def _check_video_size(self, file_path: Path) -> None:
        timeout = self._file_access_timeout
        try:
            size = _run_with_timeout(
                lambda: os.path.getsize(file_path), timeout, "VideoSizeCheck"
            )
        except OSError as e:
            raise LocalStorageUnavailable(f"Cannot read video file {file_path}: {e}") from e

        if size is _TIMED_OUT:
            raise FileAccessTimeout(timeout)
        if size > self._max_video_bytes:
            raise FileTooLarge(size, self._max_video_bytes)
