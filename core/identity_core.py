"""
Identity Core - Per-Installation Device Identity.

Bootstraps the durable device UUID and installation time on first use and
returns the persisted pair on every later call.
"""

import threading
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta, timezone

from config import get_config
from core.errors import LocalStorageUnavailable
from core.models import DeviceIdentity
from logging_config import get_logger
from utils.preferences import DEVICE_UUID_KEY, INSTALLATION_DATE_KEY, PreferencesStore

logger = get_logger(__name__)


class IdentityStore:
    """
    Owns the device identity stored in local preferences.

    The identity is read once and cached. A stored UUID is never replaced;
    an installation that has a UUID but no installation date (older app
    versions) gets one stamped in on the next call.
    """

    def __init__(
        self,
        preferences: PreferencesStore,
        clock: Callable[[], datetime] | None = None,
        offset_hours: float | None = None,
    ):
        self._preferences = preferences
        self._clock = clock or (lambda: datetime.now(UTC))
        if offset_hours is None:
            offset_hours = get_config().get("DISPLAY_TZ_OFFSET_HOURS", 4)
        self._tz = timezone(timedelta(hours=offset_hours))
        self._cached: DeviceIdentity | None = None
        self._lock = threading.Lock()

    def _installation_timestamp(self) -> str:
        return self._clock().astimezone(self._tz).isoformat()

    def ensure_identity(self) -> DeviceIdentity:
        """
        Returns the device identity, creating or healing it if needed.

        Raises:
            LocalStorageUnavailable: If preferences cannot be read or written.
        """
        with self._lock:
            if self._cached is not None:
                return self._cached

            stored_uuid = self._preferences.get(DEVICE_UUID_KEY)
            installed_at = self._preferences.get(INSTALLATION_DATE_KEY)

            if stored_uuid is None:
                stored_uuid = str(uuid.uuid4())
                installed_at = self._installation_timestamp()
                self._preferences.set_many(
                    {DEVICE_UUID_KEY: stored_uuid, INSTALLATION_DATE_KEY: installed_at}
                )
                logger.info(f"Created device identity {stored_uuid}")
            elif installed_at is None:
                installed_at = self._installation_timestamp()
                self._preferences.set(INSTALLATION_DATE_KEY, installed_at)
                logger.info(f"Stamped missing installation date for {stored_uuid}")

            try:
                device_id = uuid.UUID(str(stored_uuid))
            except ValueError as e:
                raise LocalStorageUnavailable(
                    f"Stored device UUID is not a UUID: {stored_uuid!r}"
                ) from e

            self._cached = DeviceIdentity(id=device_id, installed_at=str(installed_at))
            return self._cached
