"""
Positioning Service - Configured Geolocation.

Implements PositioningInterface for hosts without a GNSS receiver: the fix
is the configured LOCATION_DATA, and the "service enabled" switch comes
from LOCATION_SERVICE_ENABLED.
"""

from config import get_config
from core.errors import ServiceUnavailable
from device.interfaces.positioning import Position, PositioningInterface
from logging_config import get_logger

logger = get_logger(__name__)


class StaticPositioningService(PositioningInterface):
    def __init__(
        self,
        latitude: float | None = None,
        longitude: float | None = None,
        enabled: bool | None = None,
    ):
        self._config = get_config()
        location = self._config.get("LOCATION_DATA", {})
        self._latitude = latitude if latitude is not None else location.get("latitude")
        self._longitude = longitude if longitude is not None else location.get("longitude")
        self._enabled = (
            enabled
            if enabled is not None
            else self._config.get("LOCATION_SERVICE_ENABLED", True)
        )

    def is_service_enabled(self) -> bool:
        return bool(self._enabled)

    def current_position(self, timeout: float, accuracy: str = "best") -> Position:
        if not self._enabled:
            raise ServiceUnavailable()
        logger.debug(f"Static fix requested (timeout={timeout}s, accuracy={accuracy})")
        return Position(latitude=float(self._latitude), longitude=float(self._longitude))
