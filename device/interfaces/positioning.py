"""
Positioning Interface - Geolocation Fixes.

Defines the contract for obtaining the device's current position.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class Position:
    """A single geolocation fix in decimal degrees."""

    latitude: float
    longitude: float


class PositioningInterface(ABC):
    """
    Interface for geolocation providers.

    Implementations must fail distinguishably:
    - ServiceUnavailable when location services are off
    - PermissionDenied when the platform refuses access
    - PositionTimeout when no fix arrives in time
    - PositionUnavailable for any other provider failure
    """

    @abstractmethod
    def is_service_enabled(self) -> bool:
        """Checks whether platform location services are switched on."""
        pass

    @abstractmethod
    def current_position(self, timeout: float, accuracy: str = "best") -> Position:
        """
        Acquires a fix.

        Args:
            timeout: Seconds to wait before giving up.
            accuracy: Requested accuracy level ("best" by default).

        Returns:
            The current position.
        """
        pass
