"""
Permission Interface - Runtime Capability Grants.

Defines the contract for querying and requesting platform permissions.
"""

from abc import ABC, abstractmethod
from enum import Enum


class Capability(str, Enum):
    LOCATION = "location"
    CAMERA = "camera"
    MICROPHONE = "microphone"
    STORAGE = "storage"
    PHOTOS = "photos"


class PermissionStatus(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    PERMANENTLY_DENIED = "permanentlyDenied"


class PermissionInterface(ABC):
    """Interface for runtime permission handling."""

    @abstractmethod
    def status(self, capability: Capability) -> PermissionStatus:
        """Returns the current status without prompting."""
        pass

    @abstractmethod
    def request(self, capability: Capability) -> PermissionStatus:
        """Prompts for the capability (if the platform allows) and returns the result."""
        pass
