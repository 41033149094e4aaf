"""
Permission Service - Config-Driven Grants.

Implements PermissionInterface for hosts without interactive permission
prompts. Every capability is granted unless listed in DENIED_PERMISSIONS
or PERMANENTLY_DENIED_PERMISSIONS.
"""

import threading

from config import get_config
from device.interfaces.permissions import (
    Capability,
    PermissionInterface,
    PermissionStatus,
)
from logging_config import get_logger

logger = get_logger(__name__)


class ConfigPermissionService(PermissionInterface):
    def __init__(
        self,
        denied: list[str] | None = None,
        permanently_denied: list[str] | None = None,
    ):
        self._config = get_config()
        self._denied = set(
            denied if denied is not None else self._config.get("DENIED_PERMISSIONS", [])
        )
        self._permanently_denied = set(
            permanently_denied
            if permanently_denied is not None
            else self._config.get("PERMANENTLY_DENIED_PERMISSIONS", [])
        )
        self._requests: list[Capability] = []
        self._lock = threading.Lock()

    @property
    def requested(self) -> list[Capability]:
        """Capabilities requested so far, in order."""
        with self._lock:
            return list(self._requests)

    def status(self, capability: Capability) -> PermissionStatus:
        name = Capability(capability).value
        if name in self._permanently_denied:
            return PermissionStatus.PERMANENTLY_DENIED
        if name in self._denied:
            return PermissionStatus.DENIED
        return PermissionStatus.GRANTED

    def request(self, capability: Capability) -> PermissionStatus:
        with self._lock:
            self._requests.append(Capability(capability))
        result = self.status(capability)
        if result != PermissionStatus.GRANTED:
            logger.info(f"Permission {Capability(capability).value} -> {result.value}")
        return result
