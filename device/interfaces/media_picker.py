"""
Media Picker Interface - Capture Mode Selection and File Picking.

Defines the contract for asking the user which kind of media to send and
for obtaining the chosen file. Cancellation is an absent value, not an error.
"""

from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class MediaMode(str, Enum):
    IMAGE_CAMERA = "image/camera"
    IMAGE_GALLERY = "image/gallery"
    VIDEO_CAMERA = "video/camera"
    VIDEO_GALLERY = "video/gallery"

    @property
    def kind(self) -> MediaKind:
        return MediaKind(self.value.split("/")[0])


class MediaPickerInterface(ABC):
    """Interface for the media selection dialog and picker."""

    @abstractmethod
    def choose_mode(self) -> MediaMode | None:
        """
        Asks which of the four media modes to use.

        Returns:
            The chosen mode, or None if the user dismissed the prompt.
        """
        pass

    @abstractmethod
    def pick(self, mode: MediaMode) -> Path | None:
        """
        Captures or selects a file for the given mode.

        Returns:
            Local path of the file, or None if the user canceled.
        """
        pass
