"""
Upload Interface - Media Object Storage.

Defines the contract for turning a local media file into a durable URL.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from device.interfaces.media_picker import MediaKind


class UploadInterface(ABC):
    """
    Interface for media uploads.

    Implementations perform exactly one attempt; retrying is the caller's
    decision.
    """

    @abstractmethod
    def upload(self, file_path: str | Path, kind: MediaKind) -> str:
        """
        Uploads a file.

        Args:
            file_path: Local file to send.
            kind: Image or video; selects the remote sub-resource.

        Returns:
            Secure delivery URL of the uploaded object.

        Raises:
            UploadFailed: Non-200 response or unreadable response body.
            NetworkError: Transport failure.
        """
        pass
