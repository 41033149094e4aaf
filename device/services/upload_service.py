"""
Upload Service - Multipart Media Upload.

Implements UploadInterface against the object-storage endpoint:
POST {UPLOAD_BASE_URL}/{cloud_name}/{image|video}/upload with an unsigned
upload preset. One attempt per call, no retries.
"""

from pathlib import Path

import requests

from config import get_config
from core.errors import LocalStorageUnavailable, NetworkError, UploadFailed
from device.interfaces.media_picker import MediaKind
from device.interfaces.upload import UploadInterface
from logging_config import get_logger

logger = get_logger(__name__)


class MediaUploadService(UploadInterface):
    """Uploads media files and returns their secure delivery URL."""

    def __init__(
        self,
        base_url: str | None = None,
        cloud_name: str | None = None,
        upload_preset: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self._config = get_config()
        self._base_url = (base_url or self._config["UPLOAD_BASE_URL"]).rstrip("/")
        self._cloud_name = cloud_name or self._config["UPLOAD_CLOUD_NAME"]
        self._upload_preset = upload_preset or self._config["UPLOAD_PRESET"]
        self._timeout = timeout or self._config.get("UPLOAD_TIMEOUT_SECONDS", 120)
        self._http = session or requests

    def endpoint_for(self, kind: MediaKind) -> str:
        """Returns the upload URL for the given media kind."""
        resource_type = "video" if MediaKind(kind) == MediaKind.VIDEO else "image"
        return f"{self._base_url}/{self._cloud_name}/{resource_type}/upload"

    def upload(self, file_path: str | Path, kind: MediaKind) -> str:
        path = Path(file_path)
        url = self.endpoint_for(kind)
        data = {"upload_preset": self._upload_preset}

        try:
            with open(path, "rb") as media:
                files = {"file": (path.name, media)}
                response = self._http.post(
                    url, data=data, files=files, timeout=self._timeout
                )
        except requests.RequestException as e:
            logger.error(f"Upload of {path.name} failed: {e}")
            raise NetworkError(str(e)) from e
        except OSError as e:
            raise LocalStorageUnavailable(f"Cannot read media file {path}: {e}") from e

        if response.status_code != 200:
            logger.error(f"Upload of {path.name} rejected: HTTP {response.status_code}")
            raise UploadFailed(status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise UploadFailed(parse_error=f"invalid JSON: {e}") from e

        secure_url = body.get("secure_url") if isinstance(body, dict) else None
        if not isinstance(secure_url, str) or not secure_url:
            raise UploadFailed(parse_error="response has no secure_url")

        logger.info(f"Uploaded {MediaKind(kind).value} {path.name}")
        return secure_url
