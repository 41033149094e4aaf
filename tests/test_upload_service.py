"""
Tests for MediaUploadService.

Tests the upload service in isolation without actual HTTP calls.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from core.errors import (
    LocalStorageUnavailable,
    NetworkError,
    UploadFailed,
    describe_error,
)
from device.interfaces import MediaKind
from device.services import MediaUploadService

SECURE_URL = "https://res.cloudinary.com/demo/video/upload/v1/clip.mp4"


@pytest.fixture
def media_file(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00\x01\x02")
    return path


def make_response(status_code=200, body=None, json_error=None):
    response = MagicMock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body if body is not None else {"secure_url": SECURE_URL}
    return response


def make_service(session=None):
    return MediaUploadService(
        base_url="https://api.example.com/v1_1/",
        cloud_name="demo",
        upload_preset="unsigned_preset",
        timeout=30,
        session=session,
    )


class TestEndpoint:
    def test_endpoint_per_media_kind(self):
        service = make_service()
        assert service.endpoint_for(MediaKind.IMAGE) == "https://api.example.com/v1_1/demo/image/upload"
        assert service.endpoint_for(MediaKind.VIDEO) == "https://api.example.com/v1_1/demo/video/upload"


class TestUpload:
    def test_successful_upload_returns_secure_url(self, media_file):
        session = MagicMock()
        session.post.return_value = make_response()

        url = make_service(session).upload(media_file, MediaKind.VIDEO)

        assert url == SECURE_URL
        args, kwargs = session.post.call_args
        assert args[0] == "https://api.example.com/v1_1/demo/video/upload"
        assert kwargs["data"] == {"upload_preset": "unsigned_preset"}
        assert kwargs["files"]["file"][0] == "clip.mp4"
        assert kwargs["timeout"] == 30

    def test_uses_requests_without_session(self, media_file):
        with patch("device.services.upload_service.requests.post") as mock_post:
            mock_post.return_value = make_response()
            assert make_service().upload(media_file, MediaKind.IMAGE) == SECURE_URL
            mock_post.assert_called_once()

    def test_non_200_status(self, media_file):
        session = MagicMock()
        session.post.return_value = make_response(status_code=401)

        with pytest.raises(UploadFailed) as exc_info:
            make_service(session).upload(media_file, MediaKind.IMAGE)

        assert exc_info.value.status_code == 401

    def test_unparseable_body(self, media_file):
        session = MagicMock()
        session.post.return_value = make_response(json_error=ValueError("Expecting value"))

        with pytest.raises(UploadFailed) as exc_info:
            make_service(session).upload(media_file, MediaKind.IMAGE)

        assert exc_info.value.status_code is None
        assert exc_info.value.parse_error

    def test_missing_secure_url(self, media_file):
        session = MagicMock()
        session.post.return_value = make_response(body={"url": "http://insecure"})

        with pytest.raises(UploadFailed):
            make_service(session).upload(media_file, MediaKind.IMAGE)

    def test_transport_error_is_network_error(self, media_file):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(NetworkError) as exc_info:
            make_service(session).upload(media_file, MediaKind.IMAGE)

        assert describe_error(exc_info.value) == "Network error: connection refused"

    def test_unreadable_file(self, tmp_path):
        session = MagicMock()
        with pytest.raises(LocalStorageUnavailable):
            make_service(session).upload(tmp_path / "missing.jpg", MediaKind.IMAGE)
        session.post.assert_not_called()
