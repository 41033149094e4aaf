"""Tests for user-visible error messages."""

import pytest

from core.errors import (
    AlreadyInProgress,
    BackendUnavailable,
    ExportFailed,
    FileTooLarge,
    LocalStorageUnavailable,
    NetworkError,
    PermissionDenied,
    PositionTimeout,
    RecordSaveFailed,
    ServiceUnavailable,
    UploadFailed,
    describe_error,
)


@pytest.mark.parametrize(
    "error, expected",
    [
        (NetworkError("timed out"), "Network error: timed out"),
        (
            RecordSaveFailed("disk I/O error", uploaded_url="https://cdn/x"),
            "Upload succeeded but saving failed. Database error: disk I/O error",
        ),
        (BackendUnavailable("locked"), "Database error: locked"),
        (LocalStorageUnavailable("read-only"), "Storage error: read-only"),
        (PermissionDenied("camera"), "Permission denied: camera permission denied"),
        (ExportFailed("disk full"), "Export failed: disk full"),
        (UploadFailed(status_code=500), "Upload failed with status 500"),
        (AlreadyInProgress(), "Location submission already in progress"),
        (ServiceUnavailable(), "Location services are disabled. Enable them."),
        (RuntimeError("boom"), "Error: boom"),
    ],
)
def test_describe_error(error, expected):
    assert describe_error(error) == expected


def test_file_too_large_names_limit():
    message = describe_error(FileTooLarge(60 * 1024 * 1024, 50 * 1024 * 1024))
    assert "max 50MB" in message


def test_timeouts_are_timeout_errors():
    error = PositionTimeout(30)
    assert isinstance(error, TimeoutError)
    assert describe_error(error) == "Location fix timed out after 30s"
