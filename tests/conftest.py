"""Shared fixtures: isolated stores under tmp_path and stub device collaborators."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from config import load_config
from core.app_context import build_app_context
from device.interfaces import UploadInterface
from device.services import (
    ConfigPermissionService,
    SqliteRecordStore,
    StaticPositioningService,
)
from utils.preferences import PreferencesStore

UPLOADED_URL = "https://res.cloudinary.com/demo/image/upload/v1/sample.jpg"


class StepClock:
    """Returns `start`, then advances one second per call."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.now
        self.now = self.now + self.step
        return value


@pytest.fixture
def server_clock():
    return StepClock(datetime(2024, 3, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def record_store(tmp_path, server_clock):
    store = SqliteRecordStore(tmp_path / "records.db", clock=server_clock, poll_interval=0.05)
    yield store
    store.close()


@pytest.fixture
def preferences(tmp_path):
    return PreferencesStore(tmp_path / "preferences.yaml")


@pytest.fixture
def uploader():
    mock = MagicMock(spec=UploadInterface)
    mock.upload.return_value = UPLOADED_URL
    return mock


@pytest.fixture
def app_config(tmp_path):
    cfg = load_config()
    cfg.update(
        {
            "DATABASE_PATH": str(tmp_path / "records.db"),
            "PREFERENCES_PATH": str(tmp_path / "preferences.yaml"),
            "EXPORT_DIR": str(tmp_path / "exports"),
            "PLATFORM": "android",
            "LOCATION_TIMEOUT_SECONDS": 5,
            "FILE_ACCESS_TIMEOUT_SECONDS": 5,
            "DISPLAY_TZ_OFFSET_HOURS": 4,
        }
    )
    return cfg


@pytest.fixture
def app_context(app_config, record_store, preferences, uploader):
    context = build_app_context(
        app_config,
        record_store=record_store,
        preferences=preferences,
        positioning=StaticPositioningService(23.588, 58.383, enabled=True),
        permissions=ConfigPermissionService(denied=[], permanently_denied=[]),
        uploader=uploader,
    )
    yield context
    context.close()
