"""
Export Core - Spreadsheet Snapshots of Backend Collections.

One-shot, unordered read of a collection written to an .xlsx file in the
private export directory. Timestamps are shifted into the display timezone
for the spreadsheet only; stored values are never touched.
"""

import os
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pandas as pd

from config import get_config
from core.aggregation_core import parse_capture_time
from core.errors import ExportFailed
from core.models import ANONYMOUS
from device.interfaces.media_picker import MediaKind
from device.interfaces.record_store import (
    LOCATIONS_COLLECTION,
    MEDIA_COLLECTION,
    RecordStoreInterface,
)
from logging_config import get_logger

logger = get_logger(__name__)

DISPLAY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class ExportSchema:
    """Sheet layout for one collection."""

    sheet_name: str
    file_prefix: str
    header: tuple[str, ...]
    row: Callable[[dict[str, Any], str], list[Any]]


def _location_row(data: dict[str, Any], display_time: str) -> list[Any]:
    return [
        data.get("username") or ANONYMOUS,
        data.get("UUID"),
        data.get("installation_date"),
        data.get("latitude"),
        data.get("longitude"),
        display_time,
    ]


def _media_row(data: dict[str, Any], display_time: str) -> list[Any]:
    return [
        data.get("username") or ANONYMOUS,
        data.get("mediaType") or MediaKind.IMAGE.value,
        data.get("url"),
        display_time,
    ]


EXPORT_SCHEMAS: dict[str, ExportSchema] = {
    LOCATIONS_COLLECTION: ExportSchema(
        sheet_name="Locations",
        file_prefix="locations",
        header=(
            "Username",
            "UUID",
            "Installation Date",
            "Latitude",
            "Longitude",
            "Timestamp",
        ),
        row=_location_row,
    ),
    MEDIA_COLLECTION: ExportSchema(
        sheet_name="Pictures",
        file_prefix="pictures",
        header=("Username", "Media Type", "URL", "Timestamp"),
        row=_media_row,
    ),
}


def format_display_time(captured_at: datetime, offset: timedelta) -> str:
    """Renders a UTC instant as wall-clock time in the display timezone."""
    utc = captured_at.astimezone(UTC) if captured_at.tzinfo else captured_at
    return (utc.replace(tzinfo=None) + offset).strftime(DISPLAY_TIME_FORMAT)


class ExportJob:
    """Builds and writes spreadsheet exports of record collections."""

    def __init__(
        self,
        record_store: RecordStoreInterface,
        export_dir: str | Path | None = None,
        offset_hours: float | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._config = get_config()
        self._store = record_store
        self._export_dir = Path(export_dir or self._config["EXPORT_DIR"])
        if offset_hours is None:
            offset_hours = self._config.get("DISPLAY_TZ_OFFSET_HOURS", 4)
        self._offset = timedelta(hours=offset_hours)
        self._clock = clock or (lambda: datetime.now(UTC))
        self._reserved: set[Path] = set()
        self._lock = threading.Lock()

    @property
    def export_dir(self) -> Path:
        return self._export_dir

    def build_frame(self, collection: str) -> tuple[ExportSchema, pd.DataFrame]:
        """Reads the collection and returns its schema and table."""
        schema = EXPORT_SCHEMAS.get(collection)
        if schema is None:
            raise ValueError(f"No export schema for collection {collection!r}")

        now = self._clock()
        rows = []
        for doc in self._store.fetch_all(collection):
            captured_at = parse_capture_time(doc.data.get("timestamp"), now)
            rows.append(schema.row(doc.data, format_display_time(captured_at, self._offset)))
        return schema, pd.DataFrame(rows, columns=list(schema.header))

    def _reserve_path(self, prefix: str) -> Path:
        stamp = int(self._clock().timestamp() * 1000)
        with self._lock:
            candidate = self._export_dir / f"{prefix}_{stamp}.xlsx"
            counter = 1
            while candidate.exists() or candidate in self._reserved:
                candidate = self._export_dir / f"{prefix}_{stamp}_{counter}.xlsx"
                counter += 1
            self._reserved.add(candidate)
            return candidate

    def export_all(self, collection: str) -> Path:
        """
        Writes every document of `collection` to a new spreadsheet.

        Returns:
            Path of the finished file.

        Raises:
            ExportFailed: Reading, serializing or writing failed. No file
                is left behind at the returned location in that case.
        """
        path = None
        tmp_path = None
        try:
            schema, frame = self.build_frame(collection)
            self._export_dir.mkdir(parents=True, exist_ok=True)
            path = self._reserve_path(schema.file_prefix)
            tmp_path = path.with_name(f".{path.stem}.part.xlsx")
            frame.to_excel(
                tmp_path, sheet_name=schema.sheet_name, index=False, engine="openpyxl"
            )
            os.replace(tmp_path, path)
        except Exception as e:
            logger.error(f"Export of {collection} failed: {e}", exc_info=True)
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise ExportFailed(e) from e
        finally:
            if path is not None:
                with self._lock:
                    self._reserved.discard(path)

        logger.info(f"Exported {len(frame)} {collection} rows to {path}")
        return path
