"""
Aggregation Core - Live Projection of Backend Records.

Maps raw backend documents into typed records and keeps a live, newest-first
list per collection. All tolerance for legacy document shapes lives in the
decode functions below: a malformed field degrades to a default value, it
never drops the record or breaks the stream.
"""

import queue
import threading
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from typing import Any

from core.models import (
    UNKNOWN_DEVICE,
    UNKNOWN_INSTALLATION,
    LocationRecord,
    MediaRecord,
)
from device.interfaces.media_picker import MediaKind
from device.interfaces.record_store import (
    LOCATIONS_COLLECTION,
    MEDIA_COLLECTION,
    RecordStoreInterface,
    StoredDocument,
)
from logging_config import get_logger

logger = get_logger(__name__)

Record = LocationRecord | MediaRecord
Decoder = Callable[[StoredDocument, datetime], Record]


# ---------------------------------------------------------------------------
# Field decoding
# ---------------------------------------------------------------------------


def parse_capture_time(value: Any, now: datetime | None = None) -> datetime:
    """
    Interprets a capture-time field.

    Native timestamps are used as-is, numbers are epoch milliseconds, and
    anything else becomes `now`.
    """
    if now is None:
        now = datetime.now(UTC)
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return now
    return now


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_text(value: Any, default: str | None) -> str | None:
    if value is None or value == "":
        return default
    return value if isinstance(value, str) else str(value)


def _as_media_kind(value: Any) -> MediaKind:
    try:
        return MediaKind(value)
    except ValueError:
        return MediaKind.IMAGE


def decode_location(doc: StoredDocument, now: datetime | None = None) -> LocationRecord:
    data = doc.data
    return LocationRecord(
        latitude=_as_float(data.get("latitude")),
        longitude=_as_float(data.get("longitude")),
        device_id=_as_text(data.get("UUID"), UNKNOWN_DEVICE),
        installed_at=_as_text(data.get("installation_date"), UNKNOWN_INSTALLATION),
        captured_at=parse_capture_time(data.get("timestamp"), now),
        username=_as_text(data.get("username"), None),
        secret=_as_text(data.get("password"), None),
        doc_id=doc.doc_id,
    )


def decode_media(doc: StoredDocument, now: datetime | None = None) -> MediaRecord:
    data = doc.data
    return MediaRecord(
        url=_as_text(data.get("url"), None),
        media_kind=_as_media_kind(data.get("mediaType", MediaKind.IMAGE.value)),
        captured_at=parse_capture_time(data.get("timestamp"), now),
        username=_as_text(data.get("username"), None),
        secret=_as_text(data.get("password"), None),
        doc_id=doc.doc_id,
    )


DECODERS: dict[str, Decoder] = {
    LOCATIONS_COLLECTION: decode_location,
    MEDIA_COLLECTION: decode_media,
}


# ---------------------------------------------------------------------------
# Live stream
# ---------------------------------------------------------------------------


_CLOSED = object()


class StreamClosed(Exception):
    """Raised by RecordStream.get() once the stream has been closed."""


class RecordStream:
    """
    Lazy, unbounded sequence of record lists.

    Each item is the full current list, newest first. A slow consumer only
    ever sees the latest list: a pending emission is replaced, not queued
    behind. Iteration ends when the stream is closed; closing detaches the
    backend listener.
    """

    def __init__(self, collection: str, on_close: Callable[["RecordStream"], None]):
        self.collection = collection
        self._queue: queue.Queue = queue.Queue(maxsize=1)
        self._put_lock = threading.Lock()
        self._closed = threading.Event()
        self._unwatch: Callable[[], None] | None = None
        self._on_close = on_close

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _bind(self, unwatch: Callable[[], None]) -> None:
        self._unwatch = unwatch

    def _replace_pending(self, item: Any) -> None:
        # Caller holds _put_lock.
        try:
            self._queue.get_nowait()
        except queue.Empty:
            pass
        self._queue.put_nowait(item)

    def _push(self, records: list[Record]) -> None:
        with self._put_lock:
            if not self._closed.is_set():
                self._replace_pending(records)

    def get(self, timeout: float | None = None) -> list[Record]:
        """
        Returns the next emission.

        Raises:
            queue.Empty: No emission within `timeout`.
            StreamClosed: The stream was closed.
        """
        if self._closed.is_set() and self._queue.empty():
            raise StreamClosed(self.collection)
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            raise StreamClosed(self.collection)
        return item

    def __iter__(self) -> Iterator[list[Record]]:
        return self

    def __next__(self) -> list[Record]:
        try:
            return self.get()
        except StreamClosed:
            raise StopIteration from None

    def close(self) -> None:
        with self._put_lock:
            if self._closed.is_set():
                return
            self._closed.set()
            self._replace_pending(_CLOSED)
        if self._unwatch is not None:
            self._unwatch()
        self._on_close(self)

    def __enter__(self) -> "RecordStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class AggregationView:
    """
    Live, newest-first projection of one backend collection.

    Every subscribe() attaches its own backend listener and immediately
    receives the current list; close() on the stream (or on the view)
    detaches it again.
    """

    def __init__(
        self,
        record_store: RecordStoreInterface,
        collection: str,
        decoder: Decoder | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        if decoder is None:
            if collection not in DECODERS:
                raise ValueError(f"No decoder for collection {collection!r}")
            decoder = DECODERS[collection]
        self._store = record_store
        self._collection = collection
        self._decoder = decoder
        self._clock = clock or (lambda: datetime.now(UTC))
        self._streams: set[RecordStream] = set()
        self._lock = threading.Lock()

    @property
    def collection(self) -> str:
        return self._collection

    @property
    def active_streams(self) -> int:
        with self._lock:
            return len(self._streams)

    def project(self, documents: list[StoredDocument]) -> list[Record]:
        """Decodes documents and sorts them newest first."""
        now = self._clock()
        records = []
        for doc in documents:
            try:
                records.append(self._decoder(doc, now))
            except Exception as e:
                logger.warning(f"Document {doc.doc_id} in {self._collection} unreadable: {e}")
                records.append(
                    self._decoder(StoredDocument(doc.doc_id, doc.collection, {}), now)
                )
        records.sort(key=lambda r: r.captured_at, reverse=True)
        return records

    def current(self) -> list[Record]:
        """One-shot projection of the collection as it is now."""
        return self.project(self._store.fetch_all(self._collection))

    def subscribe(self) -> RecordStream:
        """
        Opens a live stream on the collection.

        Returns:
            RecordStream whose first item is the current list.
        """
        stream = RecordStream(self._collection, on_close=self._forget)
        with self._lock:
            self._streams.add(stream)

        def listener(documents: list[StoredDocument]) -> None:
            stream._push(self.project(documents))

        try:
            stream._bind(self._store.watch(self._collection, listener))
        except Exception:
            stream.close()
            raise
        logger.debug(f"Stream opened on {self._collection}")
        return stream

    def _forget(self, stream: RecordStream) -> None:
        with self._lock:
            self._streams.discard(stream)
        logger.debug(f"Stream closed on {self._collection}")

    def close(self) -> None:
        """Closes every open stream."""
        with self._lock:
            streams = list(self._streams)
        for stream in streams:
            stream.close()
