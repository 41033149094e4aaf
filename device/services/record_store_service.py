"""
Record Store Service - SQLite Document Store.

Implements RecordStoreInterface on top of utils.db. Listeners attached with
watch() are notified after every append made through this store, and a
poll worker picks up commits made by other connections to the same file
(another process running the device shell, for example).
"""

import sqlite3
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from config import get_config
from core.errors import BackendUnavailable
from device.interfaces.record_store import (
    DocumentListener,
    RecordStoreInterface,
    StoredDocument,
)
from logging_config import get_logger
from utils.db import fetch_documents, get_connection, insert_document

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SqliteRecordStore(RecordStoreInterface):
    """
    Append-only document store backed by a single SQLite file.

    Features:
    - Server timestamps taken from the store's own clock
    - Thread-safe writes through one shared connection
    - Live listeners per collection with explicit detach
    - Change polling (PRAGMA data_version) while any listener is attached
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        clock: Callable[[], datetime] | None = None,
        poll_interval: float | None = None,
    ):
        """
        Initialize the record store.

        Args:
            db_path: SQLite file (DATABASE_PATH from config if not provided).
            clock: Source of server timestamps (UTC now by default).
            poll_interval: Seconds between checks for foreign commits
                (RECORD_STORE_POLL_SECONDS from config if not provided).
        """
        self._clock = clock or _utc_now
        self._poll_interval = poll_interval or get_config().get(
            "RECORD_STORE_POLL_SECONDS", 1.0
        )
        try:
            self._conn = get_connection(db_path)
        except sqlite3.Error as e:
            raise BackendUnavailable(f"Cannot open record store: {e}") from e

        self._db_lock = threading.Lock()
        self._listeners: dict[str, list[DocumentListener]] = {}
        self._listeners_lock = threading.Lock()
        # Serializes snapshot reads with their delivery so listeners never
        # receive an older list after a newer one.
        self._notify_lock = threading.RLock()
        self._closed = False

        self._stop_event = threading.Event()
        self._poll_thread: threading.Thread | None = None
        self._last_data_version = self._data_version()

    def _ensure_open(self) -> None:
        if self._closed:
            raise BackendUnavailable("Record store is closed")

    def _read(self, collection: str, ordered: bool) -> list[StoredDocument]:
        self._ensure_open()
        try:
            with self._db_lock:
                rows = fetch_documents(self._conn, collection, ordered=ordered)
        except sqlite3.Error as e:
            raise BackendUnavailable(f"Read from {collection} failed: {e}") from e
        return [
            StoredDocument(doc_id=doc_id, collection=collection, data=data)
            for doc_id, data in rows
        ]

    def _data_version(self) -> int:
        """Counter that changes whenever another connection commits."""
        self._ensure_open()
        try:
            with self._db_lock:
                row = self._conn.execute("PRAGMA data_version;").fetchone()
        except sqlite3.Error as e:
            raise BackendUnavailable(f"Cannot read data version: {e}") from e
        return int(row[0])

    def append(self, collection: str, data: dict[str, Any]) -> StoredDocument:
        self._ensure_open()
        try:
            with self._db_lock:
                doc_id, stored = insert_document(
                    self._conn, collection, data, self._clock()
                )
        except sqlite3.Error as e:
            raise BackendUnavailable(f"Write to {collection} failed: {e}") from e

        logger.debug(f"Appended document {doc_id} to {collection}")
        self._notify(collection)
        return StoredDocument(doc_id=doc_id, collection=collection, data=stored)

    def fetch_all(self, collection: str) -> list[StoredDocument]:
        return self._read(collection, ordered=False)

    def watch(
        self, collection: str, listener: DocumentListener
    ) -> Callable[[], None]:
        self._ensure_open()
        detached = threading.Event()

        def unwatch() -> None:
            if detached.is_set():
                return
            detached.set()
            with self._listeners_lock:
                listeners = self._listeners.get(collection, [])
                if listener in listeners:
                    listeners.remove(listener)
            logger.debug(f"Listener detached from {collection}")

        with self._notify_lock:
            with self._listeners_lock:
                self._listeners.setdefault(collection, []).append(listener)
                self._start_poller()
            logger.debug(f"Listener attached to {collection}")

            try:
                listener(self._read(collection, ordered=True))
            except Exception:
                unwatch()
                raise
        return unwatch

    def listener_count(self, collection: str | None = None) -> int:
        with self._listeners_lock:
            if collection is not None:
                return len(self._listeners.get(collection, []))
            return sum(len(v) for v in self._listeners.values())

    def _notify(self, collection: str) -> None:
        with self._notify_lock:
            with self._listeners_lock:
                listeners = list(self._listeners.get(collection, []))
            if not listeners:
                return

            try:
                documents = self._read(collection, ordered=True)
            except BackendUnavailable as e:
                logger.warning(f"Could not refresh listeners of {collection}: {e}")
                return

            for listener in listeners:
                try:
                    listener(list(documents))
                except Exception as e:
                    logger.warning(f"Listener on {collection} failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Change polling
    # ------------------------------------------------------------------

    def _start_poller(self) -> None:
        # Caller holds _listeners_lock.
        if self._poll_thread is not None or self._stop_event.is_set():
            return
        self._poll_thread = threading.Thread(
            target=self._poll_loop, name="RecordStorePoller", daemon=True
        )
        self._poll_thread.start()
        logger.debug("Record store poller started")

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self._poll_interval):
            with self._listeners_lock:
                collections = [c for c, ls in self._listeners.items() if ls]
                if not collections:
                    self._poll_thread = None
                    logger.debug("Record store poller idle, exiting")
                    return

            try:
                version = self._data_version()
            except BackendUnavailable as e:
                logger.warning(f"Change poll failed: {e}")
                continue
            if version == self._last_data_version:
                continue
            self._last_data_version = version

            for collection in collections:
                self._notify(collection)

    def close(self) -> None:
        if self._closed:
            return
        self._stop_event.set()
        with self._listeners_lock:
            poll_thread = self._poll_thread
        if poll_thread is not None and poll_thread is not threading.current_thread():
            poll_thread.join(timeout=2.0)

        self._closed = True
        with self._listeners_lock:
            self._listeners.clear()
            self._poll_thread = None
        with self._db_lock:
            self._conn.close()
        logger.info("Record store closed")
