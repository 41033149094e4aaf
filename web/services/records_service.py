"""
Records Service - Web Layer Service for Collected Records.

Serializes aggregated records for JSON responses, formats the live
streams as server-sent events and runs spreadsheet exports.
"""

import json
import queue
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import Any

from core.aggregation_core import Record, StreamClosed
from core.app_context import COLLECTIONS, AppContext
from core.models import LocationRecord

HEARTBEAT_SECONDS = 15.0


def resolve_collection(kind: str) -> str:
    """Maps a public collection name ("locations", "media") to its backend name."""
    try:
        return COLLECTIONS[kind]
    except KeyError:
        raise ValueError(f"Unknown collection: {kind}") from None


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize_record(record: Record) -> dict[str, Any]:
    """JSON-safe view of a record. Secrets are never included."""
    if isinstance(record, LocationRecord):
        return {
            "id": record.doc_id,
            "username": record.display_username,
            "device_id": record.device_id,
            "installed_at": record.installed_at,
            "latitude": record.latitude,
            "longitude": record.longitude,
            "captured_at": _iso(record.captured_at),
        }
    return {
        "id": record.doc_id,
        "username": record.display_username,
        "media_type": record.media_kind.value,
        "url": record.url,
        "captured_at": _iso(record.captured_at),
    }


def list_records(context: AppContext, kind: str) -> list[dict[str, Any]]:
    """Current newest-first list for a collection."""
    records = context.view(resolve_collection(kind)).current()
    return [serialize_record(r) for r in records]


def stream_events(
    context: AppContext, kind: str, heartbeat: float = HEARTBEAT_SECONDS
) -> Iterator[str]:
    """
    Yields server-sent events for a live collection.

    Each `data:` event carries the full current list. A comment line is
    sent every `heartbeat` seconds of silence. The underlying stream is
    closed when the generator is closed or exhausted.
    """
    stream = context.view(resolve_collection(kind)).subscribe()
    try:
        while True:
            try:
                records = stream.get(timeout=heartbeat)
            except queue.Empty:
                yield ": keep-alive\n\n"
                continue
            except StreamClosed:
                break
            payload = json.dumps([serialize_record(r) for r in records])
            yield f"data: {payload}\n\n"
    finally:
        stream.close()


def export_collection(context: AppContext, kind: str) -> Path:
    """Writes a spreadsheet of the collection and returns its path."""
    return context.export_job.export_all(resolve_collection(kind))


def status_payload(context: AppContext) -> dict[str, Any]:
    """Summary of the device, session, pipeline and live streams."""
    identity = context.identity.ensure_identity()
    session = context.sessions.current_session
    return {
        "device": {"id": str(identity.id), "installed_at": identity.installed_at},
        "logged_in": session is not None,
        "username": session.username if session else None,
        "is_primary": session.is_primary if session else False,
        "location_sending": context.pipeline.is_sending,
        "location_sent": context.pipeline.location_sent,
        "active_streams": {
            kind: context.view(collection).active_streams
            for kind, collection in COLLECTIONS.items()
        },
        "export_dir": str(context.export_job.export_dir),
    }
