"""
Document CRUD Operations.

Documents are schemaless dicts stored as JSON. Native timestamps are tagged
so they round-trip as `datetime`, while legacy values (epoch numbers, free
text) are kept exactly as written.
"""

import json
import sqlite3
import uuid
from datetime import UTC, datetime
from typing import Any

TIMESTAMP_FIELD = "timestamp"
_TIMESTAMP_TAG = "__timestamp__"


class _ServerTimestamp:
    """Placeholder replaced by the store's clock at write time."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _encode_value(value: Any, server_time: datetime) -> Any:
    if value is SERVER_TIMESTAMP:
        value = server_time
    if isinstance(value, datetime):
        return {_TIMESTAMP_TAG: _to_utc(value).isoformat()}
    if isinstance(value, dict):
        return {str(k): _encode_value(v, server_time) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode_value(v, server_time) for v in value]
    return value


def _decode_value(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value) == {_TIMESTAMP_TAG}:
            return datetime.fromisoformat(value[_TIMESTAMP_TAG])
        return {k: _decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_decode_value(v) for v in value]
    return value


def encode_document(data: dict[str, Any], server_time: datetime) -> str:
    return json.dumps(_encode_value(data, server_time), ensure_ascii=False)


def decode_document(raw: str) -> dict[str, Any]:
    return _decode_value(json.loads(raw))


def insert_document(
    conn: sqlite3.Connection,
    collection: str,
    data: dict[str, Any],
    server_time: datetime,
) -> tuple[str, dict[str, Any]]:
    """
    Appends a document and returns (doc_id, stored data).

    The returned data has SERVER_TIMESTAMP resolved to `server_time`.
    """
    doc_id = uuid.uuid4().hex
    payload = encode_document(data, server_time)
    stored = decode_document(payload)

    sort_ts = stored.get(TIMESTAMP_FIELD)
    sort_value = sort_ts.isoformat() if isinstance(sort_ts, datetime) else None

    conn.execute(
        """
        INSERT INTO documents (doc_id, collection, data, sort_timestamp, created_at)
        VALUES (?, ?, ?, ?, ?);
        """,
        (doc_id, collection, payload, sort_value, _to_utc(server_time).isoformat()),
    )
    conn.commit()
    return doc_id, stored


def fetch_documents(
    conn: sqlite3.Connection, collection: str, ordered: bool = False
) -> list[tuple[str, dict[str, Any]]]:
    """
    Returns every document in `collection`.

    With `ordered`, rows come newest first by native timestamp; rows without
    one follow in reverse insertion order.
    """
    query = "SELECT doc_id, data FROM documents WHERE collection = ?"
    if ordered:
        query += " ORDER BY sort_timestamp DESC, seq DESC"
    rows = conn.execute(query, (collection,)).fetchall()
    return [(row["doc_id"], decode_document(row["data"])) for row in rows]
