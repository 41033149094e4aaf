"""
GeoGuardian Database Module.

This package provides SQLite access for the record store.

Usage:
    from utils.db import get_connection, insert_document
    # or
    from utils.db.documents import fetch_documents
"""

# Connection and Schema
from utils.db.connection import (
    DB_FILENAME,
    get_connection,
)

# Document Operations
from utils.db.documents import (
    SERVER_TIMESTAMP,
    TIMESTAMP_FIELD,
    decode_document,
    encode_document,
    fetch_documents,
    insert_document,
)

__all__ = [
    # Connection
    "DB_FILENAME",
    "get_connection",
    # Documents
    "SERVER_TIMESTAMP",
    "TIMESTAMP_FIELD",
    "encode_document",
    "decode_document",
    "insert_document",
    "fetch_documents",
]
