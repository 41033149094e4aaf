"""
Database Connection and Schema Management.

This module handles SQLite connection creation and schema initialization
for the record store (one `documents` table holding every collection).
"""

import sqlite3
from pathlib import Path

from config import get_config

DB_FILENAME = "records.db"

# Module-level cache: initialize schema once per database path.
# Tests point DATABASE_PATH at tmp dirs, so schema init is keyed by db path.
_schema_initialized_paths: set[Path] = set()


def _get_db_path() -> Path:
    cfg = get_config()
    db_path = Path(cfg.get("DATABASE_PATH") or Path(cfg["OUTPUT_DIR"]) / DB_FILENAME)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    global _schema_initialized_paths
    if db_path is None:
        db_path = _get_db_path()
    else:
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    if db_path not in _schema_initialized_paths:
        _init_schema(conn)
        _schema_initialized_paths.add(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def _init_schema(conn: sqlite3.Connection) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS documents (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            doc_id TEXT NOT NULL UNIQUE,
            collection TEXT NOT NULL,
            data TEXT NOT NULL,
            sort_timestamp TEXT,
            created_at TEXT NOT NULL
        );
        """)
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_documents_collection_ts "
        "ON documents(collection, sort_timestamp DESC);"
    )
    conn.commit()
