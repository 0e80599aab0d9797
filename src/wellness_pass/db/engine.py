"""Database engine setup and initialization."""

import sqlite3
from pathlib import Path

import aiosqlite

# Default data directory
DATA_DIR = Path(__file__).parent.parent.parent.parent / "data"


def get_data_dir(data_dir: Path | None = None) -> Path:
    """Get the data directory, creating it if needed."""
    if data_dir is None:
        data_dir = DATA_DIR
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_db_path(data_dir: Path | None = None) -> Path:
    """Get the document store file path."""
    return get_data_dir(data_dir) / "wellness_pass.db"


def get_cache_path(data_dir: Path | None = None) -> Path:
    """Get the local cache file path."""
    return get_data_dir(data_dir) / "local_cache.db"


async def init_db(db_path: Path | None = None) -> None:
    """Initialize the document store schema."""
    if db_path is None:
        db_path = get_db_path()

    async with aiosqlite.connect(db_path) as db:
        # One row per document; fields live in the JSON body
        await db.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                collection TEXT NOT NULL,
                id TEXT NOT NULL,
                data TEXT NOT NULL,
                PRIMARY KEY (collection, id)
            )
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_documents_collection
            ON documents(collection)
        """)
        await db.commit()


def init_cache(cache_path: Path | None = None) -> None:
    """Initialize the local cache schema."""
    if cache_path is None:
        cache_path = get_cache_path()

    conn = sqlite3.connect(cache_path)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS cache_entries (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        conn.commit()
    finally:
        conn.close()
