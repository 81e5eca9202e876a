"""
Crumb Coach Timeline - Database Connection Manager
Version: 1.0.0

Changelog:
v1.0.0 (2026-10-05): Initial database connection manager with async helpers

Provides centralized async SQLite connection management for the bake manager
and API endpoints. Uses aiosqlite with WAL journal mode.
"""

import os
import aiosqlite
from contextlib import asynccontextmanager

from config import settings

_db_path: str = None


def get_db_path() -> str:
    """Resolve database path, create data directory if needed"""
    global _db_path
    if _db_path is None:
        _db_path = os.environ.get("CRUMB_TIMELINE_DB", settings.SQLITE_DB_PATH)
        os.makedirs(os.path.dirname(os.path.abspath(_db_path)), exist_ok=True)
    return _db_path


@asynccontextmanager
async def get_db():
    """Async context manager yielding an aiosqlite connection with WAL"""
    db = await aiosqlite.connect(get_db_path())
    db.row_factory = aiosqlite.Row
    await db.execute("PRAGMA journal_mode=WAL")
    try:
        yield db
    finally:
        await db.close()


async def execute_all(db, sql: str, params=()) -> list[dict]:
    """Execute query and return all rows as list of dicts"""
    cursor = await db.execute(sql, params)
    rows = await cursor.fetchall()
    return [dict(row) for row in rows]


async def execute_insert(db, sql: str, params=()) -> int:
    """Execute INSERT, commit, and return lastrowid"""
    cursor = await db.execute(sql, params)
    await db.commit()
    return cursor.lastrowid
