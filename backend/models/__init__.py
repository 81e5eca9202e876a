"""
Crumb Coach Timeline - Models and Database Schema
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): timeline_adjustments gains source column (auto/manual)
v1.0.0 (2026-10-05): Initial models module; sensor_readings and
                      timeline_adjustments tables
"""

from .environment import EnvironmentReading, EnvironmentFactors, EnvironmentStatus
from .timeline import (
    StepType, StepStatus, Confidence, TimelineAdjustment, TimelineStep,
    StepSeed, TimelineState, TimelineSummary,
)
from .recommendation import SmartRecommendation, RecommendationType, Severity

import aiosqlite
import logging

logger = logging.getLogger(__name__)


async def _add_column_if_missing(db, table, column, col_type, default=None):
    """Idempotent ALTER TABLE ADD COLUMN"""
    cursor = await db.execute(f"PRAGMA table_info({table})")
    existing = {row[1] for row in await cursor.fetchall()}
    if column not in existing:
        default_clause = f" DEFAULT {default}" if default is not None else ""
        await db.execute(f"ALTER TABLE {table} ADD COLUMN {column} {col_type}{default_clause}")


async def init_db():
    """Initialize SQLite database with the timeline schema"""
    from database import get_db_path
    db_path = get_db_path()
    logger.info(f"Initializing database: {db_path}")

    async with aiosqlite.connect(db_path) as db:
        await db.execute("PRAGMA journal_mode=WAL")

        # ================================================================
        # SENSOR READINGS
        # ================================================================
        await db.execute("""
            CREATE TABLE IF NOT EXISTS sensor_readings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                bake_id TEXT,
                temperature_c REAL,
                humidity_pct REAL,
                observed_at TIMESTAMP NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_sensor_readings_observed
            ON sensor_readings (observed_at)
        """)

        # ================================================================
        # TIMELINE ADJUSTMENTS (history of recalculation results)
        # ================================================================
        await db.execute("""
            CREATE TABLE IF NOT EXISTS timeline_adjustments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                bake_id TEXT NOT NULL,
                step_id TEXT NOT NULL,
                original_duration INTEGER NOT NULL,
                adjusted_duration INTEGER NOT NULL,
                reason TEXT,
                confidence TEXT,
                factor REAL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        await _add_column_if_missing(db, "timeline_adjustments", "source", "TEXT", "'auto'")
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_timeline_adjustments_bake
            ON timeline_adjustments (bake_id, step_id)
        """)

        await db.commit()

    logger.info("Database schema ready")
