"""
Crumb Coach Timeline - Bake Manager Service
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-19): An explicit empty step list starts an empty bake; readings
                      that fail to apply are reported to the submitter
v1.1.0 (2026-10-14): Persist manual overrides with source='manual'; live
                      update callbacks for the WebSocket API
v1.0.0 (2026-10-12): Initial manager holding one TimelineStore per bake

Routes sensor readings and user actions to the right TimelineStore and
persists readings and adjustment records. The stores themselves never touch
the database.
"""

import inspect
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

import aiosqlite

from config import settings
from database import get_db, execute_all, execute_insert
from models.environment import EnvironmentReading
from models.timeline import StepSeed, TimelineState, TimelineAdjustment, SOURDOUGH_TEMPLATE
from services.sensor_poller import SensorPoller, SimulatedSensorSource
from services.timeline_events import TimelineEventSink, LoggingEventSink
from services.timeline_store import TimelineStore, EngineConfig, changed_adjustments

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[TimelineState], object]


class ReadingNotAppliedError(RuntimeError):
    """A submitted reading was stored but a bake failed to apply it"""


class BakeManager:
    """Owns every in-progress bake's timeline"""

    def __init__(self, poller: SensorPoller,
                 event_sink: Optional[TimelineEventSink] = None,
                 config: Optional[EngineConfig] = None,
                 auto_adjust: bool = True,
                 persist: bool = True):
        self.poller = poller
        self.event_sink = event_sink or LoggingEventSink()
        self.config = config or EngineConfig()
        self.auto_adjust = auto_adjust
        self.persist = persist
        self.stores: Dict[str, TimelineStore] = {}
        self._update_callbacks: List[UpdateCallback] = []
        self.last_reading_failures: Dict[str, Exception] = {}
        poller.add_listener(self.handle_reading)

    def on_update(self, callback: UpdateCallback):
        """Register a callback receiving every changed timeline state"""
        self._update_callbacks.append(callback)

    # -- bake lifecycle -----------------------------------------------------

    async def start_bake(self, bake_id: str, seeds: Optional[List[StepSeed]] = None,
                         started_at: Optional[datetime] = None,
                         auto_adjust: Optional[bool] = None) -> TimelineState:
        """Seed a timeline and apply the latest reading to it"""
        if bake_id in self.stores:
            raise ValueError(f"Bake '{bake_id}' already in progress")

        store = TimelineStore.start(
            bake_id,
            SOURDOUGH_TEMPLATE if seeds is None else seeds,
            started_at=started_at,
            auto_adjust=self.auto_adjust if auto_adjust is None else auto_adjust,
            event_sink=self.event_sink,
            config=self.config,
        )
        self.stores[bake_id] = store
        logger.info(f"Bake {bake_id}: started with {len(store.state.steps)} steps")

        if self.poller.latest is None:
            return store.state
        before = store.state
        state = store.receive_reading(self.poller.latest)
        await self._after_change(store, before, state, source="auto")
        return state

    def get(self, bake_id: str) -> TimelineStore:
        store = self.stores.get(bake_id)
        if store is None:
            raise KeyError(f"Bake '{bake_id}' not found")
        return store

    def list_bakes(self) -> List[TimelineState]:
        return [store.state for store in self.stores.values()]

    def abandon(self, bake_id: str) -> TimelineState:
        store = self.get(bake_id)
        del self.stores[bake_id]
        logger.info(f"Bake {bake_id}: abandoned")
        return store.state

    # -- user actions -------------------------------------------------------

    async def mark_done(self, bake_id: str, step_id: str) -> TimelineState:
        store = self.get(bake_id)
        return await self._apply(store, store.mark_done, step_id)

    async def skip(self, bake_id: str, step_id: str) -> TimelineState:
        store = self.get(bake_id)
        return await self._apply(store, store.skip, step_id)

    async def override_duration(self, bake_id: str, step_id: str, minutes: int,
                                reason: Optional[str] = None) -> TimelineState:
        store = self.get(bake_id)
        return await self._apply(store, store.override_duration, step_id, minutes, reason,
                                 source="manual")

    async def recalibrate(self, bake_id: str, delta_minutes: int) -> TimelineState:
        store = self.get(bake_id)
        return await self._apply(store, store.recalibrate, delta_minutes)

    async def set_auto_adjust(self, bake_id: str, enabled: bool) -> TimelineState:
        store = self.get(bake_id)
        before = store.state
        state = store.set_auto_adjust(enabled)
        if self.poller.latest is not None:
            state = store.receive_reading(self.poller.latest)
        await self._after_change(store, before, state, source="auto")
        return state

    async def dismiss_recommendation(self, bake_id: str, rec_id: str) -> TimelineState:
        store = self.get(bake_id)
        return await self._apply(store, store.dismiss_recommendation, rec_id)

    async def _apply(self, store: TimelineStore, action, *args, source: str = "auto") -> TimelineState:
        before = store.state
        state = action(*args)
        await self._after_change(store, before, state, source)
        return state

    # -- sensor readings ----------------------------------------------------

    async def handle_reading(self, reading: Optional[EnvironmentReading]) -> Dict[str, Exception]:
        """
        Poller listener: feed the reading to every active bake.

        A bake that fails to apply the reading keeps its previous state and
        does not stop the others; failures are returned and kept in
        last_reading_failures.
        """
        failures: Dict[str, Exception] = {}
        for store in list(self.stores.values()):
            before = store.state
            try:
                state = store.receive_reading(reading)
            except Exception as e:
                logger.exception(f"Bake {store.bake_id}: failed to apply sensor reading")
                failures[store.bake_id] = e
                continue
            await self._after_change(store, before, state, source="auto")
        self.last_reading_failures = failures
        return failures

    async def submit_reading(self, reading: EnvironmentReading,
                             bake_id: Optional[str] = None) -> EnvironmentReading:
        """
        Manual reading entry: persist it and publish it like a polled one.

        Raises ReadingNotAppliedError when the target bake (or, without a
        bake_id, any active bake) could not apply the reading.
        """
        if bake_id is not None:
            self.get(bake_id)
        await self._persist_reading(reading, bake_id)
        self.last_reading_failures = {}
        await self.poller.publish(reading)

        failed = sorted(self.last_reading_failures)
        if bake_id is not None:
            failed = [b for b in failed if b == bake_id]
        if failed:
            raise ReadingNotAppliedError(
                f"Reading not applied to bake(s): {', '.join(failed)}")
        return reading

    # -- persistence and notification ---------------------------------------

    async def _after_change(self, store: TimelineStore, before: TimelineState,
                            after: TimelineState, source: str):
        if after is before:
            return

        changed = changed_adjustments(before.steps, after.steps)
        if changed:
            await self._persist_adjustments(after.bake_id, changed, source)

        for callback in list(self._update_callbacks):
            try:
                result = callback(after)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Bake {after.bake_id}: timeline update callback failed")

        if store.is_complete() and self.stores.get(after.bake_id) is store:
            del self.stores[after.bake_id]
            logger.info(f"Bake {after.bake_id}: complete, timeline released")

    async def _persist_adjustments(self, bake_id: str,
                                   adjustments: List[TimelineAdjustment], source: str):
        if not self.persist:
            return
        try:
            async with get_db() as db:
                await db.executemany("""
                    INSERT INTO timeline_adjustments
                        (bake_id, step_id, original_duration, adjusted_duration,
                         reason, confidence, factor, source)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, [
                    (bake_id, adj.step_id, adj.original_duration, adj.adjusted_duration,
                     adj.reason, adj.confidence.value, adj.factor, source)
                    for adj in adjustments
                ])
                await db.commit()
        except aiosqlite.Error as e:
            logger.error(f"Bake {bake_id}: failed to persist adjustments: {e}")

    async def _persist_reading(self, reading: EnvironmentReading, bake_id: Optional[str]):
        if not self.persist:
            return
        try:
            async with get_db() as db:
                await execute_insert(db, """
                    INSERT INTO sensor_readings (bake_id, temperature_c, humidity_pct, observed_at)
                    VALUES (?, ?, ?, ?)
                """, (bake_id, reading.temperature_c, reading.humidity_pct,
                      reading.observed_at.isoformat()))
        except aiosqlite.Error as e:
            logger.error(f"Failed to persist sensor reading: {e}")

    async def get_adjustment_history(self, bake_id: str) -> List[dict]:
        async with get_db() as db:
            return await execute_all(db, """
                SELECT step_id, original_duration, adjusted_duration, reason,
                       confidence, factor, source, created_at
                FROM timeline_adjustments
                WHERE bake_id = ?
                ORDER BY id ASC
            """, (bake_id,))

    async def get_recent_readings(self, limit: int = 50) -> List[dict]:
        async with get_db() as db:
            return await execute_all(db, """
                SELECT bake_id, temperature_c, humidity_pct, observed_at
                FROM sensor_readings
                ORDER BY id DESC
                LIMIT ?
            """, (limit,))


# Singleton instance, created on first use
_manager: Optional[BakeManager] = None


def create_manager() -> BakeManager:
    """Build a manager wired from settings"""
    if not settings.SENSOR_SIMULATED:
        logger.warning("No hardware sensor source configured - using simulated readings")
    poller = SensorPoller(SimulatedSensorSource(), interval=settings.SENSOR_POLL_INTERVAL)
    return BakeManager(
        poller,
        event_sink=LoggingEventSink(),
        config=EngineConfig.from_settings(settings),
        auto_adjust=settings.AUTO_ADJUST,
    )


def get_manager() -> BakeManager:
    """FastAPI dependency returning the process-wide manager"""
    global _manager
    if _manager is None:
        _manager = create_manager()
    return _manager
