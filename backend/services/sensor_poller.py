"""
Crumb Coach Timeline - Sensor Polling Service
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-19): Listener failures logged with traceback and listener name
v1.1.0 (2026-10-12): Injected sensor source; listeners notified per poll
v1.0.0 (2026-10-05): Initial poller with simulated ambient readings
"""

import asyncio
import inspect
import logging
import random
from datetime import datetime
from typing import Callable, Dict, List, Optional

from models.environment import EnvironmentReading

logger = logging.getLogger(__name__)


class SensorSource:
    """Supplies one ambient reading per poll, or None when unavailable"""

    async def read(self) -> Optional[EnvironmentReading]:
        raise NotImplementedError


class SimulatedSensorSource(SensorSource):
    """
    Random-walk ambient readings for devices without a sensor.

    Starts from 22-26°C / 55-75% RH and drifts by at most ±0.25°C and ±1%
    per reading, clamped to 18-30°C and 30-90%.
    """

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)
        self.temperature_c = 24 + (self._rng.random() - 0.5) * 4
        self.humidity_pct = 65 + (self._rng.random() - 0.5) * 20

    async def read(self) -> Optional[EnvironmentReading]:
        self.temperature_c += (self._rng.random() - 0.5) * 0.5
        self.humidity_pct += (self._rng.random() - 0.5) * 2
        self.temperature_c = max(18.0, min(30.0, self.temperature_c))
        self.humidity_pct = max(30.0, min(90.0, self.humidity_pct))

        return EnvironmentReading(
            temperature_c=round(self.temperature_c, 1),
            humidity_pct=float(round(self.humidity_pct)),
            observed_at=datetime.now(),
        )


ReadingListener = Callable[[Optional[EnvironmentReading]], object]


class SensorPoller:
    """Polls a sensor source at a fixed cadence and fans readings out"""

    def __init__(self, source: SensorSource, interval: float = 30.0):
        self.source = source
        self.interval = interval
        self.running = False
        self.last_poll: Optional[datetime] = None
        self.latest: Optional[EnvironmentReading] = None
        self.error_count = 0
        self._listeners: List[ReadingListener] = []

    def add_listener(self, callback: ReadingListener):
        self._listeners.append(callback)

    def remove_listener(self, callback: ReadingListener):
        if callback in self._listeners:
            self._listeners.remove(callback)

    async def start_polling(self):
        """Poll until stopped or cancelled"""
        logger.info(f"Starting sensor poller ({type(self.source).__name__}, "
                    f"every {self.interval}s)")
        self.running = True
        try:
            while self.running:
                await self.poll_once()
                await asyncio.sleep(self.interval)
        finally:
            self.running = False
            logger.info("Sensor poller stopped")

    def stop(self):
        self.running = False

    async def poll_once(self) -> Optional[EnvironmentReading]:
        """Take one reading and notify listeners; failures yield None"""
        try:
            reading = await self.source.read()
            self.error_count = 0
        except Exception as e:
            self.error_count += 1
            if self.error_count <= 3:  # Log first 3 errors only
                logger.error(f"Sensor read failed: {e}")
            reading = None

        self.latest = reading
        self.last_poll = datetime.now()
        await self._notify(reading)
        return reading

    async def publish(self, reading: EnvironmentReading):
        """Inject an externally supplied reading (manual entry)"""
        self.latest = reading
        await self._notify(reading)

    async def _notify(self, reading: Optional[EnvironmentReading]):
        for callback in list(self._listeners):
            try:
                result = callback(reading)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Sensor listener {getattr(callback, '__qualname__', callback)} failed")

    def get_status(self) -> Dict:
        return {
            "running": self.running,
            "source": type(self.source).__name__,
            "last_poll": self.last_poll.isoformat() if self.last_poll else None,
            "error_count": self.error_count,
            "has_reading": self.latest is not None,
        }
