"""
Crumb Coach Timeline - Timeline Event Sinks
Version: 1.0.0

Changelog:
v1.0.0 (2026-10-12): Injected analytics sinks for timeline stores

Event names: bake_start, bake_complete, step_complete, step_skip,
duration_override, recalibrate_apply, recommendation_dismiss,
timeline_adjusted.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class TimelineEventSink:
    """Receives analytics events from a TimelineStore"""

    def record(self, event: str, bake_id: str, **properties: Any) -> None:
        raise NotImplementedError


class LoggingEventSink(TimelineEventSink):
    """Writes events to the application log"""

    def record(self, event: str, bake_id: str, **properties: Any) -> None:
        details = ", ".join(f"{key}={value}" for key, value in properties.items())
        logger.info(f"Bake {bake_id}: {event}" + (f" ({details})" if details else ""))


class MemoryEventSink(TimelineEventSink):
    """Keeps events in memory, newest last"""

    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    def record(self, event: str, bake_id: str, **properties: Any) -> None:
        self.events.append({
            "event": event,
            "bake_id": bake_id,
            "timestamp": datetime.now(),
            **properties,
        })

    def names(self) -> List[str]:
        return [entry["event"] for entry in self.events]
