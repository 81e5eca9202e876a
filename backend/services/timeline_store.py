"""
Crumb Coach Timeline - Timeline State Store
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-19): Event times normalised to naive local time
v1.1.0 (2026-10-14): Recalibration and auto-adjust toggle events
v1.0.0 (2026-10-12): Reducer-based store replacing implicit re-render updates

Every change to a bake's timeline goes through reduce(state, event), a pure
transition function. TimelineStore owns the current state for one bake,
applies events in the order they are dispatched, and reports analytics to an
injected TimelineEventSink.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from models.environment import EnvironmentReading, to_local_naive
from models.timeline import (
    TimelineState, TimelineStep, TimelineAdjustment, StepSeed, StepStatus,
)
from services import timeline_engine as engine
from services.adjustment_factors import factors_for
from services.recommendation_engine import generate_recommendations, dismiss
from services.timeline_events import TimelineEventSink, LoggingEventSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """Thresholds applied by the reducer"""
    throttle_minutes: float = engine.RECALC_THROTTLE_MINUTES
    materiality_minutes: int = engine.MATERIALITY_THRESHOLD_MINUTES

    @classmethod
    def from_settings(cls, settings) -> "EngineConfig":
        return cls(
            throttle_minutes=settings.RECALC_THROTTLE_MINUTES,
            materiality_minutes=settings.MATERIALITY_THRESHOLD_MINUTES,
        )


DEFAULT_CONFIG = EngineConfig()


# ----------------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class ReadingReceived:
    reading: Optional[EnvironmentReading]
    at: datetime


@dataclass(frozen=True)
class StepMarkedDone:
    step_id: str
    at: datetime


@dataclass(frozen=True)
class StepSkipped:
    step_id: str
    at: datetime


@dataclass(frozen=True)
class DurationOverridden:
    step_id: str
    minutes: int
    reason: Optional[str] = None


@dataclass(frozen=True)
class RecommendationDismissed:
    rec_id: str


@dataclass(frozen=True)
class TimelineRecalibrated:
    delta_minutes: int


@dataclass(frozen=True)
class AutoAdjustToggled:
    enabled: bool


# ----------------------------------------------------------------------------
# Reducer
# ----------------------------------------------------------------------------

def initial_state(bake_id: str, seeds: List[StepSeed], started_at: datetime,
                  auto_adjust: bool = True) -> TimelineState:
    """State for a bake that has just started"""
    state = TimelineState(bake_id=bake_id, started_at=started_at, auto_adjust=auto_adjust)
    steps = engine.recalculate_times(engine.build_steps(seeds), state.started_at)
    return state.model_copy(update={"steps": steps})


def _regenerate(state: TimelineState, steps: List[TimelineStep], now: datetime):
    return generate_recommendations(state.factors, steps, state.auto_adjust, state.reading, now)


def _reduce_reading(state: TimelineState, event: ReadingReceived,
                    config: EngineConfig) -> TimelineState:
    factors = factors_for(event.reading)
    state = state.model_copy(update={"reading": event.reading, "factors": factors})

    if not state.steps:
        return state
    if not engine.should_auto_recalculate(state.last_auto_adjustment_at, event.at,
                                          config.throttle_minutes):
        logger.debug(f"Bake {state.bake_id}: recalculation throttled")
        return state

    if state.auto_adjust:
        steps = engine.recalculation_pass(state.steps, factors, state.started_at,
                                          state.offset_minutes, config.materiality_minutes)
    else:
        steps = engine.recalculate_times(state.steps, state.started_at, state.offset_minutes)

    return state.model_copy(update={
        "steps": steps,
        "recommendations": _regenerate(state, steps, event.at),
        "last_auto_adjustment_at": event.at,
    })


def _reduce_completion(state: TimelineState, step_id: str, at: datetime) -> TimelineState:
    steps = engine.mark_step_done(state.steps, step_id, at)
    steps = engine.recalculate_times(steps, state.started_at, state.offset_minutes)
    completed = {step.id for step in steps if step.status == StepStatus.COMPLETED}
    recs = [rec for rec in state.recommendations if rec.step_id not in completed]
    return state.model_copy(update={"steps": steps, "recommendations": recs})


def reduce(state: TimelineState, event, config: EngineConfig = DEFAULT_CONFIG) -> TimelineState:
    """Apply one event; returns a new state and never mutates the old one"""
    if isinstance(event, ReadingReceived):
        return _reduce_reading(state, event, config)

    if isinstance(event, (StepMarkedDone, StepSkipped)):
        return _reduce_completion(state, event.step_id, event.at)

    if isinstance(event, DurationOverridden):
        steps = engine.apply_manual_override(state.steps, event.step_id, event.minutes, event.reason)
        steps = engine.recalculate_times(steps, state.started_at, state.offset_minutes)
        return state.model_copy(update={
            "steps": steps,
            "recommendations": _regenerate(state, steps, None),
        })

    if isinstance(event, RecommendationDismissed):
        return state.model_copy(update={
            "recommendations": dismiss(state.recommendations, event.rec_id),
        })

    if isinstance(event, TimelineRecalibrated):
        offset = state.offset_minutes + event.delta_minutes
        steps = engine.recalculate_times(state.steps, state.started_at, offset)
        return state.model_copy(update={"steps": steps, "offset_minutes": offset})

    if isinstance(event, AutoAdjustToggled):
        # Next reading runs a full pass under the new mode
        return state.model_copy(update={
            "auto_adjust": event.enabled,
            "last_auto_adjustment_at": None,
        })

    raise TypeError(f"Unsupported timeline event: {type(event).__name__}")


def changed_adjustments(before: List[TimelineStep],
                        after: List[TimelineStep]) -> List[TimelineAdjustment]:
    """Adjustments that are new or different after a transition"""
    previous = {step.id: step.adjustment for step in before}
    return [step.adjustment for step in after
            if step.adjustment is not None and step.adjustment != previous.get(step.id)]



def _event_time(at: Optional[datetime]) -> datetime:
    return to_local_naive(at) if at is not None else datetime.now()

# ----------------------------------------------------------------------------
# Store
# ----------------------------------------------------------------------------

class TimelineStore:
    """Owns and mutates one in-progress bake's timeline"""

    def __init__(self, state: TimelineState,
                 event_sink: Optional[TimelineEventSink] = None,
                 config: EngineConfig = DEFAULT_CONFIG):
        self._state = state
        self.event_sink = event_sink or LoggingEventSink()
        self.config = config

    @classmethod
    def start(cls, bake_id: str, seeds: List[StepSeed],
              started_at: Optional[datetime] = None, auto_adjust: bool = True,
              event_sink: Optional[TimelineEventSink] = None,
              config: EngineConfig = DEFAULT_CONFIG) -> "TimelineStore":
        """Seed a new bake from recipe steps"""
        state = initial_state(bake_id, seeds, started_at or datetime.now(), auto_adjust)
        store = cls(state, event_sink, config)
        store.event_sink.record(
            "bake_start", bake_id,
            total_steps=len(state.steps),
            estimated_duration_minutes=sum(s.adjusted_duration_minutes for s in state.steps),
        )
        return store

    @property
    def state(self) -> TimelineState:
        return self._state

    @property
    def bake_id(self) -> str:
        return self._state.bake_id

    def get_step(self, step_id: str) -> Optional[TimelineStep]:
        return next((step for step in self._state.steps if step.id == step_id), None)

    def is_complete(self) -> bool:
        steps = self._state.steps
        return bool(steps) and all(step.status == StepStatus.COMPLETED for step in steps)

    def dispatch(self, event) -> TimelineState:
        """Apply an event and report it; raises TimelineError for invalid targets"""
        before = self._state
        after = reduce(before, event, self.config)
        self._state = after
        self._report(event, before, after)
        return after

    # -- convenience wrappers ------------------------------------------------

    def receive_reading(self, reading: Optional[EnvironmentReading],
                        at: Optional[datetime] = None) -> TimelineState:
        return self.dispatch(ReadingReceived(reading, _event_time(at)))

    def mark_done(self, step_id: str, at: Optional[datetime] = None) -> TimelineState:
        return self.dispatch(StepMarkedDone(step_id, _event_time(at)))

    def skip(self, step_id: str, at: Optional[datetime] = None) -> TimelineState:
        return self.dispatch(StepSkipped(step_id, _event_time(at)))

    def override_duration(self, step_id: str, minutes: int,
                          reason: Optional[str] = None) -> TimelineState:
        return self.dispatch(DurationOverridden(step_id, minutes, reason))

    def dismiss_recommendation(self, rec_id: str) -> TimelineState:
        return self.dispatch(RecommendationDismissed(rec_id))

    def recalibrate(self, delta_minutes: int) -> TimelineState:
        return self.dispatch(TimelineRecalibrated(delta_minutes))

    def set_auto_adjust(self, enabled: bool) -> TimelineState:
        return self.dispatch(AutoAdjustToggled(enabled))

    def summary(self):
        state = self._state
        return engine.summarize(state.bake_id, state.steps, state.factors, state.reading)

    # -- analytics -----------------------------------------------------------

    def _report(self, event, before: TimelineState, after: TimelineState) -> None:
        sink = self.event_sink
        bake_id = after.bake_id

        if isinstance(event, (StepMarkedDone, StepSkipped)):
            index = next(i for i, s in enumerate(after.steps) if s.id == event.step_id)
            step = after.steps[index]
            if before.steps[index].status == StepStatus.COMPLETED:
                return
            if isinstance(event, StepMarkedDone):
                actual = None
                if step.start_time is not None:
                    actual = round((event.at - step.start_time).total_seconds() / 60)
                sink.record("step_complete", bake_id, step_id=step.id, step_name=step.name,
                            step_index=index, actual_duration=actual,
                            estimated_duration=step.adjusted_duration_minutes)
            else:
                sink.record("step_skip", bake_id, step_id=step.id, step_name=step.name,
                            step_index=index, original_duration=step.original_duration_minutes)
            if all(s.status == StepStatus.COMPLETED for s in after.steps):
                sink.record("bake_complete", bake_id,
                            steps_completed=len(after.steps),
                            offset_minutes=after.offset_minutes)

        elif isinstance(event, DurationOverridden):
            sink.record("duration_override", bake_id, step_id=event.step_id,
                        minutes=event.minutes)

        elif isinstance(event, TimelineRecalibrated):
            affected = sum(1 for s in after.steps if s.status != StepStatus.COMPLETED)
            sink.record("recalibrate_apply", bake_id, delta=event.delta_minutes,
                        affected_steps=affected)

        elif isinstance(event, RecommendationDismissed):
            sink.record("recommendation_dismiss", bake_id, recommendation_id=event.rec_id)

        elif isinstance(event, ReadingReceived):
            if after.last_auto_adjustment_at != before.last_auto_adjustment_at:
                changed = changed_adjustments(before.steps, after.steps)
                sink.record("timeline_adjusted", bake_id,
                            combined_factor=round(after.factors.combined_factor, 3),
                            status=after.factors.status.value,
                            adjusted_steps=len(changed))
