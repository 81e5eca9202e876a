"""
Crumb Coach Timeline - Timeline Recalculation Engine
Version: 1.3.0

Changelog:
v1.3.0 (2026-10-19): Adjusted durations round halves up (40.5 -> 41)
v1.2.0 (2026-10-14): Recalibration offset before the first open step;
                      completed steps never move the clock backwards
v1.1.0 (2026-10-12): Reason attribution uses the per-factor deviation instead
                      of comparing raw temperatures against scaled integers
v1.0.0 (2026-10-05): Initial recalculation engine

A recalculation pass is three rules applied together to one step list:

1. Every environment-sensitive, not-completed step gets
   adjusted = round_half_up(original * sensitivity_factor(type, combined)).
2. A TimelineAdjustment is attached when |adjusted - original| >= 5 minutes,
   otherwise any previous adjustment is cleared.
3. Start/end times are re-sequenced from the bake start: completed steps keep
   their recorded times and advance the clock to their end; every open step
   starts where the previous one ended.

All functions return new lists; the input steps are never mutated. Durations
always derive from the immutable original, so repeated passes with the same
factors produce the same list.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional

from models.environment import EnvironmentFactors, EnvironmentReading
from models.timeline import (
    TimelineStep, TimelineAdjustment, TimelineSummary, StepSeed,
    StepStatus, Confidence,
)
from services.adjustment_factors import environment_label
from services.step_sensitivity import sensitivity_factor, is_environment_sensitive

logger = logging.getLogger(__name__)

MATERIALITY_THRESHOLD_MINUTES = 5
RECALC_THROTTLE_MINUTES = 5
MANUAL_ADJUSTMENT_REASON = "Manual adjustment"


class TimelineError(ValueError):
    """Operation targets a step that does not exist or cannot change"""


class StepNotFoundError(TimelineError):
    """No step with the requested id"""


# ----------------------------------------------------------------------------
# Seeding
# ----------------------------------------------------------------------------

def build_steps(seeds: List[StepSeed]) -> List[TimelineStep]:
    """Create pending steps from recipe seeds; the first step starts active"""
    steps = []
    for index, seed in enumerate(seeds):
        sensitive = seed.is_environment_sensitive
        if sensitive is None:
            sensitive = is_environment_sensitive(seed.step_type)
        steps.append(TimelineStep(
            id=seed.id,
            name=seed.name,
            step_type=seed.step_type,
            original_duration_minutes=seed.original_duration_minutes,
            adjusted_duration_minutes=seed.original_duration_minutes,
            status=StepStatus.ACTIVE if index == 0 else StepStatus.PENDING,
            is_environment_sensitive=sensitive,
        ))
    return steps


# ----------------------------------------------------------------------------
# Rules 1-2: environment adjustment
# ----------------------------------------------------------------------------

def round_half_up(value: float) -> int:
    """Nearest whole minute, halves rounding up"""
    return int(math.floor(value + 0.5))


def confidence_for(factor: float) -> Confidence:
    """Confidence shrinks as the factor moves away from 1.0"""
    deviation = abs(factor - 1.0)
    if deviation < 0.1:
        return Confidence.HIGH
    if deviation < 0.2:
        return Confidence.MEDIUM
    return Confidence.LOW


def adjustment_reason(factor: float, factors: EnvironmentFactors) -> str:
    """
    Explain an automatic adjustment.

    The explanation names whichever of temperature or humidity sits further
    from its optimum in the direction of the change, measured by how far its
    own factor is from 1.0. Ties go to temperature.
    """
    t_dev = factors.temperature_factor - 1.0
    h_dev = factors.humidity_factor - 1.0

    if factor > 1.1:
        if max(t_dev, 0.0) >= max(h_dev, 0.0):
            return "Extended due to cool temperature"
        return "Extended due to low humidity"
    if factor < 0.9:
        if max(-t_dev, 0.0) >= max(-h_dev, 0.0):
            return "Shortened due to warm temperature"
        return "Shortened due to high humidity"
    return "Adjusted for current conditions"


def adjust_step(step: TimelineStep, factors: EnvironmentFactors,
                materiality: int = MATERIALITY_THRESHOLD_MINUTES) -> TimelineStep:
    """Apply rules 1-2 to a single step"""
    if not step.is_environment_sensitive or step.status == StepStatus.COMPLETED:
        return step

    factor = sensitivity_factor(step.step_type, factors.combined_factor)
    adjusted = round_half_up(step.original_duration_minutes * factor)

    adjustment = None
    if abs(adjusted - step.original_duration_minutes) >= materiality:
        adjustment = TimelineAdjustment(
            step_id=step.id,
            original_duration=step.original_duration_minutes,
            adjusted_duration=adjusted,
            reason=adjustment_reason(factor, factors),
            confidence=confidence_for(factor),
            factor=factor,
        )

    return step.model_copy(update={
        "adjusted_duration_minutes": adjusted,
        "adjustment": adjustment,
    })


def apply_environment(steps: List[TimelineStep], factors: EnvironmentFactors,
                      materiality: int = MATERIALITY_THRESHOLD_MINUTES) -> List[TimelineStep]:
    """Apply rules 1-2 to every step"""
    return [adjust_step(step, factors, materiality) for step in steps]


# ----------------------------------------------------------------------------
# Rule 3: time sequencing
# ----------------------------------------------------------------------------

def recalculate_times(steps: List[TimelineStep], start_time: datetime,
                      offset_minutes: int = 0) -> List[TimelineStep]:
    """Re-sequence start/end times from the bake start"""
    clock = start_time
    offset_pending = True
    result = []

    for step in steps:
        if step.status == StepStatus.COMPLETED and step.end_time is not None:
            clock = max(clock, step.end_time)
            result.append(step)
            continue

        if offset_pending and step.status != StepStatus.COMPLETED:
            clock = clock + timedelta(minutes=offset_minutes)
            offset_pending = False

        start = clock
        end = start + timedelta(minutes=step.adjusted_duration_minutes)
        result.append(step.model_copy(update={"start_time": start, "end_time": end}))
        clock = end

    return result


def recalculation_pass(steps: List[TimelineStep], factors: EnvironmentFactors,
                       start_time: datetime, offset_minutes: int = 0,
                       materiality: int = MATERIALITY_THRESHOLD_MINUTES) -> List[TimelineStep]:
    """Rules 1-3 as one atomic pass; an empty list stays empty"""
    if not steps:
        return []
    adjusted = apply_environment(steps, factors, materiality)
    result = recalculate_times(adjusted, start_time, offset_minutes)
    logger.debug(f"Recalculated {len(result)} steps at combined factor "
                 f"{factors.combined_factor:.3f}")
    return result


def should_auto_recalculate(last_adjustment: Optional[datetime], now: datetime,
                            throttle_minutes: float = RECALC_THROTTLE_MINUTES) -> bool:
    """Rate limit for automatic passes triggered by sensor readings"""
    if last_adjustment is None:
        return True
    return now - last_adjustment >= timedelta(minutes=throttle_minutes)


# ----------------------------------------------------------------------------
# Manual actions
# ----------------------------------------------------------------------------

def _index_of(steps: List[TimelineStep], step_id: str) -> int:
    for index, step in enumerate(steps):
        if step.id == step_id:
            return index
    raise StepNotFoundError(f"Step '{step_id}' not found")


def apply_manual_override(steps: List[TimelineStep], step_id: str, minutes: int,
                          reason: Optional[str] = None) -> List[TimelineStep]:
    """Set one step's duration explicitly; times are not re-sequenced here"""
    index = _index_of(steps, step_id)
    step = steps[index]
    if step.status == StepStatus.COMPLETED:
        raise TimelineError(f"Step '{step_id}' is already completed")

    original = step.original_duration_minutes
    factor = minutes / original if original else 1.0

    result = list(steps)
    result[index] = step.model_copy(update={
        "adjusted_duration_minutes": minutes,
        "adjustment": TimelineAdjustment(
            step_id=step_id,
            original_duration=original,
            adjusted_duration=minutes,
            reason=reason or MANUAL_ADJUSTMENT_REASON,
            confidence=Confidence.HIGH,
            factor=factor,
        ),
    })
    return result


def mark_step_done(steps: List[TimelineStep], step_id: str,
                   at: Optional[datetime] = None) -> List[TimelineStep]:
    """
    Complete a step and hand the active slot to the next pending step.

    Completing an already completed step is a no-op. The next step is only
    activated when no other step is active, so the list never holds two
    active steps.
    """
    index = _index_of(steps, step_id)
    target = steps[index]
    if target.status == StepStatus.COMPLETED:
        return list(steps)

    result = list(steps)
    result[index] = target.model_copy(update={
        "status": StepStatus.COMPLETED,
        "completed_at": at or datetime.now(),
    })

    if any(step.status == StepStatus.ACTIVE for step in result):
        return result

    for j in range(index + 1, len(result)):
        if result[j].status == StepStatus.PENDING:
            result[j] = result[j].model_copy(update={"status": StepStatus.ACTIVE})
            break
    return result


def skip_step(steps: List[TimelineStep], step_id: str,
              at: Optional[datetime] = None) -> List[TimelineStep]:
    """Same transition as mark_step_done; the difference is only reported to analytics"""
    return mark_step_done(steps, step_id, at)


# ----------------------------------------------------------------------------
# Summary
# ----------------------------------------------------------------------------

def summarize(bake_id: str, steps: List[TimelineStep], factors: EnvironmentFactors,
              reading: Optional[EnvironmentReading] = None) -> TimelineSummary:
    """Header figures: current step, progress and estimated finish"""
    total = len(steps)
    completed = sum(1 for step in steps if step.status == StepStatus.COMPLETED)
    current = next((i + 1 for i, step in enumerate(steps) if step.status == StepStatus.ACTIVE), 0)
    remaining = sum(step.adjusted_duration_minutes for step in steps
                    if step.status != StepStatus.COMPLETED)

    return TimelineSummary(
        bake_id=bake_id,
        current_step=current,
        total_steps=total,
        completed_steps=completed,
        progress_percent=round_half_up(completed / total * 100) if total else 0,
        estimated_end_time=steps[-1].end_time if steps else None,
        remaining_minutes=remaining,
        environment_status=factors.status.value,
        environment_label=environment_label(reading),
    )
