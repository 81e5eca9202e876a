"""
Crumb Coach Timeline - Recommendation Generator
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): action_required tips for the active step and
                      readiness_check once the active step's time is up
v1.0.0 (2026-10-05): Initial environment warning and duration advisories
"""

import logging
from datetime import datetime
from typing import List, Optional

from models.environment import EnvironmentFactors, EnvironmentReading, EnvironmentStatus
from models.recommendation import SmartRecommendation, RecommendationType, Severity
from models.timeline import TimelineStep, StepStatus, Confidence
from services.adjustment_factors import (
    OPTIMAL_TEMPERATURE_C, OPTIMAL_HUMIDITY_PCT, DEFAULT_ENVIRONMENT, resolve_reading,
)

logger = logging.getLogger(__name__)

# Adjustments closer to 1.0 than this are applied silently
ADVISORY_FACTOR_DEVIATION = 0.15

# Remedial tip thresholds relative to the optimum
TIP_TEMPERATURE_DELTA_C = 3.0
TIP_DRY_DELTA_PCT = 10.0
TIP_HUMID_DELTA_PCT = 15.0


def _environment_tips(reading: Optional[EnvironmentReading]) -> List[tuple]:
    """(kind, advice) pairs for the current reading"""
    values = resolve_reading(reading, DEFAULT_ENVIRONMENT)
    if values is None:
        return []
    temp, humidity = values
    tips = []

    if temp < OPTIMAL_TEMPERATURE_C - TIP_TEMPERATURE_DELTA_C:
        tips.append(("temperature", "Consider moving to a warmer location or using a proofing box"))
    elif temp > OPTIMAL_TEMPERATURE_C + TIP_TEMPERATURE_DELTA_C:
        tips.append(("temperature", "Move to a cooler location to slow fermentation"))

    if humidity < OPTIMAL_HUMIDITY_PCT - TIP_DRY_DELTA_PCT:
        tips.append(("humidity", "Cover dough to prevent surface drying"))
    elif humidity > OPTIMAL_HUMIDITY_PCT + TIP_HUMID_DELTA_PCT:
        tips.append(("humidity", "Ensure good air circulation to prevent over-proofing"))

    return tips


def generate_recommendations(factors: EnvironmentFactors, steps: List[TimelineStep],
                             auto_applied: bool = True,
                             reading: Optional[EnvironmentReading] = None,
                             now: Optional[datetime] = None) -> List[SmartRecommendation]:
    """
    Derive the full advisory set for a step list.

    Called after every recalculation pass; the result replaces the previous
    set, which is how dismissed recommendations come back.
    """
    recs: List[SmartRecommendation] = []

    if factors.status == EnvironmentStatus.POOR:
        recs.append(SmartRecommendation(
            id="env-warning",
            type=RecommendationType.ENVIRONMENT_WARNING,
            severity=Severity.WARNING,
            title="Suboptimal Environment",
            description="Current conditions may significantly affect fermentation. "
                        "Consider adjusting your environment.",
            action_label="View Details",
        ))

    for step in steps:
        adjustment = step.adjustment
        if adjustment is None or abs(adjustment.factor - 1.0) <= ADVISORY_FACTOR_DEVIATION:
            continue
        recs.append(SmartRecommendation(
            id=f"adj-{step.id}",
            type=RecommendationType.DURATION_ADJUSTMENT,
            severity=Severity.WARNING if adjustment.confidence == Confidence.LOW else Severity.INFO,
            title=f"{step.name} Duration Adjusted",
            description=f"{adjustment.reason}. {step.original_duration_minutes}min → "
                        f"{step.adjusted_duration_minutes}min",
            step_id=step.id,
            auto_applied=auto_applied,
        ))

    active = next((step for step in steps if step.status == StepStatus.ACTIVE), None)
    if active is not None:
        if active.is_environment_sensitive:
            for kind, advice in _environment_tips(reading):
                recs.append(SmartRecommendation(
                    id=f"tip-{active.id}-{kind}",
                    type=RecommendationType.ACTION_REQUIRED,
                    severity=Severity.INFO,
                    title=f"Help {active.name} along",
                    description=advice,
                    step_id=active.id,
                ))

        if now is not None and active.end_time is not None and active.end_time <= now:
            recs.append(SmartRecommendation(
                id=f"ready-{active.id}",
                type=RecommendationType.READINESS_CHECK,
                severity=Severity.INFO,
                title=f"Check {active.name}",
                description="The planned time is up. Check the dough before moving on.",
                action_label="Mark done",
                step_id=active.id,
            ))

    logger.debug(f"Generated {len(recs)} recommendations")
    return recs


def dismiss(recommendations: List[SmartRecommendation], rec_id: str) -> List[SmartRecommendation]:
    """Drop one recommendation until the next regeneration"""
    return [rec for rec in recommendations if rec.id != rec_id]
