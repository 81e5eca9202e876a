"""
Crumb Coach Timeline - Timeline Models
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-19): Bake start times normalised to naive local time
v1.1.0 (2026-10-12): completed_at on steps; recalibration offset and summary
v1.0.0 (2026-10-05): Initial timeline step, adjustment and state models
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum

from .environment import EnvironmentFactors, EnvironmentReading, to_local_naive
from .recommendation import SmartRecommendation


class StepType(str, Enum):
    """Semantic bake stage, drives environment sensitivity"""
    AUTOLYSE = "autolyse"
    BULK_FERMENT = "bulk_ferment"
    PRE_SHAPE = "pre_shape"
    FINAL_PROOF = "final_proof"
    BAKE = "bake"
    OTHER = "other"


class StepStatus(str, Enum):
    """Step lifecycle: pending -> active -> completed (or pending -> completed)"""
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


class Confidence(str, Enum):
    """Confidence in an adjusted duration"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def coerce_step_type(value):
    """Map unrecognized step types to OTHER instead of failing validation"""
    if isinstance(value, StepType):
        return value
    try:
        return StepType(str(value).lower())
    except ValueError:
        return StepType.OTHER


class TimelineAdjustment(BaseModel):
    """Record of a material change to a step's duration"""
    step_id: str
    original_duration: int = Field(..., description="Baseline minutes")
    adjusted_duration: int = Field(..., description="Effective minutes")
    reason: str
    confidence: Confidence
    factor: float = Field(..., description="Multiplier applied to the baseline")


class TimelineStep(BaseModel):
    """One stage of an in-progress bake"""
    id: str
    name: str
    step_type: StepType = StepType.OTHER
    original_duration_minutes: int = Field(..., ge=0, description="Immutable baseline from the recipe")
    adjusted_duration_minutes: int = Field(..., ge=0, description="Current effective duration")
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: StepStatus = StepStatus.PENDING
    is_environment_sensitive: bool = True
    adjustment: Optional[TimelineAdjustment] = None
    completed_at: Optional[datetime] = Field(None, description="When the step was marked done or skipped")

    @field_validator("step_type", mode="before")
    @classmethod
    def _coerce_step_type(cls, value):
        return coerce_step_type(value)


class StepSeed(BaseModel):
    """Step definition supplied when a bake starts"""
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    step_type: StepType = StepType.OTHER
    original_duration_minutes: int = Field(..., ge=0)
    is_environment_sensitive: Optional[bool] = Field(None, description="Overrides the type-derived flag")

    @field_validator("step_type", mode="before")
    @classmethod
    def _coerce_step_type(cls, value):
        return coerce_step_type(value)


class TimelineState(BaseModel):
    """Everything one bake's timeline owns"""
    bake_id: str
    started_at: datetime
    steps: List[TimelineStep] = Field(default_factory=list)
    recommendations: List[SmartRecommendation] = Field(default_factory=list)
    factors: EnvironmentFactors = Field(default_factory=EnvironmentFactors)
    reading: Optional[EnvironmentReading] = None
    auto_adjust: bool = True
    last_auto_adjustment_at: Optional[datetime] = None
    offset_minutes: int = Field(0, description="Recalibration shift applied to the remaining steps")

    @field_validator("started_at", "last_auto_adjustment_at")
    @classmethod
    def _local_times(cls, value):
        return to_local_naive(value)


class TimelineSummary(BaseModel):
    """Progress overview for the timeline header"""
    bake_id: str
    current_step: int = Field(..., description="1-based index of the active step, 0 if none")
    total_steps: int
    completed_steps: int
    progress_percent: int
    estimated_end_time: Optional[datetime] = None
    remaining_minutes: int
    environment_status: str
    environment_label: str


class TimelineCreate(BaseModel):
    """Start-bake request"""
    bake_id: str = Field(..., min_length=1, max_length=100)
    steps: Optional[List[StepSeed]] = Field(None, description="Defaults to the sourdough template")
    started_at: Optional[datetime] = None
    auto_adjust: Optional[bool] = None

    @field_validator("started_at")
    @classmethod
    def _local_started_at(cls, value):
        return to_local_naive(value)


class DurationOverride(BaseModel):
    """Manual duration override for one step"""
    adjusted_duration_minutes: int = Field(..., ge=0)
    reason: Optional[str] = None


class RecalibrateRequest(BaseModel):
    """Shift every remaining step later (positive) or earlier (negative)"""
    delta_minutes: int = Field(..., ge=-24 * 60, le=24 * 60)


class AutoAdjustUpdate(BaseModel):
    """Enable or disable automatic environment adjustment"""
    enabled: bool


SOURDOUGH_TEMPLATE: List[StepSeed] = [
    StepSeed(id="autolyse", name="Autolyse", step_type=StepType.AUTOLYSE, original_duration_minutes=30),
    StepSeed(id="bulk-ferment", name="Bulk Fermentation", step_type=StepType.BULK_FERMENT,
             original_duration_minutes=240),
    StepSeed(id="pre-shape", name="Pre-shape", step_type=StepType.PRE_SHAPE, original_duration_minutes=20),
    StepSeed(id="bench-rest", name="Bench Rest", step_type=StepType.OTHER, original_duration_minutes=30,
             is_environment_sensitive=False),
    StepSeed(id="final-proof", name="Final Proof", step_type=StepType.FINAL_PROOF,
             original_duration_minutes=120),
    StepSeed(id="bake", name="Bake", step_type=StepType.BAKE, original_duration_minutes=45),
]
