"""
Crumb Coach Timeline - Environment Models
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-19): Timestamps normalised to naive local time on input
v1.0.0 (2026-10-05): Initial sensor reading and adjustment factor models
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum


def to_local_naive(value):
    """
    Convert an aware datetime to naive local time.

    Bake state compares timestamps against datetime.now(), so every timestamp
    entering the models uses that same naive local convention.
    """
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class EnvironmentStatus(str, Enum):
    """Overall fermentation environment status"""
    OPTIMAL = "optimal"
    SUBOPTIMAL = "suboptimal"
    POOR = "poor"
    UNKNOWN = "unknown"


class EnvironmentReading(BaseModel):
    """Single ambient reading from the sensor source"""
    temperature_c: Optional[float] = Field(None, description="Ambient temperature in °C")
    humidity_pct: Optional[float] = Field(None, ge=0, le=100, description="Relative humidity in %")
    observed_at: datetime = Field(default_factory=datetime.now, description="Reading timestamp")

    @field_validator("observed_at")
    @classmethod
    def _local_observed_at(cls, value):
        return to_local_naive(value)


class EnvironmentFactors(BaseModel):
    """Dimensionless fermentation multipliers derived from a reading"""
    temperature_factor: float = Field(1.0, description="Multiplier from temperature deviation")
    humidity_factor: float = Field(1.0, description="Multiplier from humidity deviation")
    combined_factor: float = Field(1.0, description="temperature_factor * humidity_factor")
    status: EnvironmentStatus = Field(EnvironmentStatus.UNKNOWN, description="Derived from combined_factor")


class ReadingCreate(BaseModel):
    """Manual sensor reading submission"""
    temperature_c: float = Field(..., ge=-40, le=80)
    humidity_pct: float = Field(..., ge=0, le=100)
    observed_at: Optional[datetime] = None

    @field_validator("observed_at")
    @classmethod
    def _local_observed_at(cls, value):
        return to_local_naive(value)


class SensorSnapshot(BaseModel):
    """Latest reading with its derived factors, for the sensor widget"""
    reading: Optional[EnvironmentReading] = None
    factors: EnvironmentFactors
    label: str = Field(..., description="Short human label, e.g. 'Optimal' or 'Cold'")
