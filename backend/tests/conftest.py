"""Pytest fixtures for timeline tests."""

import os
import tempfile
from datetime import datetime, timedelta

# Point settings at a scratch directory before any application import
_TMP_DIR = tempfile.mkdtemp(prefix="crumb-timeline-tests-")
os.environ.setdefault("CRUMB_TIMELINE_DB", os.path.join(_TMP_DIR, "timeline.db"))
os.environ.setdefault("DATA_DIR", os.path.join(_TMP_DIR, "data"))
os.environ.setdefault("LOGS_DIR", os.path.join(_TMP_DIR, "logs"))
os.environ["SENSOR_POLLING_ENABLED"] = "false"

import pytest

from models.environment import EnvironmentReading
from models.timeline import TimelineStep, StepSeed, StepStatus, StepType
from services.timeline_engine import recalculate_times


@pytest.fixture
def bake_start() -> datetime:
    """Fixed bake start time."""
    return datetime(2026, 10, 19, 8, 0)


@pytest.fixture
def near_optimal_reading() -> EnvironmentReading:
    return EnvironmentReading(temperature_c=24.0, humidity_pct=65.0,
                              observed_at=datetime(2026, 10, 19, 9, 0))


@pytest.fixture
def cold_dry_reading() -> EnvironmentReading:
    return EnvironmentReading(temperature_c=18.0, humidity_pct=40.0,
                              observed_at=datetime(2026, 10, 19, 9, 0))


@pytest.fixture
def seeds() -> list:
    """Four-step bake: autolyse, bulk ferment, pre-shape, bake."""
    return [
        StepSeed(id="autolyse", name="Autolyse", step_type=StepType.AUTOLYSE,
                 original_duration_minutes=30),
        StepSeed(id="bulk-ferment", name="Bulk Fermentation", step_type=StepType.BULK_FERMENT,
                 original_duration_minutes=240),
        StepSeed(id="pre-shape", name="Pre-shape", step_type=StepType.PRE_SHAPE,
                 original_duration_minutes=20),
        StepSeed(id="bake", name="Bake", step_type=StepType.BAKE,
                 original_duration_minutes=45),
    ]


def make_step(step_id, step_type, minutes, status=StepStatus.PENDING, sensitive=None):
    """Build a TimelineStep without times."""
    step_type = StepType(step_type)
    if sensitive is None:
        sensitive = step_type not in (StepType.AUTOLYSE, StepType.BAKE)
    return TimelineStep(
        id=step_id,
        name=step_id.replace("-", " ").title(),
        step_type=step_type,
        original_duration_minutes=minutes,
        adjusted_duration_minutes=minutes,
        status=status,
        is_environment_sensitive=sensitive,
    )


@pytest.fixture
def in_progress_steps(bake_start) -> list:
    """[autolyse:completed, bulk-ferment:active, pre-shape:pending, bake:pending] with times."""
    autolyse = make_step("autolyse", "autolyse", 30, StepStatus.COMPLETED).model_copy(update={
        "start_time": bake_start,
        "end_time": bake_start + timedelta(minutes=30),
        "completed_at": bake_start + timedelta(minutes=30),
    })
    steps = [
        autolyse,
        make_step("bulk-ferment", "bulk_ferment", 240, StepStatus.ACTIVE),
        make_step("pre-shape", "pre_shape", 20),
        make_step("bake", "bake", 45),
    ]
    return recalculate_times(steps, bake_start)


@pytest.fixture
def step_factory():
    """make_step as a fixture."""
    return make_step
