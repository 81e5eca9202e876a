"""Tests for recommendation generation."""

from models.environment import EnvironmentFactors, EnvironmentReading, EnvironmentStatus
from models.recommendation import RecommendationType, Severity
from models.timeline import StepStatus
from services.adjustment_factors import factors_for
from services.recommendation_engine import generate_recommendations, dismiss
from services.timeline_engine import recalculation_pass


def ids(recs):
    return [rec.id for rec in recs]


class TestGenerateRecommendations:
    def test_cold_dry_full_set(self, in_progress_steps, cold_dry_reading, bake_start):
        env = factors_for(cold_dry_reading)
        steps = recalculation_pass(in_progress_steps, env, bake_start)
        recs = generate_recommendations(env, steps, reading=cold_dry_reading)

        assert ids(recs) == [
            "env-warning",
            "adj-bulk-ferment",
            "adj-pre-shape",
            "tip-bulk-ferment-temperature",
            "tip-bulk-ferment-humidity",
        ]
        warning = recs[0]
        assert warning.type == RecommendationType.ENVIRONMENT_WARNING
        assert warning.severity == Severity.WARNING
        assert warning.action_label == "View Details"

    def test_duration_adjustment_content(self, in_progress_steps, cold_dry_reading, bake_start):
        env = factors_for(cold_dry_reading)
        steps = recalculation_pass(in_progress_steps, env, bake_start)
        rec = next(r for r in generate_recommendations(env, steps) if r.id == "adj-bulk-ferment")

        assert rec.type == RecommendationType.DURATION_ADJUSTMENT
        assert rec.severity == Severity.WARNING
        assert rec.title == "Bulk Ferment Duration Adjusted"
        assert rec.description == "Extended due to cool temperature. 240min → 461min"
        assert rec.step_id == "bulk-ferment"
        assert rec.auto_applied

    def test_near_optimal_is_quiet(self, in_progress_steps, near_optimal_reading, bake_start):
        env = factors_for(near_optimal_reading)
        steps = recalculation_pass(in_progress_steps, env, bake_start)
        assert generate_recommendations(env, steps, reading=near_optimal_reading) == []

    def test_small_adjustment_applied_silently(self, in_progress_steps, bake_start):
        env = EnvironmentFactors(temperature_factor=1.1, humidity_factor=1.0,
                                 combined_factor=1.1, status=EnvironmentStatus.OPTIMAL)
        steps = recalculation_pass(in_progress_steps, env, bake_start)
        assert steps[1].adjustment is not None
        assert generate_recommendations(env, steps) == []

    def test_medium_confidence_is_info(self, in_progress_steps, bake_start):
        env = EnvironmentFactors(temperature_factor=1.18, humidity_factor=1.0,
                                 combined_factor=1.18, status=EnvironmentStatus.OPTIMAL)
        steps = recalculation_pass(in_progress_steps, env, bake_start)
        recs = generate_recommendations(env, steps)
        assert ids(recs) == ["adj-bulk-ferment"]
        assert recs[0].severity == Severity.INFO

    def test_auto_applied_flag_passed_through(self, in_progress_steps, cold_dry_reading, bake_start):
        env = factors_for(cold_dry_reading)
        steps = recalculation_pass(in_progress_steps, env, bake_start)
        recs = generate_recommendations(env, steps, auto_applied=False)
        assert not any(rec.auto_applied for rec in recs)

    def test_warm_humid_tips(self, in_progress_steps):
        reading = EnvironmentReading(temperature_c=30.0, humidity_pct=85.0)
        recs = generate_recommendations(EnvironmentFactors(), in_progress_steps, reading=reading)
        tips = {rec.id: rec.description for rec in recs}
        assert "cooler" in tips["tip-bulk-ferment-temperature"]
        assert "air circulation" in tips["tip-bulk-ferment-humidity"]

    def test_no_tips_for_insensitive_active_step(self, step_factory, cold_dry_reading):
        steps = [step_factory("bake", "bake", 45, StepStatus.ACTIVE)]
        recs = generate_recommendations(EnvironmentFactors(), steps, reading=cold_dry_reading)
        assert recs == []

    def test_no_tips_without_reading(self, in_progress_steps):
        assert generate_recommendations(EnvironmentFactors(), in_progress_steps) == []

    def test_readiness_check_once_time_is_up(self, in_progress_steps):
        bulk = in_progress_steps[1]
        recs = generate_recommendations(EnvironmentFactors(), in_progress_steps, now=bulk.end_time)
        assert ids(recs) == ["ready-bulk-ferment"]
        assert recs[0].type == RecommendationType.READINESS_CHECK
        assert recs[0].action_label == "Mark done"

    def test_no_readiness_check_before_end(self, in_progress_steps):
        bulk = in_progress_steps[1]
        assert generate_recommendations(EnvironmentFactors(), in_progress_steps,
                                        now=bulk.start_time) == []


class TestDismiss:
    def test_removes_only_target(self, in_progress_steps, cold_dry_reading, bake_start):
        env = factors_for(cold_dry_reading)
        steps = recalculation_pass(in_progress_steps, env, bake_start)
        recs = generate_recommendations(env, steps)
        remaining = dismiss(recs, "env-warning")
        assert "env-warning" not in ids(remaining)
        assert len(remaining) == len(recs) - 1

    def test_unknown_id_is_noop(self):
        assert dismiss([], "missing") == []
