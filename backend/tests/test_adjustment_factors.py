"""Tests for the adjustment factor calculator."""

import math

import pytest

from models.environment import EnvironmentReading, EnvironmentStatus
from services.adjustment_factors import (
    temperature_factor, humidity_factor, status_for, factors_for,
    environment_label, DEFAULT_ENVIRONMENT,
)


class TestTemperatureFactor:
    """Temperature bands around 25.5°C."""

    @pytest.mark.parametrize("temp, expected", [
        (25.5, 1.0), (24.0, 1.0), (27.0, 1.0),
        (23.0, 1.2), (22.5, 1.2), (28.0, 0.85), (28.5, 0.85),
        (21.0, 1.4), (20.5, 1.4), (30.0, 0.75), (30.5, 0.75),
        (18.0, 1.6), (10.0, 1.6), (31.0, 0.6), (45.0, 0.6),
    ])
    def test_bands(self, temp, expected):
        assert temperature_factor(temp) == expected


class TestHumidityFactor:
    """Humidity bands around 67.5%."""

    @pytest.mark.parametrize("humidity, expected", [
        (67.5, 1.0), (60.0, 1.0), (75.0, 1.0),
        (55.0, 1.1), (52.5, 1.1), (80.0, 0.95), (82.5, 0.95),
        (40.0, 1.2), (0.0, 1.2), (90.0, 0.9), (100.0, 0.9),
    ])
    def test_bands(self, humidity, expected):
        assert humidity_factor(humidity) == expected


class TestStatus:
    @pytest.mark.parametrize("combined, expected", [
        (1.0, EnvironmentStatus.OPTIMAL),
        (0.9, EnvironmentStatus.OPTIMAL),
        (1.2, EnvironmentStatus.OPTIMAL),
        (0.85, EnvironmentStatus.SUBOPTIMAL),
        (1.25, EnvironmentStatus.SUBOPTIMAL),
        (0.8, EnvironmentStatus.SUBOPTIMAL),
        (1.3, EnvironmentStatus.SUBOPTIMAL),
        (0.75, EnvironmentStatus.POOR),
        (1.32, EnvironmentStatus.POOR),
    ])
    def test_thresholds(self, combined, expected):
        assert status_for(combined) == expected


class TestFactorsFor:
    def test_no_reading_is_neutral_and_unknown(self):
        factors = factors_for(None)
        assert factors.temperature_factor == 1.0
        assert factors.humidity_factor == 1.0
        assert factors.combined_factor == 1.0
        assert factors.status == EnvironmentStatus.UNKNOWN

    def test_near_optimal_reading(self, near_optimal_reading):
        factors = factors_for(near_optimal_reading)
        assert factors.combined_factor == pytest.approx(1.0)
        assert factors.status == EnvironmentStatus.OPTIMAL

    def test_cold_dry_reading(self, cold_dry_reading):
        factors = factors_for(cold_dry_reading)
        assert factors.temperature_factor == 1.6
        assert factors.humidity_factor == 1.2
        assert factors.combined_factor == pytest.approx(1.92)
        assert factors.status == EnvironmentStatus.POOR

    def test_missing_values_use_default_environment(self):
        reading = EnvironmentReading(temperature_c=None, humidity_pct=None)
        factors = factors_for(reading)
        assert factors.temperature_factor == temperature_factor(DEFAULT_ENVIRONMENT.temperature_c)
        assert factors.humidity_factor == humidity_factor(DEFAULT_ENVIRONMENT.humidity_pct)
        assert factors.status != EnvironmentStatus.UNKNOWN

    def test_totality_and_combined_identity(self):
        for temp in range(-20, 61, 2):
            for humidity in range(0, 101, 5):
                factors = factors_for(EnvironmentReading(temperature_c=temp, humidity_pct=humidity))
                assert math.isfinite(factors.combined_factor)
                assert factors.temperature_factor > 0
                assert factors.humidity_factor > 0
                assert factors.combined_factor == factors.temperature_factor * factors.humidity_factor
                assert factors.status in (EnvironmentStatus.OPTIMAL,
                                          EnvironmentStatus.SUBOPTIMAL,
                                          EnvironmentStatus.POOR)


class TestEnvironmentLabel:
    @pytest.mark.parametrize("temp, humidity, label", [
        (25.0, 68.0, "Optimal"),
        (20.0, 68.0, "Cold"),
        (30.0, 68.0, "Warm"),
        (23.0, 50.0, "Dry"),
        (23.0, 85.0, "Humid"),
        (23.0, 65.0, "Stable"),
    ])
    def test_labels(self, temp, humidity, label):
        assert environment_label(EnvironmentReading(temperature_c=temp, humidity_pct=humidity)) == label

    def test_no_reading(self):
        assert environment_label(None) == "Unknown"

    def test_partial_reading(self):
        assert environment_label(EnvironmentReading(temperature_c=24.0)) == "Monitoring"
