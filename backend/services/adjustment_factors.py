"""
Crumb Coach Timeline - Adjustment Factor Calculator
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): Single DEFAULT_ENVIRONMENT applied at this boundary;
                      environment_label() for the timeline header
v1.0.0 (2026-10-05): Initial temperature/humidity factor model

Maps an ambient reading to dimensionless fermentation multipliers.
A factor above 1.0 means fermentation runs slower than baseline (more time
needed); below 1.0 means it runs faster.

Temperature bands (deviation from 25.5°C):
    <= 1.5°C -> 1.0
    <= 3°C   -> 1.2 below optimal / 0.85 above
    <= 5°C   -> 1.4 / 0.75
    >  5°C   -> 1.6 / 0.6

Humidity bands (deviation from 67.5% RH):
    <= 7.5pp -> 1.0
    <= 15pp  -> 1.1 below optimal / 0.95 above
    >  15pp  -> 1.2 / 0.9
"""

import logging
from dataclasses import dataclass
from typing import Optional

from models.environment import EnvironmentReading, EnvironmentFactors, EnvironmentStatus

logger = logging.getLogger(__name__)

OPTIMAL_TEMPERATURE_C = 25.5
OPTIMAL_HUMIDITY_PCT = 67.5

# Combined-factor status thresholds
POOR_LOW, POOR_HIGH = 0.8, 1.3
SUBOPTIMAL_LOW, SUBOPTIMAL_HIGH = 0.9, 1.2


@dataclass(frozen=True)
class DefaultEnvironment:
    """Values substituted when a reading omits temperature or humidity"""
    temperature_c: float = 24.0
    humidity_pct: float = 65.0


DEFAULT_ENVIRONMENT = DefaultEnvironment()


def temperature_factor(temperature_c: float,
                       optimal_c: float = OPTIMAL_TEMPERATURE_C) -> float:
    """Fermentation multiplier for an ambient temperature"""
    deviation = abs(temperature_c - optimal_c)
    below = temperature_c < optimal_c

    if deviation <= 1.5:
        return 1.0
    if deviation <= 3:
        return 1.2 if below else 0.85
    if deviation <= 5:
        return 1.4 if below else 0.75
    return 1.6 if below else 0.6


def humidity_factor(humidity_pct: float,
                    optimal_pct: float = OPTIMAL_HUMIDITY_PCT) -> float:
    """Fermentation multiplier for relative humidity"""
    deviation = abs(humidity_pct - optimal_pct)
    below = humidity_pct < optimal_pct

    if deviation <= 7.5:
        return 1.0
    if deviation <= 15:
        return 1.1 if below else 0.95
    return 1.2 if below else 0.9


def status_for(combined: float) -> EnvironmentStatus:
    """Classify a combined factor"""
    if combined < POOR_LOW or combined > POOR_HIGH:
        return EnvironmentStatus.POOR
    if combined < SUBOPTIMAL_LOW or combined > SUBOPTIMAL_HIGH:
        return EnvironmentStatus.SUBOPTIMAL
    return EnvironmentStatus.OPTIMAL


def resolve_reading(reading: Optional[EnvironmentReading],
                    default: DefaultEnvironment = DEFAULT_ENVIRONMENT) -> Optional[tuple]:
    """(temperature_c, humidity_pct) with defaults filled in, or None without a reading"""
    if reading is None:
        return None
    temp = reading.temperature_c if reading.temperature_c is not None else default.temperature_c
    humidity = reading.humidity_pct if reading.humidity_pct is not None else default.humidity_pct
    return temp, humidity


def factors_for(reading: Optional[EnvironmentReading],
                optimal_temperature_c: float = OPTIMAL_TEMPERATURE_C,
                optimal_humidity_pct: float = OPTIMAL_HUMIDITY_PCT,
                default: DefaultEnvironment = DEFAULT_ENVIRONMENT) -> EnvironmentFactors:
    """
    Derive adjustment factors from the latest reading.

    A missing reading is a degraded but valid input: neutral factors and
    status 'unknown'.
    """
    values = resolve_reading(reading, default)
    if values is None:
        return EnvironmentFactors(
            temperature_factor=1.0,
            humidity_factor=1.0,
            combined_factor=1.0,
            status=EnvironmentStatus.UNKNOWN,
        )

    temp, humidity = values
    t_factor = temperature_factor(temp, optimal_temperature_c)
    h_factor = humidity_factor(humidity, optimal_humidity_pct)
    combined = t_factor * h_factor

    logger.debug(f"Factors for {temp:.1f}°C / {humidity:.1f}%: "
                 f"temp={t_factor} humidity={h_factor} combined={combined:.3f}")

    return EnvironmentFactors(
        temperature_factor=t_factor,
        humidity_factor=h_factor,
        combined_factor=combined,
        status=status_for(combined),
    )


def environment_label(reading: Optional[EnvironmentReading]) -> str:
    """Short label for the header badge"""
    if reading is None:
        return "Unknown"
    if reading.temperature_c is None or reading.humidity_pct is None:
        return "Monitoring"

    temp = reading.temperature_c
    humidity = reading.humidity_pct

    if 24 <= temp <= 27 and 60 <= humidity <= 75:
        return "Optimal"
    if temp < 22:
        return "Cold"
    if temp > 29:
        return "Warm"
    if humidity < 55:
        return "Dry"
    if humidity > 80:
        return "Humid"
    return "Stable"
