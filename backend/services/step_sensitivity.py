"""
Crumb Coach Timeline - Step Sensitivity Classifier
Version: 1.0.0

Changelog:
v1.0.0 (2026-10-05): Initial per-step-type sensitivity rules
"""

from models.timeline import StepType, coerce_step_type

# Share of the combined factor's deviation passed through to a step type
SENSITIVITY_WEIGHTS = {
    StepType.AUTOLYSE: 0.0,      # short, enzymatic
    StepType.BULK_FERMENT: 1.0,
    StepType.PRE_SHAPE: 0.3,
    StepType.FINAL_PROOF: 1.0,
    StepType.BAKE: 0.0,          # oven-controlled
    StepType.OTHER: 0.5,
}

NON_SENSITIVE_TYPES = frozenset({StepType.AUTOLYSE, StepType.BAKE})


def sensitivity_factor(step_type, combined_factor: float) -> float:
    """Effective duration multiplier for a step type under a combined factor"""
    weight = SENSITIVITY_WEIGHTS[coerce_step_type(step_type)]
    if weight == 0.0:
        return 1.0
    if weight == 1.0:
        return combined_factor
    return 1.0 + (combined_factor - 1.0) * weight


def is_environment_sensitive(step_type) -> bool:
    """Whether recalculation should consider this step type at all"""
    return coerce_step_type(step_type) not in NON_SENSITIVE_TYPES
