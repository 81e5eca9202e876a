"""
Crumb Coach Timeline - Recommendation Models
Version: 1.0.0

Changelog:
v1.0.0 (2026-10-05): Initial smart recommendation models
"""

from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class RecommendationType(str, Enum):
    """Kinds of advisory surfaced next to the timeline"""
    DURATION_ADJUSTMENT = "duration_adjustment"
    ENVIRONMENT_WARNING = "environment_warning"
    READINESS_CHECK = "readiness_check"
    ACTION_REQUIRED = "action_required"


class Severity(str, Enum):
    """Recommendation severity"""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class SmartRecommendation(BaseModel):
    """Derived, non-persistent advisory for the active bake"""
    id: str = Field(..., description="Stable within one recalculation pass")
    type: RecommendationType
    severity: Severity
    title: str
    description: str
    action_label: Optional[str] = None
    step_id: Optional[str] = None
    auto_applied: bool = False
