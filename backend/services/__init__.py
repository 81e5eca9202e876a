"""
Crumb Coach Timeline - Backend Services
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): Timeline store, event sinks and bake manager
v1.0.0 (2026-10-05): Initial services module
"""

from . import adjustment_factors
from . import step_sensitivity
from . import timeline_engine
from . import recommendation_engine
from . import timeline_events
from . import timeline_store
from . import sensor_poller
from . import bake_manager
