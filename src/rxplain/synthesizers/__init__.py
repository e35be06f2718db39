# ============================================================================
# src/rxplain/synthesizers/__init__.py
# ============================================================================
"""
Synthesizers backed by the knowledge collaborator.
"""

from .base import Synthesizer
from .interaction_synthesizer import InteractionSynthesizer
from .schedule_synthesizer import ScheduleSynthesizer, build_schedule, validate_schedule
