"""Utility modules for audio warnings, logging, and score helpers."""

from .imports import with_suppressed_audio_warnings
from .logging import setup_logging
from .scoring import round_half_up, mean_score

__all__ = ["with_suppressed_audio_warnings", "setup_logging", "round_half_up", "mean_score"]
