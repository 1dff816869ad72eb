"""Utility modules for logging and audio library helpers."""

from .imports import with_suppressed_audio_warnings
from .logging import setup_logging

__all__ = ["with_suppressed_audio_warnings", "setup_logging"]
