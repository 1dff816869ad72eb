"""Speech-to-text module."""

from .stt import recognize_google_sync

__all__ = ["recognize_google_sync"]
