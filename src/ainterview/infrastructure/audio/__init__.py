"""
Audio capture and speech services for the interview coach.

- processing: Signal processing, WAV encoding and the microphone recorder
- speech: Google Cloud speech-to-text
"""

from .processing import PyAudioRecorder

__all__ = ["PyAudioRecorder"]
