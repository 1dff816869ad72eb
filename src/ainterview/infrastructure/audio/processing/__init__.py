"""Audio processing and capture modules."""

from .processing import (
    stereo_to_mono,
    remove_dc,
    resample,
    normalize_audio,
    pcm16_from_int16_frames,
    to_pcm16,
    wav_bytes
)
from .recorder import PyAudioRecorder

__all__ = [
    "PyAudioRecorder",
    "stereo_to_mono",
    "remove_dc",
    "resample",
    "normalize_audio",
    "pcm16_from_int16_frames",
    "to_pcm16",
    "wav_bytes"
]
