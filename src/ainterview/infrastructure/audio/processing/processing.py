"""
Basic audio processing functions including format conversions and normalization.
"""
import io
import wave
from math import gcd

import numpy as np
from scipy.signal import resample_poly

from ....config import TARGET_RMS


def stereo_to_mono(x: np.ndarray) -> np.ndarray:
    """Convert multi-channel audio (samples x channels) to mono by averaging channels."""
    if x.ndim == 1:
        return x
    return np.mean(x, axis=1)


def remove_dc(x: np.ndarray) -> np.ndarray:
    """Remove DC offset from audio signal."""
    if x.size == 0:
        return x
    return x - np.mean(x)


def resample(x: np.ndarray, sr_from: int, sr_to: int) -> np.ndarray:
    """Resample audio between integer sample rates."""
    if sr_from == sr_to or x.size == 0:
        return x.astype(np.float32)
    g = gcd(sr_from, sr_to)
    return resample_poly(x, up=sr_to // g, down=sr_from // g).astype(np.float32)


def normalize_audio(audio: np.ndarray, target_rms: float = TARGET_RMS) -> np.ndarray:
    """Normalize audio to target RMS level."""
    if audio.size == 0:
        return audio
    rms = float(np.sqrt(np.mean(audio**2)) + 1e-9)
    gain = min(20.0, target_rms / rms) if rms > 0 else 1.0
    return audio * gain


def pcm16_from_int16_frames(frames: bytes, channels: int) -> np.ndarray:
    """Decode interleaved int16 PCM bytes into a float array in [-1, 1]."""
    samples = np.frombuffer(frames, dtype=np.int16).astype(np.float32) / 32768.0
    if channels > 1:
        samples = samples[: len(samples) - len(samples) % channels].reshape(-1, channels)
    return samples


def to_pcm16(audio: np.ndarray) -> np.ndarray:
    """Convert float audio in [-1, 1] to int16 PCM."""
    return np.clip(audio * 32767, -32768, 32767).astype(np.int16)


def wav_bytes(pcm16: np.ndarray, sr: int, channels: int = 1) -> bytes:
    """Encode PCM16 audio data as an in-memory WAV file."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(sr)
        wf.writeframes(pcm16.tobytes())
    return buffer.getvalue()
