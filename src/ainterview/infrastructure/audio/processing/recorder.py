"""
Microphone recorder built on a PyAudio callback stream.

The recorder owns the input device between begin() and end(); the device is
released on every path out of a capture, including release() for aborted runs.
"""
import logging
import threading
from typing import Any, List, Optional

from ....config import (
    CHANNELS, SAMPLE_RATE_CAPTURE, FRAME_MS, SAMPLE_RATE_TARGET,
    TARGET_RMS, MAX_RECORD_SECONDS, AUDIO_MIME_TYPE
)
from ....errors import DeviceError
from ....interview.models import AudioArtifact
from ....utils import with_suppressed_audio_warnings
from .processing import (
    pcm16_from_int16_frames, stereo_to_mono, remove_dc,
    resample, normalize_audio, to_pcm16, wav_bytes
)

logger = logging.getLogger("audio_recorder")


def _load_pyaudio():
    """Lazy import so the package works without PortAudio installed."""
    try:
        import pyaudio
    except ImportError as e:
        raise DeviceError("PyAudio is not installed; install the 'audio' extra") from e
    return pyaudio


class PyAudioRecorder:
    """Records one answer at a time from an input device."""

    def __init__(self,
                 input_device: Optional[int] = None,
                 num_channels: int = CHANNELS,
                 sr_capture: int = SAMPLE_RATE_CAPTURE,
                 frame_ms: int = FRAME_MS,
                 sr_target: int = SAMPLE_RATE_TARGET,
                 target_rms: float = TARGET_RMS,
                 max_seconds: float = MAX_RECORD_SECONDS,
                 backend: Any = None):
        self.input_device = input_device
        self.num_channels = num_channels
        self.sr_capture = sr_capture
        self.frame_size = int(sr_capture * frame_ms / 1000)
        self.sr_target = sr_target
        self.target_rms = target_rms
        self.max_frames = int(max_seconds * sr_capture)
        self._backend = backend

        self._pa = None
        self._stream = None
        self._frames: List[bytes] = []
        self._captured = 0
        self._lock = threading.Lock()

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    @with_suppressed_audio_warnings
    def begin(self) -> None:
        """
        Acquire the input device and start capturing.

        Raises:
            DeviceError: If a capture is already active or the device cannot be opened
        """
        if self._stream is not None:
            raise DeviceError("A recording is already in progress")

        backend = self._backend or _load_pyaudio()
        self._frames = []
        self._captured = 0

        logger.info("Opening microphone: device=%s channels=%d rate=%d frame=%d",
                    self.input_device, self.num_channels, self.sr_capture, self.frame_size)
        try:
            pa = backend.PyAudio()
        except (OSError, RuntimeError) as e:
            raise DeviceError(f"Audio system unavailable: {e}") from e

        try:
            stream = pa.open(
                format=backend.paInt16,
                channels=self.num_channels,
                rate=self.sr_capture,
                input=True,
                input_device_index=self.input_device,
                frames_per_buffer=self.frame_size,
                stream_callback=self._make_callback(backend),
            )
        except (OSError, ValueError) as e:
            pa.terminate()
            logger.error("Failed to open microphone: %s", e)
            raise DeviceError(f"Could not open microphone: {e}", {"device": self.input_device}) from e

        self._pa = pa
        self._stream = stream
        logger.info("Microphone opened successfully")

    def _make_callback(self, backend: Any):
        def on_audio(in_data, frame_count, time_info, status):
            with self._lock:
                self._frames.append(in_data)
                self._captured += frame_count
                done = self._captured >= self.max_frames
            if done:
                logger.warning("Recording reached the %d frame cap", self.max_frames)
                return (None, backend.paComplete)
            return (None, backend.paContinue)
        return on_audio

    def end(self) -> AudioArtifact:
        """
        Stop capturing, release the device and return the recorded answer.

        Raises:
            DeviceError: If no capture is active
        """
        if self._stream is None:
            raise DeviceError("No recording in progress")

        self._release_device()
        with self._lock:
            raw = b"".join(self._frames)
            self._frames = []

        return self._build_artifact(raw)

    def release(self) -> None:
        """Drop an active capture without producing audio. No-op when idle."""
        if self._stream is None:
            return
        self._release_device()
        with self._lock:
            self._frames = []
        logger.info("Recording discarded")

    def _release_device(self) -> None:
        stream, pa = self._stream, self._pa
        self._stream = None
        self._pa = None
        try:
            stream.stop_stream()
            stream.close()
        except OSError as e:
            logger.warning("Error stopping microphone: %s", e)
        finally:
            pa.terminate()

    def _build_artifact(self, raw: bytes) -> AudioArtifact:
        data = pcm16_from_int16_frames(raw, self.num_channels)
        if data.size == 0:
            logger.warning("No audio captured")

        mono = stereo_to_mono(data) if self.num_channels > 1 else data
        mono = remove_dc(mono)
        y = resample(mono, self.sr_capture, self.sr_target)
        y = normalize_audio(y, self.target_rms)

        duration = len(y) / float(self.sr_target)
        logger.info("Captured %.1fs of audio", duration)

        return AudioArtifact(
            data=wav_bytes(to_pcm16(y), self.sr_target, channels=1),
            mime_type=AUDIO_MIME_TYPE,
            sample_rate=self.sr_target,
            duration_seconds=duration,
        )
