"""
Speech-to-text functionality using Google Cloud Speech.
"""
import logging

from google.api_core import exceptions as gapi_exceptions
from google.cloud import speech

from ....config import LANGUAGE_CODE
from ....errors import UpstreamCallError

logger = logging.getLogger("speech_stt")


def recognize_google_sync(pcm16_bytes: bytes,
                          sr_hz: int = 16000,
                          language: str = LANGUAGE_CODE,
                          client=None) -> str:
    """
    Synchronous Google Cloud Speech-to-Text recognition.
    Returns transcribed text, or an empty string if no speech was detected.

    Raises:
        UpstreamCallError: If the Speech API call fails
    """
    client = client or speech.SpeechClient()
    audio = speech.RecognitionAudio(content=pcm16_bytes)
    config = speech.RecognitionConfig(
        encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
        sample_rate_hertz=sr_hz,
        language_code=language,
        enable_automatic_punctuation=True,
    )

    try:
        resp = client.recognize(config=config, audio=audio)
    except gapi_exceptions.GoogleAPIError as e:
        logger.error("Speech recognition failed: %s", e)
        raise UpstreamCallError(f"Speech recognition failed: {e}", capability="transcription") from e

    texts = [r.alternatives[0].transcript for r in resp.results if r.alternatives]
    return " ".join(texts).strip()
