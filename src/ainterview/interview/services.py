"""
Single-shot AI capability clients: transcription and answer feedback.

Each call validates its input and the upstream output against a fixed
schema; any mismatch is raised as UpstreamCallError.
"""
import base64
import logging
from typing import Protocol

from .models import AudioArtifact, Feedback
from .prompts import InterviewPrompts
from .schemas import (
    TranscribeAnswerInput, TranscribeAnswerOutput,
    AnalyzeAnswerQualityInput, AnalyzeAnswerQualityOutput,
    build_input, validate_payload
)
from ..config import LANGUAGE_CODE
from ..infrastructure.audio.speech import recognize_google_sync
from ..infrastructure.llm import VertexRestClient

logger = logging.getLogger("services")


class TranscriptionClient(Protocol):
    def transcribe(self, audio: AudioArtifact) -> str: ...


class GeminiTranscriptionClient:
    """Transcribes answers by sending the audio inline to Gemini."""

    capability = "transcription"

    def __init__(self, llm_client: VertexRestClient):
        self.llm_client = llm_client

    def transcribe(self, audio: AudioArtifact) -> str:
        request = build_input(TranscribeAnswerInput, self.capability, audio_data_uri=audio.to_data_uri())
        logger.info("Transcribing %.1fs of %s", audio.duration_seconds, request.mime_type)

        raw = self.llm_client.generate_json(
            InterviewPrompts.transcription(),
            inline_data={"mimeType": request.mime_type, "data": request.base64_data},
        )
        result = validate_payload(TranscribeAnswerOutput, raw, self.capability)
        logger.info("Transcription result: %s", result.transcription or "(empty)")
        return result.transcription


class SpeechTranscriptionClient:
    """Transcribes answers with Google Cloud Speech-to-Text."""

    capability = "transcription"

    def __init__(self, language_code: str = LANGUAGE_CODE, speech_client=None):
        self.language_code = language_code
        self.speech_client = speech_client

    def transcribe(self, audio: AudioArtifact) -> str:
        request = build_input(TranscribeAnswerInput, self.capability, audio_data_uri=audio.to_data_uri())
        text = recognize_google_sync(
            base64.b64decode(request.base64_data),
            sr_hz=audio.sample_rate,
            language=self.language_code,
            client=self.speech_client,
        )
        result = validate_payload(TranscribeAnswerOutput, {"transcription": text}, self.capability)
        logger.info("Speech recognition result: %s", result.transcription or "(empty)")
        return result.transcription


class FeedbackClient:
    """Asks Gemini for clarity, conciseness, overall quality and suggestions."""

    capability = "feedback"

    def __init__(self, llm_client: VertexRestClient):
        self.llm_client = llm_client

    def analyze(self, question: str, answer: str) -> Feedback:
        request = build_input(AnalyzeAnswerQualityInput, self.capability, question=question, answer=answer)

        raw = self.llm_client.generate_json(
            InterviewPrompts.answer_feedback(request.question, request.answer)
        )
        result = validate_payload(AnalyzeAnswerQualityOutput, raw, self.capability)
        return Feedback(
            clarity=result.clarity,
            conciseness=result.conciseness,
            overall_quality=result.overall_quality,
            suggestions=result.suggestions,
        )
