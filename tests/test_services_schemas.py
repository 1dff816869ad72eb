import base64

import pytest

from ainterview.errors import UpstreamCallError
from ainterview.interview.models import AudioArtifact, Feedback
from ainterview.interview.schemas import (
    AnalyzeAnswerQualityOutput, TranscribeAnswerInput, validate_payload
)
from ainterview.interview.services import FeedbackClient, GeminiTranscriptionClient, SpeechTranscriptionClient
from ainterview.interview.testing import FakeLLMClient

FEEDBACK_JSON = {
    "clarity": "Clear structure.",
    "conciseness": "A little long.",
    "overallQuality": "Good.",
    "suggestions": "Lead with the result.",
}


def test_feedback_client_returns_complete_feedback():
    llm = FakeLLMClient([FEEDBACK_JSON])

    feedback = FeedbackClient(llm).analyze("Why us?", "Because of the mission.")

    assert feedback == Feedback("Clear structure.", "A little long.", "Good.", "Lead with the result.")
    assert "Because of the mission." in llm.requests[0]["prompt"]


def test_feedback_client_rejects_partial_feedback():
    partial = {k: v for k, v in FEEDBACK_JSON.items() if k != "suggestions"}

    with pytest.raises(UpstreamCallError) as exc:
        FeedbackClient(FakeLLMClient([partial])).analyze("Why us?", "Because.")
    assert "suggestions" in str(exc.value)


def test_feedback_client_rejects_blank_answer_without_calling_model():
    llm = FakeLLMClient([FEEDBACK_JSON])

    with pytest.raises(UpstreamCallError):
        FeedbackClient(llm).analyze("Why us?", "   ")
    assert llm.requests == []


def test_gemini_transcription_sends_audio_inline():
    llm = FakeLLMClient([{"transcription": " I led the migration. "}])
    audio = AudioArtifact(data=b"RIFFdata", mime_type="audio/wav", duration_seconds=2.0)

    text = GeminiTranscriptionClient(llm).transcribe(audio)

    assert text == "I led the migration."
    inline = llm.requests[0]["inline_data"]
    assert inline["mimeType"] == "audio/wav"
    assert base64.b64decode(inline["data"]) == b"RIFFdata"


def test_gemini_transcription_allows_silence():
    llm = FakeLLMClient([{"transcription": ""}])
    audio = AudioArtifact(data=b"", mime_type="audio/wav")

    assert GeminiTranscriptionClient(llm).transcribe(audio) == ""


def test_gemini_transcription_rejects_missing_field():
    llm = FakeLLMClient([{"text": "hello"}])

    with pytest.raises(UpstreamCallError) as exc:
        GeminiTranscriptionClient(llm).transcribe(AudioArtifact(data=b"x", mime_type="audio/wav"))
    assert exc.value.capability == "transcription"


def test_speech_transcription_uses_speech_client():
    class Alternative:
        transcript = "Hello there"

    class Result:
        alternatives = [Alternative()]

    class Response:
        results = [Result()]

    class SpeechClient:
        def __init__(self):
            self.calls = []

        def recognize(self, config, audio):
            self.calls.append((config, audio))
            return Response()

    client = SpeechClient()
    transcriber = SpeechTranscriptionClient(language_code="en-GB", speech_client=client)

    text = transcriber.transcribe(AudioArtifact(data=b"\x00\x01", mime_type="audio/wav", sample_rate=16000))

    assert text == "Hello there"
    config, audio = client.calls[0]
    assert config.language_code == "en-GB"
    assert audio.content == b"\x00\x01"


def test_transcribe_input_requires_data_uri():
    with pytest.raises(UpstreamCallError):
        validate_payload(TranscribeAnswerInput, {"audio_data_uri": "audio/wav;base64,AAAA"}, "transcription")

    request = validate_payload(TranscribeAnswerInput, {"audio_data_uri": "data:audio/webm;codecs=opus;base64,AAAA"},
                               "transcription")
    assert request.mime_type == "audio/webm"
    assert request.base64_data == "AAAA"


def test_feedback_output_accepts_either_field_name():
    by_alias = validate_payload(AnalyzeAnswerQualityOutput, FEEDBACK_JSON, "feedback")
    by_name = validate_payload(AnalyzeAnswerQualityOutput, {
        "clarity": "a", "conciseness": "b", "overall_quality": "c", "suggestions": "d",
    }, "feedback")

    assert by_alias.overall_quality == "Good."
    assert by_name.overall_quality == "c"
