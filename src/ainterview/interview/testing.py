"""
Testing infrastructure with fake collaborators for the session machine.
"""
import json
from typing import Dict, Any, List, Optional, Sequence, Union

from .models import AudioArtifact, Category, Difficulty, Exchange, Feedback, Identity, Question, Session
from ..errors import DeviceError, UpstreamCallError, PersistenceError


def make_feedback(tag: str = "ok") -> Feedback:
    """Build a fully populated Feedback for assertions."""
    return Feedback(
        clarity=f"clarity {tag}",
        conciseness=f"conciseness {tag}",
        overall_quality=f"quality {tag}",
        suggestions=f"suggestions {tag}",
    )


class FakeRecorder:
    """In-memory recorder that tracks whether the device is held."""

    def __init__(self, audio: Optional[AudioArtifact] = None,
                 fail_begin: bool = False, fail_end: bool = False):
        self.audio = audio or AudioArtifact(data=b"RIFF-fake", mime_type="audio/wav", duration_seconds=1.5)
        self.fail_begin = fail_begin
        self.fail_end = fail_end
        self.device_held = False
        self.begin_calls = 0
        self.release_calls = 0

    @property
    def is_recording(self) -> bool:
        return self.device_held

    def begin(self) -> None:
        self.begin_calls += 1
        if self.fail_begin:
            raise DeviceError("Microphone access denied")
        if self.device_held:
            raise DeviceError("Recorder is already running")
        self.device_held = True

    def end(self) -> AudioArtifact:
        if not self.device_held:
            raise DeviceError("Recorder is not running")
        self.device_held = False
        if self.fail_end:
            raise DeviceError("Input stream failed")
        return self.audio

    def release(self) -> None:
        self.release_calls += 1
        self.device_held = False


class FakeTranscriptionClient:
    """Returns scripted transcripts; an Exception entry is raised instead."""

    capability = "transcription"

    def __init__(self, transcripts: Sequence[Union[str, Exception]] = ("My answer.",)):
        self.transcripts = list(transcripts)
        self.calls: List[AudioArtifact] = []

    def transcribe(self, audio: AudioArtifact) -> str:
        self.calls.append(audio)
        index = min(len(self.calls) - 1, len(self.transcripts) - 1)
        result = self.transcripts[index]
        if isinstance(result, Exception):
            raise result
        return result


class FakeFeedbackClient:
    """Returns scripted feedback; rejects blank answers like the real schema does."""

    capability = "feedback"

    def __init__(self, responses: Optional[Sequence[Union[Feedback, Exception]]] = None):
        self.responses = list(responses) if responses else [make_feedback()]
        self.calls: List[Dict[str, str]] = []

    def analyze(self, question: str, answer: str) -> Feedback:
        self.calls.append({"question": question, "answer": answer})
        if not answer.strip():
            raise UpstreamCallError("Invalid feedback input: answer is blank", capability=self.capability)
        index = min(len(self.calls) - 1, len(self.responses) - 1)
        result = self.responses[index]
        if isinstance(result, Exception):
            raise result
        return result


class FakeQuestionProvider:
    """Serves numbered questions and records the history it was given."""

    def __init__(self, failures: Sequence[Optional[Exception]] = ()):
        self.failures = list(failures)
        self.calls: List[Dict[str, Any]] = []

    def next_question(self, category: Category, difficulty: Difficulty,
                      history: Sequence[Exchange]) -> Question:
        self.calls.append({"category": category, "difficulty": difficulty, "history": tuple(history)})
        if self.failures:
            failure = self.failures.pop(0)
            if failure is not None:
                raise failure
        number = len(self.calls)
        return Question(str(number), category, difficulty, f"Question {number}?")


class FakeLLMClient:
    """Stands in for VertexRestClient.generate_json with scripted responses."""

    def __init__(self, responses: Sequence[Any]):
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    def generate_json(self, prompt: str, temperature: float = 0.0,
                      inline_data: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        self.requests.append({"prompt": prompt, "temperature": temperature, "inline_data": inline_data})
        if not self.responses:
            raise UpstreamCallError("No scripted response left")
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        if isinstance(result, str):
            return json.loads(result)
        return result


class InMemoryHistoryStore:
    """History store keyed by owner; None keys the anonymous local history."""

    def __init__(self, requires_identity: bool = False, fail_save: bool = False):
        self.requires_identity = requires_identity
        self.fail_save = fail_save
        self.sessions: Dict[Optional[str], List[Session]] = {}

    def available(self, identity: Optional[Identity]) -> bool:
        return identity is not None or not self.requires_identity

    def save(self, session: Session, identity: Optional[Identity]) -> bool:
        if self.fail_save:
            raise PersistenceError("History backend unreachable")
        if not self.available(identity):
            return False
        self.sessions.setdefault(identity.uid if identity else None, []).append(session)
        return True

    def list(self, identity: Optional[Identity]) -> List[Session]:
        owned = self.sessions.get(identity.uid if identity else None, [])
        return sorted(owned, key=lambda s: s.created_at, reverse=True)

    def clear(self, identity: Optional[Identity]) -> int:
        return len(self.sessions.pop(identity.uid if identity else None, []))


class StaticIdentityProvider:
    """Identity provider pinned to one identity (or none)."""

    def __init__(self, identity: Optional[Identity] = None):
        self.identity = identity

    def current(self) -> Optional[Identity]:
        return self.identity

    def login(self, email: str, password: Optional[str] = None) -> Identity:
        self.identity = Identity(uid=f"uid-{email}", email=email)
        return self.identity

    signup = login

    def logout(self) -> None:
        self.identity = None
