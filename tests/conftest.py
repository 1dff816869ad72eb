import sys
from pathlib import Path

import pytest

SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from ainterview.interview.events import InterviewEventBus
from ainterview.interview.models import Identity
from ainterview.interview.orchestrator import InterviewSessionMachine
from ainterview.interview.testing import (
    FakeRecorder, FakeTranscriptionClient, FakeFeedbackClient,
    FakeQuestionProvider, InMemoryHistoryStore, StaticIdentityProvider
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    for name in (
        "GOOGLE_CLOUD_PROJECT", "GOOGLE_APPLICATION_CREDENTIALS",
        "AINTERVIEW_LOCATION", "AINTERVIEW_MODEL", "AINTERVIEW_WORKDIR",
        "AINTERVIEW_QUESTION_SOURCE", "AINTERVIEW_TRANSCRIBER", "AINTERVIEW_LANGUAGE",
        "AINTERVIEW_LOG_LEVEL", "FIREBASE_API_KEY", "FIREBASE_PROJECT_ID", "FIREBASE_CREDENTIALS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AINTERVIEW_WORKDIR", str(tmp_path / "work"))
    yield


@pytest.fixture
def identity():
    return Identity(uid="user-1", email="ada@example.com")


@pytest.fixture
def events():
    bus = InterviewEventBus()
    received = []
    bus.subscribe_all(received.append)
    bus.received = received
    return bus


@pytest.fixture
def make_machine(events, identity):
    """Factory for a session machine wired to fakes; overrides by keyword."""

    def factory(**overrides):
        parts = {
            "question_provider": FakeQuestionProvider(),
            "recorder": FakeRecorder(),
            "transcriber": FakeTranscriptionClient(),
            "feedback_client": FakeFeedbackClient(),
            "history_store": InMemoryHistoryStore(requires_identity=True),
            "identity_provider": StaticIdentityProvider(identity),
            "event_bus": events,
        }
        parts.update(overrides)
        return InterviewSessionMachine(**parts)

    return factory
