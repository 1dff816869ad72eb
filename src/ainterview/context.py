"""
Application context: owns the configured backends and hands them to the
session machine and the CLI.
"""
import logging
from typing import Any, Optional

from .config import Config
from .errors import ConfigurationError
from .infrastructure import (
    PyAudioRecorder, VertexRestClient,
    LocalIdentityProvider, FirebaseIdentityProvider,
    LocalHistoryStore, FirestoreHistoryStore
)
from .interview.events import InterviewEventBus, EventLogger, SessionMetrics
from .interview.orchestrator import InterviewSessionMachine
from .interview.questions import GenerativeQuestionProvider, StaticQuestionProvider
from .interview.services import FeedbackClient, GeminiTranscriptionClient, SpeechTranscriptionClient

logger = logging.getLogger("context")


class AppContext:
    """Everything one CLI invocation needs, created once and passed explicitly."""

    def __init__(self, config: Config, llm_client: Any, identity_provider: Any,
                 history_store: Any, event_bus: InterviewEventBus,
                 metrics: SessionMetrics, recorder: Any = None):
        self.config = config
        self.llm_client = llm_client
        self.identity_provider = identity_provider
        self.history_store = history_store
        self.event_bus = event_bus
        self.metrics = metrics
        self._recorder = recorder
        self._machines = []

    @property
    def recorder(self):
        if self._recorder is None:
            self._recorder = PyAudioRecorder()
        return self._recorder

    def question_provider(self):
        if self.config.question_source == "static":
            return StaticQuestionProvider()
        return GenerativeQuestionProvider(self.llm_client)

    def transcriber(self):
        if self.config.transcription_backend == "speech":
            return SpeechTranscriptionClient(language_code=self.config.language_code)
        return GeminiTranscriptionClient(self.llm_client)

    def create_session_machine(self) -> InterviewSessionMachine:
        machine = InterviewSessionMachine(
            question_provider=self.question_provider(),
            recorder=self.recorder,
            transcriber=self.transcriber(),
            feedback_client=FeedbackClient(self.llm_client),
            history_store=self.history_store,
            identity_provider=self.identity_provider,
            event_bus=self.event_bus,
        )
        self._machines.append(machine)
        return machine

    def close(self) -> None:
        """Release the microphone and drop event subscriptions."""
        for machine in self._machines:
            machine.shutdown()
        self._machines.clear()
        if self._recorder is not None:
            self._recorder.release()
        self.event_bus.clear_handlers()
        logger.info("Context closed; metrics: %s", self.metrics.get_metrics())

    def __enter__(self) -> "AppContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False


def _build_identity_provider(config: Config):
    if config.firebase_configured:
        try:
            return FirebaseIdentityProvider(config.firebase_api_key, config.identity_file)
        except ConfigurationError as e:
            logger.warning("Firebase sign-in unavailable, using local identity: %s", e)
    return LocalIdentityProvider(config.identity_file)


def _build_history_store(config: Config):
    if config.firebase_configured:
        try:
            return FirestoreHistoryStore(
                project_id=config.firebase_project_id,
                credentials_json=config.firebase_credentials,
            )
        except ConfigurationError as e:
            logger.warning("Firestore unavailable, using local history: %s", e)
    return LocalHistoryStore(config.history_file, limit=config.history_limit)


def build_context(config: Config,
                  recorder: Any = None,
                  llm_client: Optional[Any] = None,
                  identity_provider: Optional[Any] = None,
                  history_store: Optional[Any] = None) -> AppContext:
    """
    Wire the backends selected by ``config``.

    Firebase identity and Firestore history are used only when Firebase is
    configured; any ConfigurationError falls back to the local equivalents.
    Explicit arguments override the configured choice.
    """
    if llm_client is None:
        llm_client = VertexRestClient(
            project=config.google_cloud_project,
            location=config.vertex_location,
            model=config.model_name,
            credentials_json=config.google_application_credentials,
        )

    event_bus = InterviewEventBus()
    event_bus.subscribe_all(EventLogger().handle_event)
    metrics = SessionMetrics()
    event_bus.subscribe_all(metrics.handle_event)

    return AppContext(
        config=config,
        llm_client=llm_client,
        identity_provider=identity_provider or _build_identity_provider(config),
        history_store=history_store or _build_history_store(config),
        event_bus=event_bus,
        metrics=metrics,
        recorder=recorder,
    )
