"""Interview practice components.

This module contains the business logic for a voice interview practice run:
the session state machine, question providers, AI capability clients, and
the event system.
"""

# Session state machine
from .orchestrator import InterviewSessionMachine, SessionState

# Data models
from .models import (
    Category, Difficulty, Question, Feedback, Exchange, Session,
    AudioArtifact, Identity
)

# Structured schemas
from .schemas import (
    GenerateQuestionInput, GenerateQuestionOutput,
    TranscribeAnswerInput, TranscribeAnswerOutput,
    AnalyzeAnswerQualityInput, AnalyzeAnswerQualityOutput,
    validate_payload
)

# Question providers and service clients
from .questions import (
    QuestionProvider, GenerativeQuestionProvider, StaticQuestionProvider, QUESTION_BANK
)
from .services import (
    TranscriptionClient, GeminiTranscriptionClient, SpeechTranscriptionClient, FeedbackClient
)

# Event system
from .events import (
    InterviewEventBus, EventLogger, SessionMetrics,
    EventType, InterviewEvent, SessionStartedEvent, StateChangedEvent,
    QuestionReadyEvent, RecordingStartedEvent, AnswerTranscribedEvent,
    FeedbackReadyEvent, SessionSavedEvent, SessionEndedEvent, ErrorOccurredEvent
)

__all__ = [
    # State machine
    "InterviewSessionMachine", "SessionState",

    # Data models
    "Category", "Difficulty", "Question", "Feedback", "Exchange", "Session",
    "AudioArtifact", "Identity",

    # Schemas
    "GenerateQuestionInput", "GenerateQuestionOutput",
    "TranscribeAnswerInput", "TranscribeAnswerOutput",
    "AnalyzeAnswerQualityInput", "AnalyzeAnswerQualityOutput",
    "validate_payload",

    # Providers and services
    "QuestionProvider", "GenerativeQuestionProvider", "StaticQuestionProvider", "QUESTION_BANK",
    "TranscriptionClient", "GeminiTranscriptionClient", "SpeechTranscriptionClient", "FeedbackClient",

    # Events
    "InterviewEventBus", "EventLogger", "SessionMetrics",
    "EventType", "InterviewEvent", "SessionStartedEvent", "StateChangedEvent",
    "QuestionReadyEvent", "RecordingStartedEvent", "AnswerTranscribedEvent",
    "FeedbackReadyEvent", "SessionSavedEvent", "SessionEndedEvent", "ErrorOccurredEvent",
]
