"""
AInterView Configuration System
===============================

This file contains ALL configuration for the interview coach.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)

Every user setting can be overridden from the environment; see get_config().
"""
import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError


# =============================================================================
# USER SETTINGS - Edit these to customize the coach
# =============================================================================

# REQUIRED: Set your Google Cloud project (Vertex AI hosts the Gemini model)
GOOGLE_CLOUD_PROJECT = "your-project-id"  # Change this!
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON

# Where history, identity and logs live when Firebase is not configured
WORKDIR = "./_ainterview"

# Question source: "generative" (Gemini) or "static" (built-in bank)
QUESTION_SOURCE = "generative"

# Transcription backend: "gemini" (audio sent inline to the model) or "speech"
TRANSCRIPTION_BACKEND = "gemini"
LANGUAGE_CODE = "en-US"

# Local history keeps only the most recent sessions
HISTORY_LIMIT = 20

# Firebase (identity + Firestore history). Leave the API key unset to use
# the local fallbacks.
FIREBASE_API_KEY = None
FIREBASE_PROJECT_ID = None
FIREBASE_CREDENTIALS = None  # Optional: service account JSON for Firestore

# Logging
LOG_FILE_NAME = "ainterview.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# Audio capture
SAMPLE_RATE_CAPTURE = 48000
SAMPLE_RATE_TARGET = 16000
CHANNELS = 1
FRAME_MS = 30
TARGET_RMS = 0.06
MAX_RECORD_SECONDS = 120.0
AUDIO_MIME_TYPE = "audio/wav"

# LLM
VERTEX_LOCATION = "us-central1"
MODEL_NAME = "gemini-2.5-flash-lite"
LLM_TIMEOUT = 60
MAX_OUTPUT_TOKENS = 1024
QUESTION_TEMPERATURE = 0.7
QUESTION_ATTEMPTS = 3

# Firebase / Firestore
FIREBASE_PLACEHOLDER_KEY = "your-api-key"
FIREBASE_AUTH_URL = "https://identitytoolkit.googleapis.com/v1"
FIREBASE_TIMEOUT = 30
HISTORY_COLLECTION = "interviewSessions"
FIRESTORE_BATCH_LIMIT = 500

# Local files inside WORKDIR
HISTORY_FILE_NAME = "history.json"
IDENTITY_FILE_NAME = "user.json"

QUESTION_SOURCES = ("generative", "static")
TRANSCRIPTION_BACKENDS = ("gemini", "speech")


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    google_cloud_project: str
    google_application_credentials: Optional[str] = None
    vertex_location: str = VERTEX_LOCATION
    model_name: str = MODEL_NAME
    workdir: str = WORKDIR
    question_source: str = QUESTION_SOURCE
    transcription_backend: str = TRANSCRIPTION_BACKEND
    language_code: str = LANGUAGE_CODE
    history_limit: int = HISTORY_LIMIT
    firebase_api_key: Optional[str] = FIREBASE_API_KEY
    firebase_project_id: Optional[str] = FIREBASE_PROJECT_ID
    firebase_credentials: Optional[str] = FIREBASE_CREDENTIALS
    log_level: str = LOG_LEVEL

    @property
    def log_file(self) -> str:
        return os.path.join(self.workdir, LOG_FILE_NAME)

    @property
    def history_file(self) -> str:
        return os.path.join(self.workdir, HISTORY_FILE_NAME)

    @property
    def identity_file(self) -> str:
        return os.path.join(self.workdir, IDENTITY_FILE_NAME)

    @property
    def firebase_configured(self) -> bool:
        """True when a real Firebase web API key has been provided."""
        return bool(self.firebase_api_key) and self.firebase_api_key != FIREBASE_PLACEHOLDER_KEY

    def validate(self) -> None:
        if self.question_source not in QUESTION_SOURCES:
            raise ConfigurationError(
                f"Unknown question source '{self.question_source}'",
                {"allowed": "|".join(QUESTION_SOURCES)},
            )
        if self.transcription_backend not in TRANSCRIPTION_BACKENDS:
            raise ConfigurationError(
                f"Unknown transcription backend '{self.transcription_backend}'",
                {"allowed": "|".join(TRANSCRIPTION_BACKENDS)},
            )
        if self.history_limit < 1:
            raise ConfigurationError("History limit must be at least 1")


def get_config() -> Config:
    """Load configuration from module settings overridden by the environment."""
    project = os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT
    credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS

    if not project or project == "your-project-id":
        raise ConfigurationError("Please set GOOGLE_CLOUD_PROJECT in config.py or as environment variable")

    config = Config(
        google_cloud_project=project,
        google_application_credentials=credentials,
        vertex_location=os.getenv("AINTERVIEW_LOCATION") or VERTEX_LOCATION,
        model_name=os.getenv("AINTERVIEW_MODEL") or MODEL_NAME,
        workdir=os.getenv("AINTERVIEW_WORKDIR") or WORKDIR,
        question_source=(os.getenv("AINTERVIEW_QUESTION_SOURCE") or QUESTION_SOURCE).lower(),
        transcription_backend=(os.getenv("AINTERVIEW_TRANSCRIBER") or TRANSCRIPTION_BACKEND).lower(),
        language_code=os.getenv("AINTERVIEW_LANGUAGE") or LANGUAGE_CODE,
        firebase_api_key=os.getenv("FIREBASE_API_KEY") or FIREBASE_API_KEY,
        firebase_project_id=os.getenv("FIREBASE_PROJECT_ID") or FIREBASE_PROJECT_ID,
        firebase_credentials=os.getenv("FIREBASE_CREDENTIALS") or FIREBASE_CREDENTIALS,
        log_level=(os.getenv("AINTERVIEW_LOG_LEVEL") or LOG_LEVEL).upper(),
    )
    config.validate()
    return config
