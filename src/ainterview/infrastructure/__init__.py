"""Infrastructure components for the interview coach.

This module contains low-level technical components: audio capture and
speech recognition, the Gemini client, identity and history persistence.
"""

# Audio infrastructure
from .audio import PyAudioRecorder

# LLM infrastructure
from .llm import VertexRestClient

# Identity and history
from .auth import LocalIdentityProvider, FirebaseIdentityProvider
from .data import LocalHistoryStore, FirestoreHistoryStore

__all__ = [
    "PyAudioRecorder",
    "VertexRestClient",
    "LocalIdentityProvider", "FirebaseIdentityProvider",
    "LocalHistoryStore", "FirestoreHistoryStore"
]
