"""
Exception taxonomy for the interview coach.

Recoverable errors (device, upstream, persistence) are caught by the session
machine and surfaced to the user; configuration errors switch off the
collaborator that raised them.
"""
from typing import Optional, Dict, Any


class InterviewError(Exception):
    """Base exception for all interview coach errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class DeviceError(InterviewError):
    """Raised when the recording device cannot be acquired or is misused."""


class UpstreamCallError(InterviewError):
    """Raised when an AI capability fails or returns schema-invalid data.

    Args:
        message: Descriptive error message
        capability: Which capability failed (question, transcription, feedback)
    """

    def __init__(self, message: str, capability: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        context = dict(context or {})
        if capability is not None:
            context["capability"] = capability
        super().__init__(message, context)
        self.capability = capability


class QuestionPoolExhaustedError(UpstreamCallError):
    """Raised when the static question bank has no unasked question left."""


class PersistenceError(InterviewError):
    """Raised when the history store is unreachable or rejects a write."""


class ConfigurationError(InterviewError):
    """Raised when a backend service is not configured."""


class AuthError(InterviewError):
    """Raised when the identity provider rejects a login or signup."""


class InvalidTransitionError(InterviewError):
    """Raised when a session transition is requested from the wrong state."""

    def __init__(self, action: str, state: str):
        super().__init__(f"Cannot {action} while {state}", {"action": action, "state": state})
        self.action = action
        self.state = state
