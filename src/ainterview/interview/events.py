"""
Event-driven notifications from the session machine.

The presentation layer subscribes to these to render state changes and
surfaced errors; EventLogger and SessionMetrics are always attached.
"""
import logging
from typing import Dict, Any, List, Callable, Optional
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of session events."""
    SESSION_STARTED = "session_started"
    STATE_CHANGED = "state_changed"
    QUESTION_READY = "question_ready"
    RECORDING_STARTED = "recording_started"
    ANSWER_TRANSCRIBED = "answer_transcribed"
    FEEDBACK_READY = "feedback_ready"
    SESSION_SAVED = "session_saved"
    SESSION_ENDED = "session_ended"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class InterviewEvent:
    """Base class for all session events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


class SessionStartedEvent(InterviewEvent):
    def __init__(self, session_id: str, timestamp: float, category: str, difficulty: str):
        super().__init__(EventType.SESSION_STARTED, session_id, timestamp,
                         {"category": category, "difficulty": difficulty})


class StateChangedEvent(InterviewEvent):
    """Fired on every state machine transition."""
    def __init__(self, session_id: str, timestamp: float, previous: str, current: str):
        super().__init__(EventType.STATE_CHANGED, session_id, timestamp,
                         {"previous": previous, "current": current})


class QuestionReadyEvent(InterviewEvent):
    def __init__(self, session_id: str, timestamp: float, question: str, index: int):
        super().__init__(EventType.QUESTION_READY, session_id, timestamp,
                         {"question": question, "index": index})


class RecordingStartedEvent(InterviewEvent):
    def __init__(self, session_id: str, timestamp: float):
        super().__init__(EventType.RECORDING_STARTED, session_id, timestamp, {})


class AnswerTranscribedEvent(InterviewEvent):
    def __init__(self, session_id: str, timestamp: float, transcript: str, duration_seconds: float):
        super().__init__(EventType.ANSWER_TRANSCRIBED, session_id, timestamp,
                         {"transcript": transcript, "duration_seconds": duration_seconds})


class FeedbackReadyEvent(InterviewEvent):
    def __init__(self, session_id: str, timestamp: float, exchange_count: int, feedback: Dict[str, str]):
        super().__init__(EventType.FEEDBACK_READY, session_id, timestamp,
                         {"exchange_count": exchange_count, "feedback": feedback})


class SessionSavedEvent(InterviewEvent):
    def __init__(self, session_id: str, timestamp: float, exchange_count: int, owner: Optional[str]):
        super().__init__(EventType.SESSION_SAVED, session_id, timestamp,
                         {"exchange_count": exchange_count, "owner": owner})


class SessionEndedEvent(InterviewEvent):
    def __init__(self, session_id: str, timestamp: float, exchange_count: int):
        super().__init__(EventType.SESSION_ENDED, session_id, timestamp,
                         {"exchange_count": exchange_count})


class ErrorOccurredEvent(InterviewEvent):
    """Fired when a recoverable error is surfaced to the user."""
    def __init__(self, session_id: str, timestamp: float, error_type: str,
                 error_message: str, component: str):
        super().__init__(EventType.ERROR_OCCURRED, session_id, timestamp, {
            "error_type": error_type,
            "error_message": error_message,
            "component": component
        })


EventHandler = Callable[[InterviewEvent], None]


class InterviewEventBus:
    """Event bus for session notifications."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type}")
            except ValueError:
                logger.warning(f"Handler not found for {event_type}")

    def emit(self, event: InterviewEvent) -> None:
        """
        Emit an event to all subscribers. A failing handler is logged and
        does not stop delivery to the others.
        """
        logger.debug(f"Emitting event: {event.event_type} for session {event.session_id}")

        for handler in list(self._handlers.get(event.event_type, [])):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        for handler in list(self._global_handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.log_level = log_level

    def handle_event(self, event: InterviewEvent) -> None:
        """Log event details."""
        self.logger.log(self.log_level,
                        f"Event: {event.event_type.value} | Session: {event.session_id} | Data: {event.data}")


class SessionMetrics:
    """Collects counters from session events."""

    def __init__(self):
        self.reset()

    def handle_event(self, event: InterviewEvent) -> None:
        """Update metrics based on event."""
        if event.event_type == EventType.SESSION_STARTED:
            self.sessions_started += 1
        elif event.event_type == EventType.SESSION_ENDED:
            self.sessions_ended += 1
        elif event.event_type == EventType.SESSION_SAVED:
            self.sessions_saved += 1
        elif event.event_type == EventType.FEEDBACK_READY:
            self.exchanges_completed += 1
        elif event.event_type == EventType.ERROR_OCCURRED:
            self.errors_occurred += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return {
            "sessions_started": self.sessions_started,
            "sessions_ended": self.sessions_ended,
            "sessions_saved": self.sessions_saved,
            "exchanges_completed": self.exchanges_completed,
            "errors_occurred": self.errors_occurred
        }

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self.sessions_started = 0
        self.sessions_ended = 0
        self.sessions_saved = 0
        self.exchanges_completed = 0
        self.errors_occurred = 0
