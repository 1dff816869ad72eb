"""
Interview session state machine.

Sequences question acquisition, recording, transcription and feedback for one
practice run, and hands the finished session to the history store. Every
transition is single-flight: while an asynchronous step is pending no other
transition is accepted.
"""
import asyncio
import logging
import time
import uuid
from contextlib import contextmanager
from enum import Enum
from typing import Optional, List, Tuple, Union, Any, Callable

from .models import Category, Difficulty, Exchange, Feedback, Question, Session
from .questions import QuestionProvider
from .services import TranscriptionClient
from .events import (
    InterviewEventBus, SessionStartedEvent, StateChangedEvent, QuestionReadyEvent,
    RecordingStartedEvent, AnswerTranscribedEvent, FeedbackReadyEvent,
    SessionSavedEvent, SessionEndedEvent, ErrorOccurredEvent
)
from ..errors import InterviewError, InvalidTransitionError

logger = logging.getLogger("session_machine")

_FAILED = object()


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_QUESTION = "awaiting_question"
    READY_TO_RECORD = "ready_to_record"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    ANALYZING = "analyzing"
    SHOWING_FEEDBACK = "showing_feedback"
    ENDED = "ended"


PENDING_STATES = (SessionState.AWAITING_QUESTION, SessionState.TRANSCRIBING, SessionState.ANALYZING)


class InterviewSessionMachine:
    """
    Drives one practice run: question -> record -> transcribe -> analyze -> feedback.

    Collaborators are injected so the machine never touches devices or
    networks directly:

    - question_provider: next_question(category, difficulty, history) -> Question
    - recorder: begin(), end() -> AudioArtifact, release(), is_recording
    - transcriber: transcribe(AudioArtifact) -> str
    - feedback_client: analyze(question, answer) -> Feedback
    - history_store / identity_provider: optional; without them sessions are not saved

    Recoverable failures (device, upstream, persistence) never escape a
    transition. They revert to the nearest stable state, set ``error`` and
    emit an ErrorOccurredEvent.
    """

    def __init__(self,
                 question_provider: QuestionProvider,
                 recorder: Any,
                 transcriber: TranscriptionClient,
                 feedback_client: Any,
                 history_store: Any = None,
                 identity_provider: Any = None,
                 event_bus: Optional[InterviewEventBus] = None):
        self.question_provider = question_provider
        self.recorder = recorder
        self.transcriber = transcriber
        self.feedback_client = feedback_client
        self.history_store = history_store
        self.identity_provider = identity_provider
        self.event_bus = event_bus or InterviewEventBus()

        self.state = SessionState.IDLE
        self.error: Optional[str] = None
        self.category: Optional[Category] = None
        self.difficulty: Optional[Difficulty] = None
        self.current_question: Optional[Question] = None
        self.last_transcript: Optional[str] = None
        self.last_feedback: Optional[Feedback] = None

        self._exchanges: List[Exchange] = []
        self._session_id = ""
        self._started_at = 0.0
        self._in_flight = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def exchanges(self) -> Tuple[Exchange, ...]:
        return tuple(self._exchanges)

    @property
    def busy(self) -> bool:
        return self._in_flight or self.state in PENDING_STATES

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def begin_session(self, category: Union[Category, str],
                            difficulty: Union[Difficulty, str]) -> SessionState:
        """Start a new run and fetch its first question."""
        self._require("begin a session", SessionState.IDLE)
        category = Category(category)
        difficulty = Difficulty(difficulty)

        self._exchanges = []
        self.category = category
        self.difficulty = difficulty
        self.current_question = None
        self.last_transcript = None
        self.last_feedback = None
        self.error = None
        self._session_id = uuid.uuid4().hex
        self._started_at = time.time()

        logger.info("Session %s started: %s/%s", self._session_id, category.value, difficulty.value)
        self._emit(SessionStartedEvent(self._session_id, time.time(), category.value, difficulty.value))

        self._set_state(SessionState.AWAITING_QUESTION)
        with self._flight():
            ok = await self._acquire_question(revert_to=SessionState.IDLE)
        if ok:
            self._set_state(SessionState.READY_TO_RECORD)
        return self.state

    async def begin_recording(self) -> SessionState:
        """Acquire the microphone and start capturing the answer."""
        self._require("start recording", SessionState.READY_TO_RECORD)

        with self._flight():
            result = await self._call("recorder", SessionState.READY_TO_RECORD, self.recorder.begin)
        if result is _FAILED:
            self.recorder.release()
            return self.state

        self.error = None
        self._set_state(SessionState.RECORDING)
        self._emit(RecordingStartedEvent(self._session_id, time.time()))
        return self.state

    async def end_recording(self) -> SessionState:
        """
        Stop recording, transcribe the answer and analyze it.

        On success a new exchange is appended and the machine shows feedback.
        Transcription or analysis failure returns to READY_TO_RECORD and the
        answer is discarded.
        """
        self._require("stop recording", SessionState.RECORDING)

        with self._flight():
            audio = await self._call("recorder", SessionState.READY_TO_RECORD, self.recorder.end)
            if audio is _FAILED:
                self.recorder.release()
                return self.state

            duration = audio.duration_seconds
            self._set_state(SessionState.TRANSCRIBING)
            transcript = await self._call("transcription", SessionState.READY_TO_RECORD,
                                          self.transcriber.transcribe, audio)
            del audio
            if transcript is _FAILED:
                return self.state

            self.last_transcript = transcript
            self._emit(AnswerTranscribedEvent(self._session_id, time.time(), transcript, duration))

            self._set_state(SessionState.ANALYZING)
            question = self.current_question
            feedback = await self._call("feedback", SessionState.READY_TO_RECORD,
                                        self.feedback_client.analyze, question.text, transcript)
            if feedback is _FAILED:
                self.last_transcript = None
                return self.state

        self._exchanges.append(Exchange(question=question, answer=transcript, feedback=feedback))
        self.last_feedback = feedback
        self.error = None
        self._set_state(SessionState.SHOWING_FEEDBACK)
        self._emit(FeedbackReadyEvent(self._session_id, time.time(), len(self._exchanges), feedback.to_dict()))
        return self.state

    async def next_question(self) -> SessionState:
        """Fetch a follow-up question using the exchanges so far."""
        self._require("ask the next question", SessionState.SHOWING_FEEDBACK)

        self._set_state(SessionState.AWAITING_QUESTION)
        with self._flight():
            ok = await self._acquire_question(revert_to=SessionState.SHOWING_FEEDBACK)
        if ok:
            self._set_state(SessionState.READY_TO_RECORD)
        return self.state

    async def end_session(self) -> Optional[Session]:
        """
        Finish the run and return to IDLE.

        Returns the finalized session, or None when nothing was answered. The
        session is submitted to the history store after the machine is back
        in IDLE, and no new transition is accepted until the save settles. A
        failed save is surfaced against the ended run's id but the session is
        still returned.
        """
        self._require("end the session", SessionState.SHOWING_FEEDBACK, SessionState.READY_TO_RECORD)

        self._set_state(SessionState.ENDED)
        session = None
        if self._exchanges:
            session = Session.finalize(self.category, self.difficulty, self._exchanges,
                                       created_at=self._started_at)
        ended_id = self._session_id
        self._emit(SessionEndedEvent(ended_id, time.time(), len(self._exchanges)))
        logger.info("Session %s ended with %d exchange(s)", ended_id, len(self._exchanges))

        self._reset()
        if session is not None:
            # IDLE, but no new run starts until the save settles
            with self._flight():
                await self._persist(session, ended_id)
        return session

    def shutdown(self) -> None:
        """Release the microphone if held and drop any in-progress run."""
        if self.state == SessionState.RECORDING or getattr(self.recorder, "is_recording", False):
            logger.warning("Shutting down while recording; releasing microphone")
        self.recorder.release()
        if self.state != SessionState.IDLE:
            self._reset()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, action: str, *allowed: SessionState) -> None:
        if self._in_flight:
            raise InvalidTransitionError(action, "another step is pending")
        if self.state not in allowed:
            raise InvalidTransitionError(action, self.state.value)

    @contextmanager
    def _flight(self):
        self._in_flight = True
        try:
            yield
        finally:
            self._in_flight = False

    def _set_state(self, new_state: SessionState) -> None:
        previous = self.state
        self.state = new_state
        logger.debug("State %s -> %s", previous.value, new_state.value)
        self._emit(StateChangedEvent(self._session_id, time.time(), previous.value, new_state.value))

    def _emit(self, event) -> None:
        self.event_bus.emit(event)

    def _surface(self, error: Exception, component: str, session_id: Optional[str] = None) -> None:
        self.error = getattr(error, "message", None) or str(error)
        logger.error("%s failed: %s", component, error)
        self._emit(ErrorOccurredEvent(session_id or self._session_id, time.time(), type(error).__name__,
                                      str(error), component))

    async def _call(self, component: str, revert_to: SessionState,
                    func: Callable[..., Any], *args: Any) -> Any:
        """
        Run a blocking collaborator call off the event loop.

        Returns the call's result, or _FAILED after surfacing a recoverable
        error and moving to ``revert_to``. Unexpected exceptions also revert
        the state before propagating.
        """
        try:
            return await asyncio.to_thread(func, *args)
        except InterviewError as e:
            self._surface(e, component)
            self._revert(revert_to)
            return _FAILED
        except Exception as e:
            logger.exception("Unexpected failure in %s", component)
            self._surface(e, component)
            self._revert(revert_to)
            raise

    def _revert(self, state: SessionState) -> None:
        if self.state != state:
            self._set_state(state)
        if state == SessionState.IDLE:
            self._reset(keep_error=True)

    async def _acquire_question(self, revert_to: SessionState) -> bool:
        question = await self._call(
            "question_provider", revert_to,
            self.question_provider.next_question, self.category, self.difficulty, tuple(self._exchanges),
        )
        if question is _FAILED:
            return False

        self.current_question = question
        self.last_transcript = None
        self.last_feedback = None
        self.error = None
        self._emit(QuestionReadyEvent(self._session_id, time.time(), question.text, len(self._exchanges) + 1))
        return True

    async def _persist(self, session: Session, session_id: str) -> None:
        if self.history_store is None:
            logger.info("No history store configured; session %s not saved", session_id)
            return

        identity = self.identity_provider.current() if self.identity_provider is not None else None
        try:
            saved = await asyncio.to_thread(self.history_store.save, session, identity)
        except InterviewError as e:
            self._surface(e, "history_store", session_id)
            return

        if saved:
            self._emit(SessionSavedEvent(session_id, time.time(), len(session.exchanges),
                                         identity.uid if identity else None))
        else:
            logger.info("History store unavailable; session %s not saved", session_id)

    def _reset(self, keep_error: bool = False) -> None:
        self._exchanges = []
        self.current_question = None
        self.last_transcript = None
        self.last_feedback = None
        self.category = None
        self.difficulty = None
        if not keep_error:
            self.error = None
        if self.state != SessionState.IDLE:
            self._set_state(SessionState.IDLE)
