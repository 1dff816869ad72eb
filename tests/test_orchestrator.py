import asyncio
import threading

import pytest

from ainterview.errors import InvalidTransitionError, PersistenceError, UpstreamCallError
from ainterview.interview.events import EventType, SessionMetrics
from ainterview.interview.models import Category, Difficulty
from ainterview.interview.orchestrator import SessionState
from ainterview.interview.testing import (
    FakeRecorder, FakeTranscriptionClient, FakeFeedbackClient,
    FakeQuestionProvider, InMemoryHistoryStore, StaticIdentityProvider, make_feedback
)


def _types(bus):
    return [event.event_type for event in bus.received]


async def _answer(machine):
    await machine.begin_recording()
    return await machine.end_recording()


def test_full_session_is_saved_for_signed_in_user(make_machine, identity, events):
    store = InMemoryHistoryStore(requires_identity=True)
    provider = FakeQuestionProvider()
    machine = make_machine(history_store=store, question_provider=provider,
                           transcriber=FakeTranscriptionClient(["First answer.", "Second answer."]))

    async def scenario():
        assert await machine.begin_session("technical", "hard") == SessionState.READY_TO_RECORD
        assert machine.current_question.text == "Question 1?"
        assert await machine.begin_recording() == SessionState.RECORDING
        assert await machine.end_recording() == SessionState.SHOWING_FEEDBACK
        assert await machine.next_question() == SessionState.READY_TO_RECORD
        assert await _answer(machine) == SessionState.SHOWING_FEEDBACK
        return await machine.end_session()

    session = asyncio.run(scenario())

    assert machine.state == SessionState.IDLE
    assert session.category == Category.TECHNICAL
    assert session.difficulty == Difficulty.HARD
    assert [e.answer for e in session.exchanges] == ["First answer.", "Second answer."]
    assert [e.question.text for e in session.exchanges] == ["Question 1?", "Question 2?"]
    assert store.list(identity) == [session]
    # the follow-up question saw the first exchange
    assert len(provider.calls[1]["history"]) == 1
    assert provider.calls[1]["category"] == Category.TECHNICAL
    assert EventType.SESSION_SAVED in _types(events)
    assert machine.exchanges == ()


def test_transitions_from_wrong_state_raise(make_machine):
    machine = make_machine()

    async def scenario():
        with pytest.raises(InvalidTransitionError):
            await machine.begin_recording()
        with pytest.raises(InvalidTransitionError):
            await machine.end_recording()
        with pytest.raises(InvalidTransitionError):
            await machine.next_question()
        with pytest.raises(InvalidTransitionError):
            await machine.end_session()
        await machine.begin_session(Category.BEHAVIORAL, Difficulty.EASY)
        with pytest.raises(InvalidTransitionError):
            await machine.begin_session(Category.BEHAVIORAL, Difficulty.EASY)
        with pytest.raises(InvalidTransitionError):
            await machine.next_question()

    asyncio.run(scenario())
    assert machine.state == SessionState.READY_TO_RECORD


def test_first_question_failure_returns_to_idle(make_machine, events):
    machine = make_machine(question_provider=FakeQuestionProvider([UpstreamCallError("model down")]))

    state = asyncio.run(machine.begin_session("behavioral", "medium"))

    assert state == SessionState.IDLE
    assert machine.error == "model down"
    assert machine.current_question is None
    assert EventType.ERROR_OCCURRED in _types(events)


def test_microphone_failure_stays_ready(make_machine):
    recorder = FakeRecorder(fail_begin=True)
    machine = make_machine(recorder=recorder)

    async def scenario():
        await machine.begin_session("behavioral", "easy")
        return await machine.begin_recording()

    assert asyncio.run(scenario()) == SessionState.READY_TO_RECORD
    assert machine.error == "Microphone access denied"
    assert not recorder.device_held


def test_transcription_failure_discards_answer_and_releases_device(make_machine):
    recorder = FakeRecorder()
    machine = make_machine(recorder=recorder,
                           transcriber=FakeTranscriptionClient([UpstreamCallError("bad audio")]))

    async def scenario():
        await machine.begin_session("behavioral", "easy")
        return await _answer(machine)

    assert asyncio.run(scenario()) == SessionState.READY_TO_RECORD
    assert machine.exchanges == ()
    assert machine.error == "bad audio"
    assert not recorder.device_held


def test_analysis_failure_discards_transcript(make_machine):
    machine = make_machine(feedback_client=FakeFeedbackClient([UpstreamCallError("schema mismatch")]))

    async def scenario():
        await machine.begin_session("technical", "medium")
        return await _answer(machine)

    assert asyncio.run(scenario()) == SessionState.READY_TO_RECORD
    assert machine.exchanges == ()
    assert machine.last_transcript is None
    assert machine.current_question is not None


def test_silent_answer_is_not_recorded(make_machine):
    feedback = FakeFeedbackClient()
    machine = make_machine(transcriber=FakeTranscriptionClient([""]), feedback_client=feedback)

    async def scenario():
        await machine.begin_session("behavioral", "easy")
        return await _answer(machine)

    assert asyncio.run(scenario()) == SessionState.READY_TO_RECORD
    assert machine.exchanges == ()
    assert machine.error
    assert feedback.calls == [{"question": "Question 1?", "answer": ""}]


def test_retry_after_failure_appends_one_exchange(make_machine):
    machine = make_machine(transcriber=FakeTranscriptionClient([UpstreamCallError("timeout"), "Got it."]))

    async def scenario():
        await machine.begin_session("behavioral", "easy")
        await _answer(machine)
        return await _answer(machine)

    assert asyncio.run(scenario()) == SessionState.SHOWING_FEEDBACK
    assert len(machine.exchanges) == 1
    assert machine.exchanges[0].answer == "Got it."
    assert machine.error is None


def test_next_question_failure_keeps_feedback(make_machine):
    machine = make_machine(question_provider=FakeQuestionProvider([None, UpstreamCallError("quota")]))

    async def scenario():
        await machine.begin_session("behavioral", "easy")
        await _answer(machine)
        return await machine.next_question()

    assert asyncio.run(scenario()) == SessionState.SHOWING_FEEDBACK
    assert len(machine.exchanges) == 1
    assert machine.last_feedback == make_feedback()
    assert machine.error == "quota"


def test_ending_without_answers_saves_nothing(make_machine, identity, events):
    store = InMemoryHistoryStore()
    machine = make_machine(history_store=store)

    async def scenario():
        await machine.begin_session("behavioral", "easy")
        return await machine.end_session()

    assert asyncio.run(scenario()) is None
    assert machine.state == SessionState.IDLE
    assert store.list(identity) == []
    assert EventType.SESSION_SAVED not in _types(events)


def test_persistence_failure_still_returns_to_idle(make_machine):
    machine = make_machine(history_store=InMemoryHistoryStore(fail_save=True))

    async def scenario():
        await machine.begin_session("behavioral", "easy")
        await _answer(machine)
        return await machine.end_session()

    session = asyncio.run(scenario())
    assert session is not None
    assert machine.state == SessionState.IDLE
    assert machine.error == "History backend unreachable"


def test_signed_out_session_is_not_saved(make_machine, events):
    store = InMemoryHistoryStore(requires_identity=True)
    machine = make_machine(history_store=store, identity_provider=StaticIdentityProvider(None))

    async def scenario():
        await machine.begin_session("behavioral", "easy")
        await _answer(machine)
        return await machine.end_session()

    assert asyncio.run(scenario()) is not None
    assert store.sessions == {}
    assert machine.error is None
    assert EventType.SESSION_SAVED not in _types(events)


def test_shutdown_while_recording_releases_device(make_machine):
    recorder = FakeRecorder()
    machine = make_machine(recorder=recorder)

    async def scenario():
        await machine.begin_session("behavioral", "easy")
        await machine.begin_recording()

    asyncio.run(scenario())
    assert recorder.device_held

    machine.shutdown()
    assert not recorder.device_held
    assert machine.state == SessionState.IDLE
    assert machine.exchanges == ()


def test_pending_step_rejects_other_transitions(make_machine):
    gate = threading.Event()

    class SlowTranscriber:
        def transcribe(self, audio):
            gate.wait(5)
            return "Eventually."

    machine = make_machine(transcriber=SlowTranscriber())

    async def scenario():
        await machine.begin_session("behavioral", "easy")
        await machine.begin_recording()
        task = asyncio.create_task(machine.end_recording())
        for _ in range(100):
            if machine.state == SessionState.TRANSCRIBING:
                break
            await asyncio.sleep(0.01)
        assert machine.busy
        with pytest.raises(InvalidTransitionError):
            await machine.end_session()
        with pytest.raises(InvalidTransitionError):
            await machine.begin_recording()
        gate.set()
        return await task

    assert asyncio.run(scenario()) == SessionState.SHOWING_FEEDBACK
    assert len(machine.exchanges) == 1


def test_new_session_waits_for_pending_save(make_machine, events):
    gate = threading.Event()

    class BlockedStore(InMemoryHistoryStore):
        def save(self, session, identity):
            gate.wait(5)
            raise PersistenceError("History backend unreachable")

    machine = make_machine(history_store=BlockedStore())

    async def scenario():
        await machine.begin_session("behavioral", "easy")
        await _answer(machine)
        task = asyncio.create_task(machine.end_session())
        for _ in range(100):
            if machine.state == SessionState.IDLE and machine.busy:
                break
            await asyncio.sleep(0.01)
        assert machine.state == SessionState.IDLE
        assert machine.busy
        with pytest.raises(InvalidTransitionError):
            await machine.begin_session("technical", "hard")
        gate.set()
        session = await task
        assert not machine.busy
        return session

    session = asyncio.run(scenario())
    assert session is not None

    started = [e for e in events.received if e.event_type == EventType.SESSION_STARTED]
    errors = [e for e in events.received if e.event_type == EventType.ERROR_OCCURRED]
    assert len(started) == 1
    assert len(errors) == 1
    assert errors[0].session_id == started[0].session_id
    assert errors[0].data["component"] == "history_store"
    assert machine.error == "History backend unreachable"

    # the guard is released once the save has settled
    state = asyncio.run(machine.begin_session("technical", "hard"))
    assert state == SessionState.READY_TO_RECORD
    assert machine.error is None


def test_every_state_change_is_announced(make_machine, events):
    machine = make_machine()

    async def scenario():
        await machine.begin_session("behavioral", "easy")
        await _answer(machine)
        await machine.end_session()

    asyncio.run(scenario())

    changes = [e.data for e in events.received if e.event_type == EventType.STATE_CHANGED]
    assert [c["current"] for c in changes] == [
        "awaiting_question", "ready_to_record", "recording",
        "transcribing", "analyzing", "showing_feedback", "ended", "idle",
    ]
    for before, after in zip(changes, changes[1:]):
        assert before["current"] == after["previous"]


def test_metrics_count_session_activity(make_machine, events):
    metrics = SessionMetrics()
    events.subscribe_all(metrics.handle_event)
    machine = make_machine(transcriber=FakeTranscriptionClient([UpstreamCallError("x"), "Fine."]))

    async def scenario():
        await machine.begin_session("behavioral", "easy")
        await _answer(machine)
        await _answer(machine)
        await machine.end_session()

    asyncio.run(scenario())
    assert metrics.get_metrics() == {
        "sessions_started": 1,
        "sessions_ended": 1,
        "sessions_saved": 1,
        "exchanges_completed": 1,
        "errors_occurred": 1,
    }
