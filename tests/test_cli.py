import pytest

import ainterview.__main__ as cli
from ainterview.context import build_context
from ainterview.infrastructure.data import LocalHistoryStore
from ainterview.infrastructure.auth import LocalIdentityProvider
from ainterview.interview.testing import FakeLLMClient, FakeRecorder

FEEDBACK_JSON = {
    "clarity": "Clear.",
    "conciseness": "Tight.",
    "overallQuality": "Strong.",
    "suggestions": "Add a metric.",
}


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "proj-1")
    monkeypatch.setattr(cli, "setup_logging", lambda path, level="INFO": path)


@pytest.fixture
def fake_backends(monkeypatch):
    llm = FakeLLMClient([{"transcription": "I refactored the billing service."}, FEEDBACK_JSON])
    recorder = FakeRecorder()

    def fake_build_context(config):
        return build_context(config, recorder=recorder, llm_client=llm)

    monkeypatch.setattr(cli, "build_context", fake_build_context)
    return llm, recorder


def _scripted_input(monkeypatch, answers):
    answers = list(answers)
    monkeypatch.setattr("builtins.input", lambda prompt="": answers.pop(0))


@pytest.mark.parametrize("offset, expected", [
    (5, "just now"), (60, "1 minute ago"), (7200, "2 hours ago"), (3 * 86400, "3 days ago"),
])
def test_relative_time(offset, expected):
    assert cli.relative_time(10_000_000 - offset, now=10_000_000) == expected


def test_missing_project_exits_with_error(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["whoami"])
    assert exc.value.code == 1
    assert "Configuration Error" in capsys.readouterr().out


def test_login_whoami_logout(configured, fake_backends, capsys):
    assert cli.main(["login", "--email=ada@example.com"]) == 0
    assert cli.main(["whoami"]) == 0
    assert "ada@example.com" in capsys.readouterr().out

    assert cli.main(["logout"]) == 0
    cli.main(["whoami"])
    assert "Not signed in" in capsys.readouterr().out


def test_practice_session_is_saved_and_listed(configured, fake_backends, monkeypatch, capsys):
    llm, recorder = fake_backends
    _scripted_input(monkeypatch, ["", "", "e"])

    assert cli.main(["practice", "--static", "--category=technical", "--difficulty=easy"]) == 0
    out = capsys.readouterr().out
    assert "I refactored the billing service." in out
    assert "Add a metric." in out
    assert "Session complete: 1 answer(s)" in out
    assert not recorder.device_held
    assert llm.requests[0]["inline_data"]["mimeType"] == "audio/wav"

    assert cli.main(["history"]) == 0
    out = capsys.readouterr().out
    assert "Technical/Easy" in out
    assert "let`, `const`, and `var`" in out

    assert cli.main(["clear-history"]) == 0
    assert "Deleted 1 session(s)" in capsys.readouterr().out


def test_practice_rejects_unknown_category(configured, fake_backends, capsys):
    assert cli.main(["practice", "--category=cooking"]) == 1


def test_context_falls_back_to_local_backends(configured, monkeypatch):
    monkeypatch.setenv("FIREBASE_API_KEY", "your-api-key")
    from ainterview.config import get_config

    with build_context(get_config(), llm_client=FakeLLMClient([])) as ctx:
        assert isinstance(ctx.identity_provider, LocalIdentityProvider)
        assert isinstance(ctx.history_store, LocalHistoryStore)


def test_context_falls_back_when_firestore_misconfigured(configured, monkeypatch):
    monkeypatch.setenv("FIREBASE_API_KEY", "AIza-real")
    from ainterview.config import get_config

    with build_context(get_config(), llm_client=FakeLLMClient([])) as ctx:
        assert isinstance(ctx.history_store, LocalHistoryStore)
