import os

import pytest

from ainterview.config import Config, get_config
from ainterview.errors import ConfigurationError


def test_missing_project_is_configuration_error():
    with pytest.raises(ConfigurationError):
        get_config()


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "proj-1")
    monkeypatch.setenv("AINTERVIEW_QUESTION_SOURCE", "STATIC")
    monkeypatch.setenv("AINTERVIEW_TRANSCRIBER", "speech")
    monkeypatch.setenv("AINTERVIEW_MODEL", "gemini-x")

    config = get_config()

    assert config.google_cloud_project == "proj-1"
    assert config.question_source == "static"
    assert config.transcription_backend == "speech"
    assert config.model_name == "gemini-x"
    assert config.history_file == os.path.join(str(tmp_path / "work"), "history.json")


def test_invalid_question_source_rejected(monkeypatch):
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "proj-1")
    monkeypatch.setenv("AINTERVIEW_QUESTION_SOURCE", "oracle")

    with pytest.raises(ConfigurationError):
        get_config()


@pytest.mark.parametrize("key, expected", [(None, False), ("your-api-key", False), ("AIza123", True)])
def test_firebase_configured_ignores_placeholder(key, expected):
    assert Config(google_cloud_project="p", firebase_api_key=key).firebase_configured is expected
