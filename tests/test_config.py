from pathlib import Path

import pytest

from genux_core.config import DEFAULT_API_ENDPOINT, Config
from genux_core.exceptions import ValidationError


def test_defaults():
    cfg = Config()
    assert cfg.api_endpoint == DEFAULT_API_ENDPOINT
    assert cfg.storage_backend == "local"
    assert cfg.debounce_delay == 300
    assert cfg.debounce_seconds == 0.3
    assert cfg.proxy_endpoint is None
    assert cfg.target_container is None
    assert cfg.max_attempts == 3


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("GENUX_PROXY_ENDPOINT", "http://localhost:8000/proxy-api")
    monkeypatch.setenv("GENUX_DEBOUNCE_DELAY", "50")
    monkeypatch.setenv("GEMINI_API_KEY", "k-123")
    cfg = Config()
    assert cfg.proxy_endpoint == "http://localhost:8000/proxy-api"
    assert cfg.debounce_delay == 50
    assert cfg.api_key == "k-123"


def test_from_options_accepts_camel_case_and_ignores_unknown():
    cfg = Config.from_options({
        "targetContainer": "#app",
        "storageBackend": "CLOUD",
        "storagePath": "/tmp/x.json",
        "somethingElse": True,
    })
    assert cfg.target_container == "#app"
    assert cfg.storage_backend == "cloud"
    assert cfg.storage_path == Path("/tmp/x.json")


def test_overrides_win_over_options():
    cfg = Config.from_options({"debounceDelay": 10}, debounce_delay=20)
    assert cfg.debounce_delay == 20


@pytest.mark.parametrize("options", [
    {"storageBackend": "redis"},
    {"debounceDelay": -1},
    {"maxAttempts": 0},
])
def test_invalid_options_rejected(options):
    with pytest.raises(ValidationError):
        Config.from_options(options)


def test_config_is_read_only():
    cfg = Config()
    with pytest.raises(Exception):
        cfg.api_key = "changed"


def test_numeric_strings_are_converted():
    cfg = Config.from_options({"debounceDelay": "150", "maxAttempts": "5", "requestTimeout": "30"})
    assert cfg.debounce_delay == 150
    assert cfg.max_attempts == 5
    assert cfg.request_timeout == 30.0


@pytest.mark.parametrize("options", [
    {"debounceDelay": "soon"},
    {"maxAttempts": None},
    {"requestTimeout": "forever"},
    {"retryBaseDelay": "x"},
])
def test_non_numeric_options_rejected(options):
    with pytest.raises(ValidationError):
        Config.from_options(options)


def test_non_numeric_env_rejected(monkeypatch):
    monkeypatch.setenv("GENUX_DEBOUNCE_DELAY", "fast")
    with pytest.raises(ValidationError) as exc:
        Config()
    assert "debounceDelay" in str(exc.value)
