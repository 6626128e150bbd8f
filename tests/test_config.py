from __future__ import annotations

import pytest

from eventflow.config import EngineConfig, load_config


def test_defaults_without_environment(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    for name in ("EVENTFLOW_DATA_PATH", "CORS_ORIGINS", "EVENTFLOW_SEED", "EVENTFLOW_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    config = load_config()
    assert config.data_path == "data/events.json"
    assert config.cors_origins == ["http://localhost:5173"]
    assert config.seed is None
    assert config.log_level == "INFO"


def test_environment_overrides(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("EVENTFLOW_DATA_PATH", "/tmp/lib.json")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, ,http://b.test")
    monkeypatch.setenv("EVENTFLOW_SEED", "42")
    monkeypatch.setenv("EVENTFLOW_LOG_LEVEL", "debug")
    config = load_config()
    assert config.data_path == "/tmp/lib.json"
    assert config.cors_origins == ["http://a.test", "http://b.test"]
    assert config.seed == 42
    assert config.log_level == "DEBUG"


def test_blank_cors_falls_back_to_default(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("CORS_ORIGINS", " , ")
    assert load_config().cors_origins == ["http://localhost:5173"]


def test_bad_seed_raises(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("EVENTFLOW_SEED", "abc")
    with pytest.raises(ValueError):
        load_config()


def test_engine_config_is_plain_dataclass() -> None:
    config = EngineConfig()
    config.seed = 5
    assert config.seed == 5
