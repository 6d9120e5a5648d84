from __future__ import annotations


def test_defaults_when_env_is_empty() -> None:
    from doipsim.config import load_simulator_config

    cfg = load_simulator_config()
    assert cfg.seed is None
    assert cfg.time_scale == 1.0
    assert cfg.network_incident_rate == 0.05
    assert cfg.enforce_timeout is True
    assert cfg.history_capacity == 100
    assert cfg.max_suggestions == 5
    assert cfg.seed_history is True
    assert cfg.patterns_file is None


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("DOIPSIM_SEED", "42")
    monkeypatch.setenv("DOIPSIM_TIME_SCALE", "0")
    monkeypatch.setenv("DOIPSIM_ENFORCE_TIMEOUT", "off")
    monkeypatch.setenv("DOIPSIM_SEED_HISTORY", "0")
    monkeypatch.setenv("DOIPSIM_HISTORY_CAPACITY", "10")
    monkeypatch.setenv("DOIPSIM_PATTERNS_FILE", " /tmp/patterns.yaml ")

    from doipsim.config import load_simulator_config

    cfg = load_simulator_config()
    assert cfg.seed == 42
    assert cfg.time_scale == 0.0
    assert cfg.enforce_timeout is False
    assert cfg.seed_history is False
    assert cfg.history_capacity == 10
    assert cfg.patterns_file == "/tmp/patterns.yaml"


def test_bad_values_fall_back_or_clamp(monkeypatch) -> None:
    monkeypatch.setenv("DOIPSIM_SEED", "not-a-number")
    monkeypatch.setenv("DOIPSIM_TIME_SCALE", "-3")
    monkeypatch.setenv("DOIPSIM_NETWORK_INCIDENT_RATE", "7")
    monkeypatch.setenv("DOIPSIM_MAX_SUGGESTIONS", "0")
    monkeypatch.setenv("DOIPSIM_HISTORY_CAPACITY", "lots")

    from doipsim.config import load_simulator_config

    cfg = load_simulator_config()
    assert cfg.seed is None
    assert cfg.time_scale == 0.0
    assert cfg.network_incident_rate == 1.0
    assert cfg.max_suggestions == 1
    assert cfg.history_capacity == 100
