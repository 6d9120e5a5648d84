from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except Exception:
        return default


@dataclass(frozen=True)
class SimulatorConfig:
    # RNG seed shared by every stochastic component (None = nondeterministic)
    seed: Optional[int] = None

    # Wall-clock seconds slept per simulated second (0 disables sleeping; durations stay simulated)
    time_scale: float = 1.0

    # Probability per step that a network incident forces an ECU offline
    network_incident_rate: float = 0.05

    # Enforce TestSequence.timeout as a hard abort
    enforce_timeout: bool = True

    # Diagnosis
    history_capacity: int = 100
    max_suggestions: int = 5
    seed_history: bool = True
    patterns_file: Optional[str] = None


def load_simulator_config() -> SimulatorConfig:
    seed_raw = (os.getenv("DOIPSIM_SEED") or "").strip()
    try:
        seed: Optional[int] = int(seed_raw) if seed_raw else None
    except Exception:
        seed = None

    rate = _env_float("DOIPSIM_NETWORK_INCIDENT_RATE", 0.05)
    rate = min(1.0, max(0.0, rate))

    return SimulatorConfig(
        seed=seed,
        time_scale=max(0.0, _env_float("DOIPSIM_TIME_SCALE", 1.0)),
        network_incident_rate=rate,
        enforce_timeout=_env_bool("DOIPSIM_ENFORCE_TIMEOUT", True),
        history_capacity=max(1, _env_int("DOIPSIM_HISTORY_CAPACITY", 100)),
        max_suggestions=max(1, _env_int("DOIPSIM_MAX_SUGGESTIONS", 5)),
        seed_history=_env_bool("DOIPSIM_SEED_HISTORY", True),
        patterns_file=(os.getenv("DOIPSIM_PATTERNS_FILE") or "").strip() or None,
    )
