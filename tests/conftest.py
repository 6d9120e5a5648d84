"""
Pytest config.

Local imports like `import doipsim` rely on the repo root being on sys.path when the package is
not installed. We pin the behavior here so tests can always import the local `doipsim/` package.
"""

from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()


class FixedRandom(random.Random):
    """
    Every draw returns `value`.

    With value=0.5 the temperature/voltage walks stay put (uniform(-s, s) == 0), no incident or
    spontaneous DTC fires, and the failure gate only trips when p_fail > 0.5.
    """

    def __init__(self, value: float = 0.5) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def fixed_rng() -> FixedRandom:
    return FixedRandom(0.5)


@pytest.fixture(autouse=True)
def _clear_doipsim_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer shell settings out of config-driven tests."""
    for name in (
        "DOIPSIM_SEED",
        "DOIPSIM_TIME_SCALE",
        "DOIPSIM_HISTORY_CAPACITY",
        "DOIPSIM_MAX_SUGGESTIONS",
        "DOIPSIM_ENFORCE_TIMEOUT",
        "DOIPSIM_SEED_HISTORY",
        "DOIPSIM_NETWORK_INCIDENT_RATE",
        "DOIPSIM_PATTERNS_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


def make_sequence(*steps, name: str = "test sequence", timeout: int = 30000):
    """Build a TestSequence from (service, sub_function, target_ecu[, data]) tuples."""
    from doipsim.core.models import DiagnosticMessage, TestSequence

    messages = []
    for step in steps:
        service, sub, target = step[:3]
        data = step[3] if len(step) > 3 else None
        messages.append(DiagnosticMessage(service=service, sub_function=sub, target_ecu=target, data=data))
    return TestSequence(name=name, messages=messages, timeout=timeout)


def make_executor(rng: random.Random, *, incident_rate: float = 0.0, enforce_timeout: bool = True):
    """Registry + generator + empty history wired to one RNG, with no real sleeping."""
    from doipsim.ecu.registry import ECURegistry
    from doipsim.executor.sequence import SequenceExecutor
    from doipsim.memory.history import HistoricalFailureIndex
    from doipsim.protocol.generator import ResponseGenerator

    registry = ECURegistry(rng=rng, network_incident_rate=incident_rate)
    history = HistoricalFailureIndex()
    executor = SequenceExecutor(
        registry,
        ResponseGenerator(rng),
        history,
        rng=rng,
        time_scale=0.0,
        enforce_timeout=enforce_timeout,
    )
    return executor, registry, history
