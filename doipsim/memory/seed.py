"""Known past failures the history index starts with (when DOIPSIM_SEED_HISTORY is on)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from doipsim.core.models import TestResult
from doipsim.memory.history import HistoricalFailureIndex


def seed_failures(now: Optional[datetime] = None) -> List[TestResult]:
    """Newest first."""
    now = now or datetime.now(timezone.utc)
    return [
        TestResult(
            id="hist_001",
            sequence_id="seq_engine_diag",
            status="failure",
            timestamp=now - timedelta(days=1),
            duration=5000,
            error_message="No response from ECU1 for service 22",
            logs=["ECU1 (engine) high temperature detected", "Cooling system check recommended"],
        ),
        TestResult(
            id="hist_002",
            sequence_id="seq_trans_test",
            status="failure",
            timestamp=now - timedelta(days=2),
            duration=8000,
            error_message="Security access denied on ECU2",
            logs=["Invalid security key used", "ECU2 security level 2 required"],
        ),
        TestResult(
            id="hist_003",
            sequence_id="seq_abs_check",
            status="failure",
            timestamp=now - timedelta(days=3),
            duration=12000,
            error_message="Response timeout from ECU3",
            logs=["Network congestion detected", "Multiple ECUs responding simultaneously"],
        ),
    ]


def seed_index(index: HistoricalFailureIndex, now: Optional[datetime] = None) -> None:
    # record() prepends, so feed oldest first to keep newest at the front
    for result in reversed(seed_failures(now)):
        index.record(result)
