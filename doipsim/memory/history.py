from __future__ import annotations

import re
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Deque, List, Optional

from doipsim.core.models import FailureCategory, FailureContext, SimilarFailureSuggestion, TestResult

DEFAULT_CAPACITY = 100
SIMILARITY_THRESHOLD = 0.6
HISTORICAL_CONFIDENCE_FACTOR = 0.8

MESSAGE_WEIGHT = 0.4
SERVICE_WEIGHT = 0.3
ECU_TYPE_WEIGHT = 0.3

HISTORICAL_RESOLVERS = ("Alice Johnson", "Bob Smith", "Carol Davis", "David Wilson")
UNKNOWN_RESOLVER = "Unknown Resolver"

ACTIONABLE_VERBS =("check", "verify", "recommended", "inspect", "replace", "reset")
_LOG_PREFIX = re.compile(r"^\[\d+\]\s*")


def message_overlap(current: Optional[str], historical: Optional[str]) -> float:
    """Shared lowercase words of `current` found in `historical`, over the longer message's word count."""
    if not current or not historical:
        return 0.0
    cur_words = current.lower().split(" ")
    hist_words = historical.lower().split(" ")
    hist_set = set(hist_words)
    common = sum(1 for w in cur_words if w in hist_set)
    return common / max(len(cur_words), len(hist_words))


def historical_similarity(current: TestResult, historical: TestResult, context: FailureContext) -> float:
    similarity = MESSAGE_WEIGHT * message_overlap(current.error_message, historical.error_message)
    if context.service and any(context.service in line for line in historical.logs):
        similarity += SERVICE_WEIGHT
    if context.ecu_type and any(context.ecu_type in line.lower() for line in historical.logs):
        similarity += ECU_TYPE_WEIGHT
    return min(similarity, 1.0)


def categorize(historical: TestResult) -> FailureCategory:
    msg = (historical.error_message or "").lower()
    if "no response" in msg or "offline" in msg:
        return "connectivity"
    if "security" in msg or "access" in msg:
        return "security"
    if "timeout" in msg or "timed out" in msg:
        return "timing"
    if "temperature" in msg or "voltage" in msg:
        return "environmental"
    return "protocol"


def resolution_from_logs(logs: List[str]) -> List[str]:
    out: List[str] = []
    for line in logs:
        lower = line.lower()
        if any(v in lower for v in ACTIONABLE_VERBS):
            out.append(_LOG_PREFIX.sub("", line))
    return out


def historical_resolver(result_id: str) -> str:
    """Engineer credited with a past fix, picked by the trailing digit of the result id."""
    last = result_id[-1:]
    if not last.isdigit():
        return UNKNOWN_RESOLVER
    return HISTORICAL_RESOLVERS[int(last) % len(HISTORICAL_RESOLVERS)]


def estimate_fix_time(historical: TestResult) -> int:
    if historical.duration < 5000:
        return 10
    if historical.duration < 10000:
        return 20
    return 30


class HistoricalFailureIndex:
    """
    Newest-first ring buffer of past failures.

    Appends/evictions and reads share one lock, so a reader never sees a half-evicted buffer.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self.capacity = max(1, int(capacity))
        self._entries: Deque[TestResult] = deque(maxlen=self.capacity)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def record(self, result: TestResult) -> None:
        snapshot = result.model_copy(deep=True)
        with self._lock:
            # appendleft on a bounded deque drops the oldest (rightmost) entry
            self._entries.appendleft(snapshot)

    def entries(self) -> List[TestResult]:
        with self._lock:
            return list(self._entries)

    def similar_to(
        self,
        result: TestResult,
        context: FailureContext,
        *,
        now: Optional[datetime] = None,
    ) -> List[SimilarFailureSuggestion]:
        now = now or datetime.now(timezone.utc)
        out: List[SimilarFailureSuggestion] = []
        for historical in self.entries():
            if historical.id == result.id:
                continue
            similarity = historical_similarity(result, historical, context)
            if similarity <= SIMILARITY_THRESHOLD:
                continue
            days_ago = max(0, int((now - historical.timestamp).total_seconds() // 86400))
            out.append(
                SimilarFailureSuggestion(
                    source_id=historical.id,
                    similarity=similarity,
                    confidence=similarity * HISTORICAL_CONFIDENCE_FACTOR,
                    category=categorize(historical),
                    suggestion=(
                        f"Similar failure occurred {days_ago} day(s) ago: {historical.error_message}. "
                        "Check previous resolution in logs."
                    ),
                    resolution_steps=resolution_from_logs(historical.logs),
                    estimated_fix_time_minutes=estimate_fix_time(historical),
                    resolved_by=historical_resolver(historical.id),
                )
            )
        return out
