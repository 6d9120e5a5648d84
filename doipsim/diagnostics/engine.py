from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from doipsim.core.models import FailureContext, SimilarFailureSuggestion, TestResult
from doipsim.diagnostics.pattern_matcher import FailurePatternMatcher
from doipsim.memory.history import HistoricalFailureIndex

logger = logging.getLogger(__name__)

DEFAULT_MAX_SUGGESTIONS = 5


def rank_suggestions(suggestions: List[SimilarFailureSuggestion], limit: int) -> List[SimilarFailureSuggestion]:
    # Deterministic ranking: similarity x confidence desc, then source_id asc.
    ordered = sorted(suggestions, key=lambda s: (-(s.similarity * s.confidence), s.source_id))
    return ordered[: max(0, limit)]


class DiagnosisEngine:
    """
    Merges catalog matches and historical matches into one ranked suggestion list.

    Determinism goals:
    - stable ordering for equal scores
    - never raises (a broken source contributes nothing)
    """

    def __init__(
        self,
        matcher: FailurePatternMatcher,
        history: HistoricalFailureIndex,
        *,
        max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
    ) -> None:
        self.matcher = matcher
        self.history = history
        self.max_suggestions = max_suggestions

    def diagnose(
        self,
        result: TestResult,
        context: Optional[FailureContext],
        *,
        now: Optional[datetime] = None,
    ) -> List[SimilarFailureSuggestion]:
        if context is None:
            logger.warning(f"Diagnosis skipped for {result.id}: no failure context")
            return []

        merged: List[SimilarFailureSuggestion] = []
        try:
            merged.extend(self.matcher.suggestions(result, context))
        except Exception as e:
            logger.error(f"Diagnosis({result.id}): pattern matching error: {e}", exc_info=True)
        try:
            merged.extend(self.history.similar_to(result, context, now=now))
        except Exception as e:
            logger.error(f"Diagnosis({result.id}): history lookup error: {e}", exc_info=True)

        ranked = rank_suggestions(merged, self.max_suggestions)
        logger.info(f"Diagnosis({result.id}): {len(merged)} candidate(s), returning {len(ranked)}")
        return ranked
