"""Rule-based matching of a failed TestResult against the failure pattern catalog."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from doipsim.core.models import FailureCategory, FailureContext, FailurePattern, SimilarFailureSuggestion, TestResult
from doipsim.core.services import Service
from doipsim.diagnostics.catalog import PatternCatalog

ContextPredicate = Callable[[TestResult, FailureContext], bool]

BASE_SIMILARITY = 0.5
DEGRADED_CONFIDENCE_BOOST = 1.1
LATE_FAILURE_CONFIDENCE_PENALTY = 0.9
LATE_FAILURE_POSITION = 5

# Owning team per category, shown as `resolved_by` on catalog suggestions.
CATEGORY_OWNERS: Dict[str, str] = {
    "connectivity": "Network Team",
    "protocol": "Diagnostic Specialist",
    "security": "Security Team",
    "environmental": "Hardware Team",
    "ecu_specific": "ECU Specialist",
    "timing": "System Administrator",
}


@dataclass(frozen=True)
class PatternRule:
    """How one catalog pattern (by tag) is recognized and scored.

    A rule matches when any keyword regex hits the error message (case-insensitive) or when its
    context predicate holds. Similarity starts at BASE_SIMILARITY and adds each bonus whose
    predicate holds.
    """

    pattern_tag: str

    keywords: Tuple[str, ...] = ()
    """Regexes searched in TestResult.error_message"""

    predicate: Optional[ContextPredicate] = None
    """Independent check over the failure context"""

    bonuses: Tuple[Tuple[ContextPredicate, float], ...] = field(default_factory=tuple)

    def matches(self, result: TestResult, context: FailureContext) -> bool:
        message = result.error_message or ""
        if any(re.search(k, message, re.IGNORECASE) for k in self.keywords):
            return True
        return bool(self.predicate is not None and self.predicate(result, context))

    def similarity(self, result: TestResult, context: FailureContext) -> float:
        score = BASE_SIMILARITY
        for check, bonus in self.bonuses:
            if check(result, context):
                score += bonus
        return min(score, 1.0)


def _service_is(svc: Service) -> ContextPredicate:
    return lambda _r, ctx: Service.parse(ctx.service) is svc


def _ecu_type_is(ecu_type: str) -> ContextPredicate:
    return lambda _r, ctx: ctx.ecu_type == ecu_type


def _temperature_above(limit: float) -> ContextPredicate:
    return lambda _r, ctx: ctx.ecu_state is not None and ctx.ecu_state.temperature > limit


def _voltage_below(limit: float) -> ContextPredicate:
    return lambda _r, ctx: ctx.ecu_state is not None and ctx.ecu_state.voltage < limit


def _ecu_status_is(status: str) -> ContextPredicate:
    return lambda _r, ctx: ctx.ecu_state is not None and ctx.ecu_state.status == status


def _prior_negative_response(_r: TestResult, ctx: FailureContext) -> bool:
    return any(m.is_negative for m in ctx.prior_responses)


def _engine_read(r: TestResult, ctx: FailureContext) -> bool:
    return _ecu_type_is("engine")(r, ctx) and _service_is(Service.READ_DATA_BY_IDENTIFIER)(r, ctx)


DEFAULT_RULES: Dict[str, PatternRule] = {
    rule.pattern_tag: rule
    for rule in (
        PatternRule(
            "no_response",
            keywords=(r"no response",),
            bonuses=((_ecu_status_is("offline"), 0.3),),
        ),
        PatternRule(
            "security_access_denied",
            keywords=(r"security", r"access denied"),
            bonuses=((_service_is(Service.SECURITY_ACCESS), 0.3),),
        ),
        PatternRule("response_timeout", keywords=(r"timeout", r"timed out")),
        PatternRule("invalid_response", predicate=_prior_negative_response),
        PatternRule(
            "engine_data_unavailable",
            predicate=_engine_read,
            bonuses=((_ecu_type_is("engine"), 0.4),),
        ),
        PatternRule(
            "transmission_lockout",
            predicate=_ecu_type_is("transmission"),
            bonuses=((_ecu_type_is("transmission"), 0.4),),
        ),
        PatternRule(
            "temperature_failure",
            predicate=_temperature_above(100.0),
            bonuses=((_temperature_above(90.0), 0.3),),
        ),
        PatternRule(
            "voltage_failure",
            predicate=_voltage_below(12.2),
            bonuses=((_voltage_below(12.3), 0.3),),
        ),
    )
}


def pattern_confidence(pattern: FailurePattern, context: FailureContext) -> float:
    confidence = pattern.success_rate
    if context.ecu_state is not None and context.ecu_state.status == "degraded":
        confidence *= DEGRADED_CONFIDENCE_BOOST
    if context.sequence_position > LATE_FAILURE_POSITION:
        confidence *= LATE_FAILURE_CONFIDENCE_PENALTY
    return min(confidence, 1.0)


def contextual_suggestion(pattern: FailurePattern, context: FailureContext) -> str:
    ecu_info = f"{context.target_ecu} ({context.ecu_type or 'unknown'})"
    service_info = f"service {context.service}"
    state = context.ecu_state

    if pattern.category == "connectivity":
        return f"{ecu_info} connectivity issue detected during {service_info}. {pattern.description}"
    if pattern.category == "environmental":
        if state is not None and state.temperature > 100:
            return f"{ecu_info} showing high temperature ({state.temperature:.1f}°C). {pattern.description}"
        if state is not None and state.voltage < 12.2:
            return f"{ecu_info} showing low voltage ({state.voltage:.1f}V). {pattern.description}"
        return f"{ecu_info} environmental issue detected. {pattern.description}"
    if pattern.category == "security":
        return f"Security access failure on {ecu_info} for {service_info}. {pattern.description}"
    if pattern.category == "ecu_specific":
        return f"{context.ecu_type or 'unknown'} ECU specific issue on {service_info}. {pattern.description}"
    return f"{pattern.description} detected on {ecu_info}"


class FailurePatternMatcher:
    """Matches a failed result against every catalog pattern (no early exit).

    Usage:
        matcher = FailurePatternMatcher(load_catalog())
        for pattern, similarity, confidence in matcher.match(result, context):
            ...
    """

    def __init__(self, catalog: PatternCatalog, rules: Optional[Dict[str, PatternRule]] = None):
        self.catalog = catalog
        self.rules: Dict[str, PatternRule] = dict(rules if rules is not None else DEFAULT_RULES)
        for pattern in catalog:
            kws = catalog.keywords_for(pattern.pattern)
            if pattern.pattern not in self.rules and kws:
                self.rules[pattern.pattern] = PatternRule(pattern.pattern, keywords=kws)

    def match(self, result: TestResult, context: FailureContext) -> List[Tuple[FailurePattern, float, float]]:
        """
        Returns:
            (pattern, similarity, confidence) for every matching pattern, in catalog order.
        """
        if not result.error_message:
            return []

        matches: List[Tuple[FailurePattern, float, float]] = []
        for pattern in self.catalog:
            rule = self.rules.get(pattern.pattern)
            if rule is None or not rule.matches(result, context):
                continue
            matches.append((pattern, rule.similarity(result, context), pattern_confidence(pattern, context)))
        return matches

    def suggestions(self, result: TestResult, context: FailureContext) -> List[SimilarFailureSuggestion]:
        out: List[SimilarFailureSuggestion] = []
        for pattern, similarity, confidence in self.match(result, context):
            category: FailureCategory = pattern.category
            out.append(
                SimilarFailureSuggestion(
                    source_id=f"pattern_{pattern.id}",
                    similarity=similarity,
                    confidence=confidence,
                    category=category,
                    suggestion=contextual_suggestion(pattern, context),
                    resolution_steps=list(pattern.resolution_steps),
                    estimated_fix_time_minutes=pattern.average_fix_time,
                    resolved_by=CATEGORY_OWNERS.get(category, "Support Team"),
                )
            )
        return out
