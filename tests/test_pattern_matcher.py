from __future__ import annotations

import pytest


def _ecu(**overrides):
    from doipsim.core.models import ECU

    base = dict(id="ECU1", type="engine", temperature=85.0, voltage=12.4, security_level=1)
    base.update(overrides)
    return ECU(**base)


def _failure(message, *, service="22", ecu=None, position=0, prior=None):
    from doipsim.core.models import FailureContext, TestResult

    ecu = ecu if ecu is not None else _ecu()
    result = TestResult(sequence_id="seq", status="failure", error_message=message)
    context = FailureContext(
        service=service,
        target_ecu=ecu.id,
        ecu_type=ecu.type,
        sequence_position=position,
        prior_responses=prior or [],
        ecu_state=ecu,
    )
    return result, context


def _matcher():
    from doipsim.diagnostics.catalog import load_catalog
    from doipsim.diagnostics.pattern_matcher import FailurePatternMatcher

    return FailurePatternMatcher(load_catalog())


def test_offline_engine_read_matches_connectivity_and_engine_patterns() -> None:
    result, ctx = _failure("ECU ECU1 (engine) is offline - no response", ecu=_ecu(status="offline"))

    matches = _matcher().match(result, ctx)

    assert [(p.id, round(sim, 3), round(conf, 3)) for p, sim, conf in matches] == [
        ("CONN_001", 0.8, 0.85),
        ("ECU_ENGINE_001", 0.9, 0.88),
    ]


def test_no_error_message_matches_nothing() -> None:
    result, ctx = _failure(None)
    assert _matcher().match(result, ctx) == []


def test_security_keywords_and_service_bonus() -> None:
    ecu = _ecu(id="ECU5", type="gateway", temperature=35.0, voltage=12.6)
    result, ctx = _failure("Security access denied on gateway ECU - insufficient privileges", service="27", ecu=ecu)

    matches = {p.id: (sim, conf) for p, sim, conf in _matcher().match(result, ctx)}
    assert set(matches) == {"SEC_001"}
    assert matches["SEC_001"][0] == pytest.approx(0.8)
    assert matches["SEC_001"][1] == pytest.approx(0.9)


def test_timeout_keyword_matches_timing_pattern() -> None:
    ecu = _ecu(id="ECU4", type="body", temperature=25.0)
    result, ctx = _failure("Sequence timed out after 31000ms (limit 30000ms)", service="10", ecu=ecu)
    assert [p.id for p, _s, _c in _matcher().match(result, ctx)] == ["TIMING_001"]


def test_prior_negative_response_matches_protocol_pattern() -> None:
    from doipsim.core.models import DiagnosticMessage

    neg = DiagnosticMessage(service="7F", sub_function="2E", data="31", target_ecu="TESTER")
    ecu = _ecu(id="ECU4", type="body", temperature=25.0)
    result, ctx = _failure("Service 31 not supported by body ECU", service="31", ecu=ecu, prior=[neg])
    assert [p.id for p, _s, _c in _matcher().match(result, ctx)] == ["PROT_001"]


def test_environment_patterns_and_confidence_scaling() -> None:
    hot = _ecu(status="degraded", temperature=112.0, voltage=12.1)
    result, ctx = _failure("ECU ECU1 (engine) is in degraded state - high temperature", service="10", ecu=hot)

    matches = {p.id: (sim, conf) for p, sim, conf in _matcher().match(result, ctx)}
    assert set(matches) == {"ENV_001", "ENV_002"}
    # degraded ECU: confidence scaled up
    assert matches["ENV_001"] == (pytest.approx(0.8), pytest.approx(0.75 * 1.1))
    assert matches["ENV_002"] == (pytest.approx(0.8), pytest.approx(0.80 * 1.1))

    late_result, late_ctx = _failure(result.error_message, service="10", ecu=hot, position=6)
    late = {p.id: conf for p, _s, conf in _matcher().match(late_result, late_ctx)}
    assert late["ENV_001"] == pytest.approx(0.75 * 1.1 * 0.9)


def test_transmission_context_matches_lockout() -> None:
    ecu = _ecu(id="ECU2", type="transmission", temperature=80.0)
    result, ctx = _failure("Diagnostic session control failed on transmission ECU", service="10", ecu=ecu)
    matches = {p.id: sim for p, sim, _c in _matcher().match(result, ctx)}
    assert matches == {"ECU_TRANS_001": pytest.approx(0.9)}


def test_suggestions_carry_catalog_resolution_and_owner() -> None:
    from doipsim.diagnostics.patterns.connectivity_patterns import CONN_NO_RESPONSE

    result, ctx = _failure("ECU ECU1 (engine) is offline - no response", ecu=_ecu(status="offline"))
    suggestions = {s.source_id: s for s in _matcher().suggestions(result, ctx)}

    conn = suggestions["pattern_CONN_001"]
    assert conn.category == "connectivity"
    assert conn.resolved_by == "Network Team"
    assert conn.resolution_steps == CONN_NO_RESPONSE.resolution_steps
    assert conn.estimated_fix_time_minutes == CONN_NO_RESPONSE.average_fix_time
    assert conn.suggestion.startswith("ECU1 (engine) connectivity issue detected during service 22.")

    assert suggestions["pattern_ECU_ENGINE_001"].resolved_by == "ECU Specialist"


def test_similarity_is_capped() -> None:
    from doipsim.diagnostics.pattern_matcher import PatternRule

    always = lambda _r, _c: True  # noqa: E731
    rule = PatternRule("x", predicate=always, bonuses=((always, 0.4), (always, 0.4)))
    result, ctx = _failure("anything")
    assert rule.matches(result, ctx)
    assert rule.similarity(result, ctx) == 1.0
