from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError


def test_diagnostic_message_normalizes_codes() -> None:
    from doipsim.core.models import DiagnosticMessage

    m = DiagnosticMessage(service=" 2e ", sub_function="f1", target_ecu="ECU1")
    assert m.service == "2E"
    assert m.sub_function == "F1"
    assert m.id.startswith("msg_")
    assert m.is_negative is False
    assert m.nrc is None


@pytest.mark.parametrize("bad", ["", "2", "XYZ", "GG"])
def test_diagnostic_message_rejects_non_hex_service(bad: str) -> None:
    from doipsim.core.models import DiagnosticMessage

    with pytest.raises(ValidationError):
        DiagnosticMessage(service=bad, target_ecu="ECU1")


def test_negative_response_exposes_nrc() -> None:
    from doipsim.core.models import DiagnosticMessage

    m = DiagnosticMessage(service="7F", sub_function="27", data="35", target_ecu="TESTER")
    assert m.is_negative is True
    assert m.nrc == "35"


def test_sequence_requires_name_and_messages() -> None:
    from doipsim.core.models import DiagnosticMessage, TestSequence

    msg = DiagnosticMessage(service="22", sub_function="F1", data="90", target_ecu="ECU1")
    with pytest.raises(ValidationError):
        TestSequence(name="", messages=[msg])
    with pytest.raises(ValidationError):
        TestSequence(name="   ", messages=[msg])
    with pytest.raises(ValidationError):
        TestSequence(name="empty", messages=[])
    with pytest.raises(ValidationError):
        TestSequence(name="bad timeout", messages=[msg], timeout=0)


def test_sequence_target_ecus_are_distinct_in_first_seen_order() -> None:
    from conftest import make_sequence

    seq = make_sequence(("10", "03", "ECU2"), ("22", "F1", "ECU1", "90"), ("19", "02", "ECU2"))
    assert seq.target_ecus == ["ECU2", "ECU1"]
    assert seq.timeout == 30000


def test_models_forbid_unknown_fields() -> None:
    from doipsim.core.models import ECU

    with pytest.raises(ValidationError):
        ECU(id="ECU9", type="engine", temperature=90.0, voltage=12.5, colour="red")
    with pytest.raises(ValidationError):
        ECU(id="ECU9", type="toaster", temperature=90.0, voltage=12.5)
    with pytest.raises(ValidationError):
        ECU(id="ECU9", type="engine", temperature=90.0, voltage=12.5, security_level=-1)


def test_test_result_timestamp_is_timezone_aware() -> None:
    from doipsim.core.models import TestResult

    r = TestResult(sequence_id="seq", status="failure", timestamp=datetime(2025, 1, 1, 12, 0, 0))
    assert r.timestamp.tzinfo is timezone.utc
    assert r.id.startswith("result_")


def test_suggestion_score_is_similarity_times_confidence() -> None:
    from doipsim.core.models import SimilarFailureSuggestion

    s = SimilarFailureSuggestion(
        source_id="pattern_CONN_001", similarity=0.8, confidence=0.5, category="connectivity", suggestion="x"
    )
    assert s.score == pytest.approx(0.4)
    # score is derived, so a dump can be validated back.
    assert SimilarFailureSuggestion.model_validate(s.model_dump()).score == pytest.approx(0.4)


def test_execution_round_trips_through_json() -> None:
    from conftest import make_sequence

    from doipsim.core.models import TestExecution

    ex = TestExecution(sequence=make_sequence(("22", "F1", "ECU1", "90")))
    assert ex.status == "pending"
    again = TestExecution.model_validate(ex.model_dump(mode="json"))
    assert again.id == ex.id
    assert again.sequence.messages[0].service == "22"


def test_service_enum_and_nrc_interpretation() -> None:
    from doipsim.core.services import NRC, Service, interpret_nrc

    assert Service.parse("2e") is Service.WRITE_DATA_BY_IDENTIFIER
    assert Service.parse("99") is None
    assert Service.READ_DATA_BY_IDENTIFIER.positive_response == "62"
    assert Service.WRITE_DATA_BY_IDENTIFIER.positive_response == "6E"
    assert NRC.INVALID_KEY.description == "Invalid key"
    assert interpret_nrc("35") == "Invalid key"
    assert interpret_nrc("ab") == "Unknown NRC: AB"
