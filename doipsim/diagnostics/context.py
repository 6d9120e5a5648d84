from __future__ import annotations

from typing import Optional

from doipsim.core.models import ECU, DiagnosticMessage, FailureContext, TestResult, TestSequence


def build_failure_context(
    *,
    sequence: TestSequence,
    result: TestResult,
    position: int,
    ecu: Optional[ECU],
    elapsed_ms: Optional[float] = None,
) -> FailureContext:
    """Snapshot of the failing step (0-based `position` into `sequence.messages`)."""
    message: DiagnosticMessage = sequence.messages[position]
    return FailureContext(
        service=message.service,
        sub_function=message.sub_function,
        target_ecu=message.target_ecu,
        ecu_type=ecu.type if ecu is not None else None,
        sequence_position=position,
        elapsed_ms=result.duration if elapsed_ms is None else elapsed_ms,
        prior_responses=list(result.actual_responses),
        ecu_state=ecu.model_copy(deep=True) if ecu is not None else None,
    )
