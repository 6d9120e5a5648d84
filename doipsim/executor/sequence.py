from __future__ import annotations

import asyncio
import logging
import random
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from doipsim.core.models import ECU, DiagnosticMessage, FailureContext, ResultStatus, TestResult, TestSequence
from doipsim.core.services import Service, interpret_nrc
from doipsim.diagnostics.context import build_failure_context
from doipsim.ecu.registry import ECURegistry, error_message_for
from doipsim.memory.history import HistoricalFailureIndex
from doipsim.protocol.generator import ResponseGenerator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, int], None]

BASE_DELAY_MS = 300.0
SERVICE_SURCHARGE_MS = {
    Service.SECURITY_ACCESS: 200.0,
    Service.ROUTINE_CONTROL: 500.0,
    Service.WRITE_DATA_BY_IDENTIFIER: 300.0,
}
GATEWAY_ROUTING_MS = 200.0
FAST_READ_BONUS_MS = 100.0
MAX_JITTER_MS = 200.0


def network_delay_ms(service: str, ecu_type: Optional[str], rng: random.Random) -> float:
    svc = Service.parse(service)
    delay = BASE_DELAY_MS
    if svc is not None:
        delay += SERVICE_SURCHARGE_MS.get(svc, 0.0)
    if ecu_type == "gateway":
        delay += GATEWAY_ROUTING_MS
    if ecu_type == "engine" and svc is Service.READ_DATA_BY_IDENTIFIER:
        delay -= FAST_READ_BONUS_MS
    return delay + rng.uniform(0.0, MAX_JITTER_MS)


@dataclass
class ExecutionOutcome:
    result: TestResult
    failure_context: Optional[FailureContext] = None
    cancelled: bool = False


class SequenceExecutor:
    """
    Drives a TestSequence through the response generator, one step at a time.

    - single pass, left to right, no retries
    - a missing response ends the sequence; a negative response does not
    - the only suspension point per step is the simulated network delay
    - `duration` is simulated network time; wall-clock sleep is scaled by `time_scale`
    """

    def __init__(
        self,
        registry: ECURegistry,
        generator: ResponseGenerator,
        history: HistoricalFailureIndex,
        *,
        rng: Optional[random.Random] = None,
        time_scale: float = 1.0,
        enforce_timeout: bool = True,
    ) -> None:
        self.registry = registry
        self.generator = generator
        self.history = history
        self.time_scale = max(0.0, time_scale)
        self.enforce_timeout = enforce_timeout
        self._rng = rng or random.Random()
        self._results: List[TestResult] = []
        self._results_lock = threading.Lock()

    def get_results(self) -> List[TestResult]:
        with self._results_lock:
            return list(self._results)

    def get_result(self, result_id: str) -> Optional[TestResult]:
        with self._results_lock:
            return next((r for r in self._results if r.id == result_id), None)

    async def execute(
        self,
        sequence: TestSequence,
        on_progress: Optional[ProgressCallback] = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> TestResult:
        outcome = await self.run(sequence, on_progress, cancel=cancel)
        return outcome.result

    async def run(
        self,
        sequence: TestSequence,
        on_progress: Optional[ProgressCallback] = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> ExecutionOutcome:
        logs: List[str] = [
            f"Starting test sequence: {sequence.name}",
            f"Target ECUs: {', '.join(sequence.target_ecus)}",
        ]
        responses: List[DiagnosticMessage] = []
        elapsed = 0.0
        total = len(sequence.messages)

        for i, message in enumerate(sequence.messages):
            step = i + 1
            # Progress reports entering the step, before its outcome is known.
            if on_progress is not None:
                on_progress(step / total * 100.0, step)

            if cancel is not None and cancel.is_set():
                return self._cancelled(sequence, step, elapsed, responses, logs)

            ecu = self.registry.simulate_step(message.target_ecu)
            ecu_type = ecu.type if ecu is not None else None
            logs.append(
                f"Step {step}/{total}: Sending {message.service} {message.sub_function} "
                f"to {message.target_ecu} ({ecu_type or 'unknown'})"
            )
            if ecu is not None:
                logs.append(f"ECU Status: {ecu.status}, Temp: {ecu.temperature:.1f}°C, Voltage: {ecu.voltage:.1f}V")

            delay = network_delay_ms(message.service, ecu_type, self._rng)
            if self.enforce_timeout and elapsed + delay > sequence.timeout:
                error = (
                    f"Sequence timed out after {elapsed + delay:.0f}ms (limit {sequence.timeout}ms) "
                    f"waiting for service {message.service} from {message.target_ecu}"
                )
                logs.append(f"ERROR: {error}")
                return self._fail(sequence, "timeout", i, ecu, float(sequence.timeout), responses, logs, error)

            if await self._suspend(delay, cancel):
                return self._cancelled(sequence, step, elapsed + delay, responses, logs)
            elapsed += delay

            response = self.generator.respond(message, ecu)
            if response is None:
                error = error_message_for(message.target_ecu, ecu, message.service)
                logs.append(f"ERROR: {error}")
                if ecu is not None and ecu.status == "degraded":
                    logs.append(
                        f"ECU degradation factors: Temperature {ecu.temperature:.1f}°C, Voltage {ecu.voltage:.1f}V"
                    )
                return self._fail(sequence, "failure", i, ecu, elapsed, responses, logs, error)

            responses.append(response)
            self.registry.mark_response(message.target_ecu)
            if response.is_negative:
                logs.append(
                    f"Received negative response: {response.service} {response.sub_function} {response.data} "
                    f"({interpret_nrc(response.data)})"
                )
            else:
                logs.append(
                    f"Received positive response: {response.service} {response.sub_function} {response.data or ''}".rstrip()
                )

        logs.append(f"Test sequence completed successfully in {elapsed:.0f}ms")
        result = TestResult(
            sequence_id=sequence.id,
            status="success",
            duration=elapsed,
            actual_responses=responses,
            logs=logs,
        )
        self.store(result)
        logger.info(f"Sequence {sequence.id} ({sequence.name}) succeeded in {elapsed:.0f}ms")
        return ExecutionOutcome(result=result)

    async def _suspend(self, delay_ms: float, cancel: Optional[asyncio.Event]) -> bool:
        """Sleep for the scaled delay; return True if cancelled meanwhile."""
        seconds = delay_ms / 1000.0 * self.time_scale
        if cancel is None:
            await asyncio.sleep(seconds)
            return False
        try:
            await asyncio.wait_for(cancel.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    def _fail(
        self,
        sequence: TestSequence,
        status: ResultStatus,
        position: int,
        ecu: Optional[ECU],
        elapsed: float,
        responses: List[DiagnosticMessage],
        logs: List[str],
        error: str,
    ) -> ExecutionOutcome:
        result = TestResult(
            sequence_id=sequence.id,
            status=status,
            duration=elapsed,
            actual_responses=responses,
            error_message=error,
            logs=logs,
        )
        self.store(result)
        self.history.record(result)
        logger.warning(f"Sequence {sequence.id} ({sequence.name}) {status} at step {position + 1}: {error}")
        context = build_failure_context(sequence=sequence, result=result, position=position, ecu=ecu)
        return ExecutionOutcome(result=result, failure_context=context)

    def _cancelled(
        self,
        sequence: TestSequence,
        step: int,
        elapsed: float,
        responses: List[DiagnosticMessage],
        logs: List[str],
    ) -> ExecutionOutcome:
        error = f"Execution cancelled at step {step}"
        logs.append(f"ERROR: {error}")
        result = TestResult(
            sequence_id=sequence.id,
            status="failure",
            duration=elapsed,
            actual_responses=responses,
            error_message=error,
            logs=logs,
        )
        self.store(result)
        logger.info(f"Sequence {sequence.id} ({sequence.name}) cancelled at step {step}")
        return ExecutionOutcome(result=result, cancelled=True)

    def store(self, result: TestResult) -> None:
        """Append `result` to the queryable results list."""
        with self._results_lock:
            self._results.append(result)
