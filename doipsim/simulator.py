from __future__ import annotations

import asyncio
import logging
import random
import threading
from typing import Callable, Dict, List, Optional

from doipsim.config import SimulatorConfig, load_simulator_config
from doipsim.core.models import ECU, SimilarFailureSuggestion, TestExecution, TestResult, TestSequence
from doipsim.diagnostics.catalog import PatternCatalog, load_catalog
from doipsim.diagnostics.engine import DiagnosisEngine
from doipsim.diagnostics.pattern_matcher import FailurePatternMatcher
from doipsim.ecu.registry import ECURegistry
from doipsim.executor.sequence import ExecutionOutcome, SequenceExecutor
from doipsim.memory.history import HistoricalFailureIndex
from doipsim.memory.seed import seed_index
from doipsim.protocol.generator import ResponseGenerator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, int], None]
UpdateCallback = Callable[[TestExecution], None]


class DiagnosticSimulator:
    """
    Owns one simulated network: registry, generator, executor, catalog, history and diagnosis.

    All collaborators are constructed explicitly (see `from_config`) so tests can build isolated
    instances with fixed seeds. Failing executions are diagnosed automatically and the ranked
    suggestions are attached to the execution record.
    """

    def __init__(
        self,
        *,
        registry: ECURegistry,
        executor: SequenceExecutor,
        diagnosis: DiagnosisEngine,
    ) -> None:
        self.registry = registry
        self.executor = executor
        self.diagnosis = diagnosis
        self._executions: Dict[str, TestExecution] = {}
        self._cancel_events: Dict[str, asyncio.Event] = {}
        self._tasks: Dict[str, "asyncio.Task[TestExecution]"] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: Optional[SimulatorConfig] = None,
        *,
        ecus: Optional[List[ECU]] = None,
        catalog: Optional[PatternCatalog] = None,
        rng: Optional[random.Random] = None,
    ) -> "DiagnosticSimulator":
        cfg = config or load_simulator_config()
        rng = rng or random.Random(cfg.seed)

        registry = ECURegistry(ecus, rng=rng, network_incident_rate=cfg.network_incident_rate)
        history = HistoricalFailureIndex(capacity=cfg.history_capacity)
        if cfg.seed_history:
            seed_index(history)
        executor = SequenceExecutor(
            registry,
            ResponseGenerator(rng),
            history,
            rng=rng,
            time_scale=cfg.time_scale,
            enforce_timeout=cfg.enforce_timeout,
        )
        matcher = FailurePatternMatcher(catalog or load_catalog(cfg.patterns_file))
        diagnosis = DiagnosisEngine(matcher, history, max_suggestions=cfg.max_suggestions)
        return cls(registry=registry, executor=executor, diagnosis=diagnosis)

    # Query

    def get_results(self) -> List[TestResult]:
        return self.executor.get_results()

    def get_result(self, result_id: str) -> Optional[TestResult]:
        return self.executor.get_result(result_id)

    def get_execution(self, execution_id: str) -> Optional[TestExecution]:
        with self._lock:
            return self._executions.get(execution_id)

    def get_ecu(self, ecu_id: str) -> Optional[ECU]:
        return self.registry.get(ecu_id)

    def get_all_ecus(self) -> List[ECU]:
        return self.registry.all()

    # Execute

    def create_execution(self, sequence: TestSequence) -> TestExecution:
        execution = TestExecution(sequence=sequence)
        with self._lock:
            self._executions[execution.id] = execution
            self._cancel_events[execution.id] = asyncio.Event()
        return execution

    async def run(
        self,
        sequence: TestSequence,
        on_progress: Optional[ProgressCallback] = None,
        on_update: Optional[UpdateCallback] = None,
        *,
        execution: Optional[TestExecution] = None,
    ) -> TestExecution:
        """Execute `sequence` to completion and return its execution record."""
        execution = execution or self.create_execution(sequence)
        cancel = self._cancel_events.get(execution.id)

        def _progress(percent: float, step: int) -> None:
            execution.progress = percent
            execution.current_step = step
            if on_progress is not None:
                try:
                    on_progress(percent, step)
                except Exception as e:
                    logger.warning(f"Execution progress callback failed: {e}")
            _notify(on_update, execution)

        execution.status = "running"
        _notify(on_update, execution)

        try:
            outcome = await self.executor.run(sequence, _progress, cancel=cancel)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Execution {execution.id} failed with internal error: {e}", exc_info=True)
            result = TestResult(
                sequence_id=sequence.id,
                status="failure",
                error_message=f"Internal error: {e}",
                logs=["Execution failed with internal error"],
            )
            # queryable, not recorded in failure history
            self.executor.store(result)
            execution.status = "failed"
            execution.result = result
            _notify(on_update, execution)
            return execution
        finally:
            with self._lock:
                self._cancel_events.pop(execution.id, None)

        execution.result = outcome.result
        execution.status = "completed"
        execution.progress = 100.0
        if outcome.result.status != "success" and not outcome.cancelled:
            execution.similar_failures = self._diagnose(outcome)
        _notify(on_update, execution)
        return execution

    def submit(
        self,
        sequence: TestSequence,
        on_progress: Optional[ProgressCallback] = None,
        on_update: Optional[UpdateCallback] = None,
    ) -> TestExecution:
        """Schedule `sequence` as an independent task on the running loop; returns the pending record."""
        execution = self.create_execution(sequence)
        task = asyncio.get_running_loop().create_task(
            self.run(sequence, on_progress, on_update, execution=execution)
        )
        with self._lock:
            self._tasks[execution.id] = task
        task.add_done_callback(lambda _t: self._forget_task(execution.id))
        return execution

    async def wait(self, execution_id: str) -> Optional[TestExecution]:
        with self._lock:
            task = self._tasks.get(execution_id)
        if task is not None:
            await task
        return self.get_execution(execution_id)

    def cancel(self, execution_id: str) -> bool:
        """Request cancellation; the executor honours it at the next suspension point."""
        with self._lock:
            event = self._cancel_events.get(execution_id)
        if event is None:
            return False
        event.set()
        return True

    def _diagnose(self, outcome: ExecutionOutcome) -> List[SimilarFailureSuggestion]:
        try:
            return self.diagnosis.diagnose(outcome.result, outcome.failure_context)
        except Exception as e:
            logger.error(f"Diagnosis error for {outcome.result.id}: {e}", exc_info=True)
            return []

    def _forget_task(self, execution_id: str) -> None:
        with self._lock:
            self._tasks.pop(execution_id, None)


def _notify(callback: Optional[UpdateCallback], execution: TestExecution) -> None:
    if callback is None:
        return
    try:
        callback(execution)
    except Exception as e:
        # Never let a subscriber break the execution.
        logger.warning(f"Execution update callback failed: {e}")
