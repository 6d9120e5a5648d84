"""Ordered execution of diagnostic test sequences."""

from doipsim.executor.sequence import ExecutionOutcome, SequenceExecutor, network_delay_ms

__all__ = ["ExecutionOutcome", "SequenceExecutor", "network_delay_ms"]
