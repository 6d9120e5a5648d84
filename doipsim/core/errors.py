from __future__ import annotations


class SimulatorError(Exception):
    """Base class for errors raised by doipsim itself (not by pydantic validation)."""


class UnknownECUError(SimulatorError, KeyError):
    """Raised by registry hooks that require an existing ECU id."""

    def __init__(self, ecu_id: str) -> None:
        super().__init__(ecu_id)
        self.ecu_id = ecu_id

    def __str__(self) -> str:
        return f"Unknown ECU: {self.ecu_id}"


class SequenceLoadError(SimulatorError):
    """A sequence file could not be read or did not describe a valid TestSequence."""
