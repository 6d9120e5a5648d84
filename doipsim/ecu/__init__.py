"""ECU registry and stochastic state model."""

from doipsim.ecu.registry import ECURegistry, error_message_for, failure_probability_for

__all__ = ["ECURegistry", "error_message_for", "failure_probability_for"]
