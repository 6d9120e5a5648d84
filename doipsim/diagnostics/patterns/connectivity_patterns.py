"""Connectivity and timing failure patterns (part of the built-in pattern catalog)."""

from doipsim.core.models import FailurePattern

# ECU silent on the bus
CONN_NO_RESPONSE = FailurePattern(
    id="CONN_001",
    category="connectivity",
    pattern="no_response",
    description="ECU not responding to diagnostic requests",
    common_causes=["Network cable disconnected", "ECU powered down", "CAN bus failure", "Network congestion"],
    resolution_steps=[
        "Check physical network connections",
        "Verify ECU power supply",
        "Test CAN bus continuity",
        "Check for network conflicts",
    ],
    average_fix_time=15,
    success_rate=0.85,
)

# Response arrived too late (or never, within the sequence budget)
TIMING_RESPONSE_TIMEOUT = FailurePattern(
    id="TIMING_001",
    category="timing",
    pattern="response_timeout",
    description="ECU response timeout during communication",
    common_causes=["Network latency", "ECU processing delay", "Concurrent requests"],
    resolution_steps=[
        "Increase request timeout value",
        "Reduce concurrent request load",
        "Check network performance",
        "Implement request queuing",
    ],
    average_fix_time=8,
    success_rate=0.92,
)

CONNECTIVITY_PATTERNS = [CONN_NO_RESPONSE, TIMING_RESPONSE_TIMEOUT]
