"""Protocol-level and security-access failure patterns."""

from doipsim.core.models import FailurePattern

# Negative or unexpected responses earlier in the sequence
PROT_INVALID_RESPONSE = FailurePattern(
    id="PROT_001",
    category="protocol",
    pattern="invalid_response",
    description="ECU sending malformed or unexpected responses",
    common_causes=["Firmware corruption", "Protocol version mismatch", "Memory corruption"],
    resolution_steps=[
        "Verify protocol version compatibility",
        "Check ECU firmware version",
        "Perform ECU memory test",
        "Consider firmware update",
    ],
    average_fix_time=30,
    success_rate=0.70,
)

# Seed/key handshake rejected
SEC_ACCESS_DENIED = FailurePattern(
    id="SEC_001",
    category="security",
    pattern="security_access_denied",
    description="Security access request rejected by ECU",
    common_causes=["Invalid security key", "Security timeout", "ECU in locked state"],
    resolution_steps=[
        "Verify security key calculation",
        "Check security session timeout",
        "Reset ECU security state",
        "Use correct security level",
    ],
    average_fix_time=10,
    success_rate=0.90,
)

PROTOCOL_PATTERNS = [PROT_INVALID_RESPONSE, SEC_ACCESS_DENIED]
