"""Diagnostic protocol service and negative-response codes.

Service codes travel as two upper-case hex digits (e.g. "22"). Everything that dispatches on a
service goes through `Service.parse()` so unknown codes are handled in exactly one place.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

NEGATIVE_RESPONSE_SERVICE = "7F"
TESTER_ADDRESS = "TESTER"


class Service(str, Enum):
    SESSION_CONTROL = "10"
    CLEAR_DIAGNOSTIC_INFORMATION = "14"
    READ_DTC_INFORMATION = "19"
    READ_DATA_BY_IDENTIFIER = "22"
    SECURITY_ACCESS = "27"
    WRITE_DATA_BY_IDENTIFIER = "2E"
    ROUTINE_CONTROL = "31"

    @classmethod
    def parse(cls, code: str) -> Optional["Service"]:
        """Return the service for a hex code, or None when the code is not supported."""
        try:
            return cls(normalize_code(code))
        except ValueError:
            return None

    @property
    def positive_response(self) -> str:
        return f"{int(self.value, 16) + 0x40:02X}"


class NRC(str, Enum):
    GENERAL_REJECT = "10"
    SERVICE_NOT_SUPPORTED = "11"
    SUB_FUNCTION_NOT_SUPPORTED = "12"
    INCORRECT_MESSAGE_LENGTH = "13"
    CONDITIONS_NOT_CORRECT = "22"
    REQUEST_OUT_OF_RANGE = "31"
    SECURITY_ACCESS_DENIED = "33"
    INVALID_KEY = "35"
    REQUIRED_TIME_DELAY_NOT_EXPIRED = "37"
    RESPONSE_PENDING = "78"

    @property
    def description(self) -> str:
        return NRC_DESCRIPTIONS[self]


NRC_DESCRIPTIONS: Dict[NRC, str] = {
    NRC.GENERAL_REJECT: "General reject",
    NRC.SERVICE_NOT_SUPPORTED: "Service not supported",
    NRC.SUB_FUNCTION_NOT_SUPPORTED: "Sub-function not supported",
    NRC.INCORRECT_MESSAGE_LENGTH: "Incorrect message length",
    NRC.CONDITIONS_NOT_CORRECT: "Conditions not correct",
    NRC.REQUEST_OUT_OF_RANGE: "Request out of range",
    NRC.SECURITY_ACCESS_DENIED: "Security access denied",
    NRC.INVALID_KEY: "Invalid key",
    NRC.REQUIRED_TIME_DELAY_NOT_EXPIRED: "Required time delay not expired",
    NRC.RESPONSE_PENDING: "Request correctly received - response pending",
}


def normalize_code(code: str) -> str:
    return str(code or "").strip().upper()


def interpret_nrc(code: Optional[str]) -> str:
    """Human-readable NRC description; unknown codes are reported verbatim."""
    raw = normalize_code(code or "")
    try:
        return NRC(raw).description
    except ValueError:
        return f"Unknown NRC: {raw}"
