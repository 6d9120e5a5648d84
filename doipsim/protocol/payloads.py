"""Payload synthesis for positive responses.

Payloads are space-separated upper-case hex bytes. Live telemetry is drawn from bounded ranges and
encoded as fixed-width hex fields.
"""

from __future__ import annotations

import random
from typing import Dict, List, Optional

DEFAULT_SESSION_TIMING = "00 32 01 F4"

SESSION_TIMING: Dict[str, str] = {
    "01": "00 32 01 F4",  # default session
    "02": "00 0A 00 14",  # programming session
    "03": "00 32 01 F4",  # extended diagnostic session
    "81": "00 64 03 E8",  # custom session
}

ROUTINE_RESULTS: Dict[str, str] = {
    "01": "00",  # start routine
    "02": "01",  # stop routine
    "03": "10 20 30 40",  # request routine results
}

LIVE_DATA_IDENTIFIER = "D0 5B"
UNAVAILABLE = "FF FF FF FF"

# identifier -> ecu type -> payload ("default" is the per-identifier fallback)
STATIC_IDENTIFIERS: Dict[str, Dict[str, str]] = {
    "F1 90": {  # VIN
        "default": "WBA12345678901234",
    },
    "F1 8C": {  # ECU serial number
        "engine": "12345678",
        "transmission": "87654321",
        "abs": "ABS12345",
        "default": "SN123456",
    },
    "F1 8A": {  # software version
        "engine": "01.02.03",
        "transmission": "02.01.05",
        "abs": "03.04.01",
        "default": "01.00.00",
    },
}

DTC_TABLE: Dict[str, List[str]] = {
    "engine": ["P0171", "P0301", "P0442"],
    "transmission": ["P0700", "P0715", "P0730"],
    "abs": ["C1234", "C1235", "C1241"],
    "default": ["U0100", "U0101"],
}

_DTC_SYSTEM_NIBBLE = {"P": 0, "C": 1, "B": 2, "U": 3}


def _hex(value: int, width: int) -> str:
    return f"{value:0{width}X}"


def random_bytes(rng: random.Random, n: int = 4) -> str:
    return " ".join(_hex(rng.randrange(256), 2) for _ in range(n))


def session_timing(sub_function: str) -> str:
    return SESSION_TIMING.get(sub_function, DEFAULT_SESSION_TIMING)


def routine_result(sub_function: str) -> str:
    return ROUTINE_RESULTS.get(sub_function, "00")


def engine_live_data(rng: random.Random) -> str:
    rpm = int(rng.uniform(800, 2800))
    temp = int(rng.uniform(85, 110))
    load = int(rng.uniform(10, 90))
    return f"{_hex(rpm, 4)} {_hex(temp, 2)} {_hex(load, 2)}"


def transmission_live_data(rng: random.Random) -> str:
    gear = rng.randint(1, 8)
    pressure = int(rng.uniform(2000, 3000))  # kPa
    temp = int(rng.uniform(75, 100))
    return f"{_hex(gear, 2)} {_hex(pressure, 4)} {_hex(temp, 2)}"


def abs_live_data(rng: random.Random) -> str:
    # front-left, front-right, rear-left, rear-right wheel speeds
    return " ".join(_hex(int(rng.uniform(1000, 1500)), 4) for _ in range(4))


def data_by_identifier(identifier: str, ecu_type: Optional[str], rng: random.Random) -> str:
    if identifier == LIVE_DATA_IDENTIFIER:
        if ecu_type == "engine":
            return engine_live_data(rng)
        if ecu_type == "transmission":
            return transmission_live_data(rng)
        if ecu_type == "abs":
            return abs_live_data(rng)
        return UNAVAILABLE

    by_type = STATIC_IDENTIFIERS.get(identifier)
    if by_type is None:
        return random_bytes(rng)
    return by_type.get(ecu_type or "default") or by_type.get("default") or UNAVAILABLE


def dtc_to_hex(dtc: str) -> str:
    """Encode a DTC like "P0171" into its two-byte form ("01 71"; "C1234" -> "52 34")."""
    code = (dtc or "P0000").strip().upper()
    system = _DTC_SYSTEM_NIBBLE.get(code[:1], 0)
    digits = (code[1:] or "0000").ljust(4, "0")
    high = (system << 6) | ((int(digits[0], 16) & 0x3) << 4) | int(digits[1], 16)
    low = int(digits[2:4], 16)
    return f"{_hex(high, 2)} {_hex(low, 2)}"


def dtc_report(ecu_type: Optional[str], rng: random.Random) -> str:
    codes = DTC_TABLE.get(ecu_type or "default") or DTC_TABLE["default"]
    return f"01 {dtc_to_hex(rng.choice(codes))} 08"  # record count, DTC, status byte
