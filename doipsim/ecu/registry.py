from __future__ import annotations

import logging
import random
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, List, Optional

from doipsim.core.errors import UnknownECUError
from doipsim.core.models import ECU, ECUStatus
from doipsim.core.services import Service
from doipsim.ecu.fleet import (
    HARD_TEMPERATURE_C,
    HARD_VOLTAGE_V,
    LOW_VOLTAGE_DTC,
    SOFT_TEMPERATURE_C,
    SOFT_VOLTAGE_V,
    TYPE_PROFILES,
    VOLTAGE_BAND,
    VOLTAGE_STEP,
    default_fleet,
)

logger = logging.getLogger(__name__)

BASE_FAILURE_RATE = 0.10
UNKNOWN_ECU_FAILURE_RATE = 0.8
DEGRADED_PENALTY = 0.4
MAX_ENVIRONMENTAL_FAILURE = 0.9


def failure_probability_for(ecu: Optional[ECU], service: str) -> float:
    """
    Probability that a request to `ecu` for `service` gets no response at all.

    Only an offline ECU fails with certainty; environment alone is capped at 0.9.
    """
    if ecu is None:
        return UNKNOWN_ECU_FAILURE_RATE
    if ecu.status == "offline":
        return 1.0

    svc = Service.parse(service)
    p = BASE_FAILURE_RATE
    if ecu.status == "degraded":
        p += DEGRADED_PENALTY

    # Routine engine reads are the most reliable path.
    if ecu.type == "engine" and svc is Service.READ_DATA_BY_IDENTIFIER:
        p *= 0.5
    # Security access routed through the gateway is the least reliable one.
    if ecu.type == "gateway" and svc is Service.SECURITY_ACCESS:
        p += 0.2

    if ecu.temperature > SOFT_TEMPERATURE_C:
        p += 0.3
    if ecu.voltage < SOFT_VOLTAGE_V:
        p += 0.2
    if svc is Service.SECURITY_ACCESS and ecu.security_level > 2:
        p += 0.1

    return min(p, MAX_ENVIRONMENTAL_FAILURE)


def degradation_reason(ecu: ECU) -> str:
    reasons: List[str] = []
    if ecu.temperature > SOFT_TEMPERATURE_C:
        reasons.append(f"high temperature ({ecu.temperature:.1f}°C)")
    if ecu.voltage < HARD_VOLTAGE_V:
        reasons.append(f"low voltage ({ecu.voltage:.1f}V)")
    if ecu.error_codes:
        reasons.append(f"error codes: {', '.join(ecu.error_codes)}")
    return ", ".join(reasons) if reasons else "unknown degradation"


def error_message_for(ecu_id: str, ecu: Optional[ECU], service: str) -> str:
    """Explain a missing response from the ECU's point of view."""
    if ecu is None:
        return f"ECU {ecu_id} not found"
    if ecu.status == "offline":
        return f"ECU {ecu_id} ({ecu.type}) is offline - no response"
    if ecu.status == "degraded":
        return f"ECU {ecu_id} ({ecu.type}) is in degraded state - {degradation_reason(ecu)}"

    svc = Service.parse(service)
    if svc is Service.READ_DATA_BY_IDENTIFIER:
        return f"Read data service failed on {ecu.type} ECU - data identifier not supported"
    if svc is Service.SECURITY_ACCESS:
        return f"Security access denied on {ecu.type} ECU - insufficient privileges"
    if svc is Service.SESSION_CONTROL:
        return f"Diagnostic session control failed on {ecu.type} ECU - session transition not allowed"
    return f"Service {service} not supported by {ecu.type} ECU"


def _walk(rng: random.Random, value: float, low: float, high: float, step: float) -> float:
    nxt = value + rng.uniform(-step, step)
    return round(min(high, max(low, nxt)), 2)


class ECURegistry:
    """
    Owns the live ECU state.

    Every mutation of one ECU happens under that ECU's lock, so concurrent sequences targeting
    the same ECU cannot interleave state updates. Readers always get deep copies.
    """

    def __init__(
        self,
        ecus: Optional[Iterable[ECU]] = None,
        *,
        rng: Optional[random.Random] = None,
        network_incident_rate: float = 0.05,
    ) -> None:
        self._rng = rng or random.Random()
        self._incident_rate = network_incident_rate
        self._ecus: Dict[str, ECU] = {}
        for ecu in ecus if ecus is not None else default_fleet():
            self._ecus[ecu.id] = ecu.model_copy(deep=True)
        self._locks: Dict[str, threading.RLock] = {eid: threading.RLock() for eid in self._ecus}
        self._missing_lock = threading.RLock()
        self._pinned: Dict[str, ECUStatus] = {}

    @contextmanager
    def lock(self, ecu_id: str) -> Iterator[None]:
        with self._locks.get(ecu_id, self._missing_lock):
            yield

    def get(self, ecu_id: str) -> Optional[ECU]:
        with self.lock(ecu_id):
            ecu = self._ecus.get(ecu_id)
            return ecu.model_copy(deep=True) if ecu is not None else None

    def all(self) -> List[ECU]:
        return [e for e in (self.get(eid) for eid in list(self._ecus)) if e is not None]

    def __contains__(self, ecu_id: object) -> bool:
        return ecu_id in self._ecus

    def simulate_step(self, ecu_id: str) -> Optional[ECU]:
        """
        Advance one ECU's physical state by one step and return a snapshot.

        Status is recomputed from scratch every step, so a network-incident outage recovers on
        the next step that draws no incident. A status pinned via `force_status` wins until reset.
        """
        with self.lock(ecu_id):
            ecu = self._ecus.get(ecu_id)
            if ecu is None:
                return None

            profile = TYPE_PROFILES[ecu.type]
            t_low, t_high = profile.temperature_band
            ecu.temperature = _walk(self._rng, ecu.temperature, t_low, t_high, profile.temperature_step)
            ecu.voltage = _walk(self._rng, ecu.voltage, VOLTAGE_BAND[0], VOLTAGE_BAND[1], VOLTAGE_STEP)

            status: ECUStatus = "online"
            if ecu.temperature > HARD_TEMPERATURE_C:
                status = "degraded"
                if profile.overheat_dtc:
                    self._append_code(ecu, profile.overheat_dtc)
            if ecu.voltage < HARD_VOLTAGE_V:
                status = "degraded"
                self._append_code(ecu, LOW_VOLTAGE_DTC)
            if profile.spontaneous_dtc and self._rng.random() < profile.spontaneous_dtc_rate:
                self._append_code(ecu, profile.spontaneous_dtc)

            if self._rng.random() < self._incident_rate:
                status = "offline"
                logger.info(f"Network incident: {ecu_id} dropped off the bus")

            pinned = self._pinned.get(ecu_id)
            if pinned is not None:
                status = pinned

            if status != ecu.status:
                logger.info(
                    f"{ecu_id} ({ecu.type}) {ecu.status} -> {status} "
                    f"(temp={ecu.temperature:.1f}°C, voltage={ecu.voltage:.2f}V)"
                )
            ecu.status = status
            return ecu.model_copy(deep=True)

    def failure_probability(self, ecu_id: str, service: str) -> float:
        return failure_probability_for(self.get(ecu_id), service)

    def error_message(self, ecu_id: str, service: str) -> str:
        return error_message_for(ecu_id, self.get(ecu_id), service)

    def mark_response(self, ecu_id: str, at: Optional[datetime] = None) -> None:
        with self.lock(ecu_id):
            ecu = self._ecus.get(ecu_id)
            if ecu is not None:
                ecu.last_response_at = at or datetime.now(timezone.utc)

    # Fault injection (tests/operators). Pinned status survives simulation steps until reset().

    def force_status(self, ecu_id: str, status: ECUStatus) -> None:
        with self.lock(ecu_id):
            ecu = self._ecus.get(ecu_id)
            if ecu is None:
                raise UnknownECUError(ecu_id)
            self._pinned[ecu_id] = status
            ecu.status = status
            logger.info(f"{ecu_id} pinned to {status}")

    def reset(self, ecu_id: str) -> None:
        """Release a pinned status and clear stored error codes."""
        with self.lock(ecu_id):
            ecu = self._ecus.get(ecu_id)
            if ecu is None:
                raise UnknownECUError(ecu_id)
            self._pinned.pop(ecu_id, None)
            ecu.error_codes = []
            ecu.status = (
                "degraded" if ecu.temperature > HARD_TEMPERATURE_C or ecu.voltage < HARD_VOLTAGE_V else "online"
            )

    @staticmethod
    def _append_code(ecu: ECU, code: str) -> None:
        if code not in ecu.error_codes:
            ecu.error_codes.append(code)
