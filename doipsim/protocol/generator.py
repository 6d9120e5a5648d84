from __future__ import annotations

import logging
import random
from typing import Optional

from doipsim.core.models import ECU, DiagnosticMessage, new_id
from doipsim.core.services import NEGATIVE_RESPONSE_SERVICE, NRC, TESTER_ADDRESS, Service
from doipsim.ecu.registry import failure_probability_for
from doipsim.protocol import payloads

logger = logging.getLogger(__name__)

WRITE_REJECTION_RATE = 0.2


def negative_response(request_service: str, nrc: NRC) -> DiagnosticMessage:
    """7F <request service> <nrc>, addressed back to the tester."""
    return DiagnosticMessage(
        id=new_id("neg_resp"),
        service=NEGATIVE_RESPONSE_SERVICE,
        sub_function=request_service,
        data=nrc.value,
        target_ecu=TESTER_ADDRESS,
    )


def requested_security_level(sub_function: str) -> int:
    """Odd sub-functions request a seed for level (n+1)/2; even ones submit the key for level n/2."""
    try:
        n = int(sub_function, 16)
    except (TypeError, ValueError):
        return 1
    if n <= 0:
        return 1
    return (n + 1) // 2 if n % 2 else n // 2


def data_identifier(message: DiagnosticMessage) -> str:
    """
    Two-byte data identifier of a read request.

    Accepts both "F1 90" in the sub-function and the split form sub-function "D0" + data "5B".
    """
    sub = message.sub_function
    data = (message.data or "").strip().upper()
    if data and len(sub) == 2:
        return f"{sub} {data}"
    return sub


class ResponseGenerator:
    """
    Maps a request plus the target ECU's snapshot to a response.

    Returns None for "no response", which is the primary failure signal and is distinct from a
    negative response. The only ECU fields that shape payloads are type, status and security level.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def respond(self, message: DiagnosticMessage, ecu: Optional[ECU]) -> Optional[DiagnosticMessage]:
        p_fail = failure_probability_for(ecu, message.service)
        if self._rng.random() < p_fail:
            logger.debug(f"No response from {message.target_ecu} for {message.service} (p_fail={p_fail:.2f})")
            return None
        return self.synthesize(message, ecu)

    def synthesize(self, message: DiagnosticMessage, ecu: Optional[ECU]) -> DiagnosticMessage:
        """Build the response for a request that got past the failure gate."""
        svc = Service.parse(message.service)
        ecu_type = ecu.type if ecu is not None else None
        sub = message.sub_function

        if svc is None:
            return negative_response(message.service, NRC.SERVICE_NOT_SUPPORTED)

        if svc is Service.SESSION_CONTROL:
            return self._positive(message, svc, payloads.session_timing(sub))

        if svc is Service.READ_DATA_BY_IDENTIFIER:
            return self._positive(
                message, svc, payloads.data_by_identifier(data_identifier(message), ecu_type, self._rng)
            )

        if svc is Service.SECURITY_ACCESS:
            return self._security_access(message, ecu)

        if svc is Service.CLEAR_DIAGNOSTIC_INFORMATION:
            return self._positive(message, svc, None)

        if svc is Service.READ_DTC_INFORMATION:
            return self._positive(message, svc, payloads.dtc_report(ecu_type, self._rng))

        if svc is Service.WRITE_DATA_BY_IDENTIFIER:
            # Application-level rejection, independent of the network-level gate.
            if self._rng.random() < WRITE_REJECTION_RATE:
                return negative_response(message.service, NRC.REQUEST_OUT_OF_RANGE)
            return self._positive(message, svc, None)

        if svc is Service.ROUTINE_CONTROL:
            return self._positive(message, svc, payloads.routine_result(sub))

        return negative_response(message.service, NRC.SERVICE_NOT_SUPPORTED)

    def _security_access(self, message: DiagnosticMessage, ecu: Optional[ECU]) -> DiagnosticMessage:
        sub = message.sub_function
        level = requested_security_level(sub)
        if ecu is not None and level > ecu.security_level:
            return negative_response(message.service, NRC.INVALID_KEY)

        try:
            is_seed_request = int(sub, 16) % 2 == 1
        except ValueError:
            is_seed_request = False

        if is_seed_request:
            return self._positive(message, Service.SECURITY_ACCESS, payloads.random_bytes(self._rng))
        return self._positive(message, Service.SECURITY_ACCESS, None)

    @staticmethod
    def _positive(message: DiagnosticMessage, svc: Service, data: Optional[str]) -> DiagnosticMessage:
        return DiagnosticMessage(
            id=new_id("resp"),
            service=svc.positive_response,
            sub_function=message.sub_function,
            data=data,
            target_ecu=message.target_ecu,
        )
