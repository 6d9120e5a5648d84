"""Default ECU fleet and per-type physical profiles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from doipsim.core.models import ECU

# Hard thresholds: crossing them degrades the ECU.
HARD_TEMPERATURE_C = 110.0
HARD_VOLTAGE_V = 12.2

# Soft thresholds (tighter than the hard ones): they only raise failure probability.
SOFT_TEMPERATURE_C = 100.0
SOFT_VOLTAGE_V = 12.3

# Shared supply voltage band for every ECU type.
VOLTAGE_BAND = (12.0, 13.0)
VOLTAGE_STEP = 0.3

LOW_VOLTAGE_DTC = "P0562"


@dataclass(frozen=True)
class TypeProfile:
    temperature_band: tuple[float, float]
    temperature_step: float
    overheat_dtc: Optional[str] = None
    # Spontaneous fault code logged with `spontaneous_dtc_rate` per step (status unaffected)
    spontaneous_dtc: Optional[str] = None
    spontaneous_dtc_rate: float = 0.0


TYPE_PROFILES: Dict[str, TypeProfile] = {
    "engine": TypeProfile(temperature_band=(85.0, 115.0), temperature_step=8.0, overheat_dtc="P0217"),
    "transmission": TypeProfile(
        temperature_band=(75.0, 100.0),
        temperature_step=6.0,
        spontaneous_dtc="P0700",
        spontaneous_dtc_rate=0.1,
    ),
    "abs": TypeProfile(temperature_band=(40.0, 60.0), temperature_step=4.0),
    "body": TypeProfile(temperature_band=(20.0, 40.0), temperature_step=3.0),
    "gateway": TypeProfile(temperature_band=(30.0, 50.0), temperature_step=3.0),
    "airbag": TypeProfile(temperature_band=(20.0, 35.0), temperature_step=2.0),
}


def default_fleet() -> List[ECU]:
    return [
        ECU(id="ECU1", type="engine", temperature=85.0, voltage=12.4, security_level=1),
        ECU(id="ECU2", type="transmission", temperature=75.0, voltage=12.3, security_level=1),
        ECU(id="ECU3", type="abs", temperature=45.0, voltage=12.5, security_level=2),
        ECU(id="ECU4", type="body", temperature=25.0, voltage=12.4, security_level=1),
        ECU(id="ECU5", type="gateway", temperature=35.0, voltage=12.6, security_level=3),
        ECU(id="ECU6", type="airbag", temperature=30.0, voltage=12.5, security_level=2),
    ]
