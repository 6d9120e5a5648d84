from __future__ import annotations

import pytest

from conftest import FixedRandom


def _ecu(**overrides):
    from doipsim.core.models import ECU

    base = dict(id="ECU1", type="engine", temperature=85.0, voltage=12.4, security_level=1)
    base.update(overrides)
    return ECU(**base)


def test_default_fleet_has_one_ecu_per_type() -> None:
    from doipsim.ecu.registry import ECURegistry

    reg = ECURegistry(rng=FixedRandom())
    ecus = reg.all()
    assert [e.id for e in ecus] == ["ECU1", "ECU2", "ECU3", "ECU4", "ECU5", "ECU6"]
    assert {e.type for e in ecus} == {"engine", "transmission", "abs", "body", "gateway", "airbag"}
    assert all(e.status == "online" for e in ecus)
    assert reg.get("ECU5").security_level == 3
    assert reg.get("ECU99") is None
    assert "ECU1" in reg and "ECU99" not in reg


@pytest.mark.parametrize("service", ["10", "14", "19", "22", "27", "2E", "31", "99"])
@pytest.mark.parametrize("ecu_type", ["engine", "transmission", "abs", "body", "gateway", "airbag"])
def test_failure_probability_is_monotonic_in_status(service: str, ecu_type: str) -> None:
    from doipsim.ecu.registry import failure_probability_for

    online = failure_probability_for(_ecu(type=ecu_type, status="online"), service)
    degraded = failure_probability_for(_ecu(type=ecu_type, status="degraded"), service)
    offline = failure_probability_for(_ecu(type=ecu_type, status="offline"), service)
    assert online <= degraded <= offline == 1.0


def test_failure_probability_adjustments_and_cap() -> None:
    from doipsim.ecu.registry import failure_probability_for

    assert failure_probability_for(_ecu(), "10") == pytest.approx(0.10)
    # engine reads are the most reliable path
    assert failure_probability_for(_ecu(), "22") == pytest.approx(0.05)
    # security access through the gateway is the least reliable one
    gw = _ecu(id="ECU5", type="gateway", temperature=35.0, voltage=12.6, security_level=1)
    assert failure_probability_for(gw, "27") == pytest.approx(0.30)
    # soft thresholds
    assert failure_probability_for(_ecu(temperature=101.0), "10") == pytest.approx(0.40)
    assert failure_probability_for(_ecu(voltage=12.25), "10") == pytest.approx(0.30)
    # environment alone never guarantees failure
    worst = _ecu(status="degraded", temperature=115.0, voltage=12.0, security_level=3)
    assert failure_probability_for(worst, "27") == pytest.approx(0.90)
    # unknown ECU
    assert failure_probability_for(None, "22") == pytest.approx(0.8)


def test_walk_stays_in_band_and_overheat_logs_dtc_once() -> None:
    from doipsim.ecu.registry import ECURegistry

    reg = ECURegistry(rng=FixedRandom(0.99), network_incident_rate=0.0)
    for _ in range(10):
        ecu = reg.simulate_step("ECU1")

    assert ecu.temperature == 115.0
    assert ecu.voltage == 13.0
    assert ecu.status == "degraded"
    assert ecu.error_codes == ["P0217"]


def test_low_voltage_degrades_and_logs_dtc() -> None:
    from doipsim.ecu.registry import ECURegistry

    reg = ECURegistry(rng=FixedRandom(0.01), network_incident_rate=0.0)
    for _ in range(5):
        ecu = reg.simulate_step("ECU4")

    assert ecu.voltage == 12.0
    assert ecu.temperature == 20.0
    assert ecu.status == "degraded"
    assert ecu.error_codes == ["P0562"]


def test_network_incident_takes_ecu_offline_until_next_clean_step() -> None:
    from doipsim.ecu.registry import ECURegistry

    rng = FixedRandom(0.5)
    reg = ECURegistry(rng=rng, network_incident_rate=0.6)
    assert reg.simulate_step("ECU3").status == "offline"
    assert reg.get("ECU3").status == "offline"

    rng.value = 0.7
    assert reg.simulate_step("ECU3").status == "online"


def test_force_status_is_pinned_until_reset() -> None:
    from doipsim.core.errors import UnknownECUError
    from doipsim.ecu.registry import ECURegistry

    reg = ECURegistry(rng=FixedRandom(), network_incident_rate=0.0)
    reg.force_status("ECU2", "offline")
    for _ in range(3):
        assert reg.simulate_step("ECU2").status == "offline"

    reg.reset("ECU2")
    assert reg.get("ECU2").status == "online"
    assert reg.simulate_step("ECU2").status == "online"

    with pytest.raises(UnknownECUError) as exc:
        reg.force_status("ECU99", "offline")
    assert str(exc.value) == "Unknown ECU: ECU99"
    with pytest.raises(KeyError):
        reg.reset("ECU99")


def test_reads_are_snapshots() -> None:
    from doipsim.ecu.registry import ECURegistry

    reg = ECURegistry(rng=FixedRandom())
    ecu = reg.get("ECU1")
    ecu.error_codes.append("P9999")
    ecu.temperature = 200.0
    assert reg.get("ECU1").error_codes == []
    assert reg.get("ECU1").temperature == 85.0

    assert reg.simulate_step("ECU99") is None


def test_mark_response_stamps_last_response() -> None:
    from doipsim.ecu.registry import ECURegistry

    reg = ECURegistry(rng=FixedRandom())
    assert reg.get("ECU1").last_response_at is None
    reg.mark_response("ECU1")
    assert reg.get("ECU1").last_response_at is not None
    reg.mark_response("ECU99")  # unknown ids are ignored


def test_error_message_reflects_ecu_state() -> None:
    from doipsim.ecu.registry import error_message_for

    assert error_message_for("ECU9", None, "22") == "ECU ECU9 not found"
    assert "offline" in error_message_for("ECU1", _ecu(status="offline"), "22")

    hot = _ecu(status="degraded", temperature=112.0, voltage=12.1, error_codes=["P0217"])
    msg = error_message_for("ECU1", hot, "22")
    assert "degraded" in msg
    assert "high temperature (112.0°C)" in msg
    assert "low voltage (12.1V)" in msg
    assert "P0217" in msg

    assert "data identifier not supported" in error_message_for("ECU1", _ecu(), "22")
    assert "insufficient privileges" in error_message_for("ECU1", _ecu(), "27")
    assert "session transition not allowed" in error_message_for("ECU1", _ecu(), "10")
    assert error_message_for("ECU1", _ecu(), "31") == "Service 31 not supported by engine ECU"
