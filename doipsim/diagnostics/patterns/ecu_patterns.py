"""ECU-type-specific failure patterns."""

from doipsim.core.models import FailurePattern

ECU_ENGINE_DATA_UNAVAILABLE = FailurePattern(
    id="ECU_ENGINE_001",
    category="ecu_specific",
    pattern="engine_data_unavailable",
    description="Engine ECU data parameters not available",
    common_causes=["Sensor failure", "Engine not running", "Data not initialized"],
    resolution_steps=[
        "Start engine and allow warm-up",
        "Check sensor connections",
        "Verify sensor operation",
        "Clear ECU memory and reinitialize",
    ],
    average_fix_time=12,
    success_rate=0.88,
)

ECU_TRANSMISSION_LOCKOUT = FailurePattern(
    id="ECU_TRANS_001",
    category="ecu_specific",
    pattern="transmission_lockout",
    description="Transmission ECU in protective lockout mode",
    common_causes=["Transmission overheating", "Hydraulic pressure fault", "Multiple shift errors"],
    resolution_steps=[
        "Check transmission fluid temperature",
        "Verify hydraulic pressure",
        "Clear transmission error codes",
        "Perform transmission adaptation",
    ],
    average_fix_time=35,
    success_rate=0.65,
)

ECU_PATTERNS = [ECU_ENGINE_DATA_UNAVAILABLE, ECU_TRANSMISSION_LOCKOUT]
