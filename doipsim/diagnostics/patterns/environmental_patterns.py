"""Environmental failure patterns (thermal and supply voltage)."""

from doipsim.core.models import FailurePattern

ENV_TEMPERATURE = FailurePattern(
    id="ENV_001",
    category="environmental",
    pattern="temperature_failure",
    description="ECU failure due to high temperature conditions",
    common_causes=["Overheating", "Cooling system failure", "High ambient temperature"],
    resolution_steps=[
        "Check ECU temperature readings",
        "Verify cooling system operation",
        "Allow ECU to cool down",
        "Check for thermal protection activation",
    ],
    average_fix_time=25,
    success_rate=0.75,
)

ENV_VOLTAGE = FailurePattern(
    id="ENV_002",
    category="environmental",
    pattern="voltage_failure",
    description="ECU failure due to low voltage conditions",
    common_causes=["Battery discharge", "Alternator failure", "Wiring resistance"],
    resolution_steps=[
        "Check battery voltage",
        "Test alternator output",
        "Verify power supply connections",
        "Check for voltage drops in wiring",
    ],
    average_fix_time=20,
    success_rate=0.80,
)

ENVIRONMENTAL_PATTERNS = [ENV_TEMPERATURE, ENV_VOLTAGE]
