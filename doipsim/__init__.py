"""doipsim: stochastic diagnostic-network simulator and failure diagnosis engine.

The package is layered leaves-first:
- `doipsim.core`: canonical models, protocol service codes, errors
- `doipsim.ecu`: ECU registry and stochastic state model
- `doipsim.protocol`: request -> response synthesis
- `doipsim.executor`: ordered sequence execution
- `doipsim.diagnostics` / `doipsim.memory`: failure pattern matching and historical similarity
- `doipsim.simulator`: the owning service object wiring everything together
"""

from __future__ import annotations

__version__ = "0.1.0"
