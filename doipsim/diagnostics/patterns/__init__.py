"""Built-in failure pattern library.

This module aggregates all pattern sets into a single list that the catalog loads at startup.

Adding new pattern sets:
1. Create a new file (e.g., gateway_patterns.py)
2. Define patterns using FailurePattern
3. Export as a list (e.g., GATEWAY_PATTERNS)
4. Import and add to ALL_PATTERNS below, and give each new pattern tag a rule in
   `doipsim.diagnostics.pattern_matcher.DEFAULT_RULES`

Site-specific patterns can also be supplied as YAML (see `doipsim.diagnostics.catalog`).
"""

from doipsim.diagnostics.patterns.connectivity_patterns import CONNECTIVITY_PATTERNS
from doipsim.diagnostics.patterns.ecu_patterns import ECU_PATTERNS
from doipsim.diagnostics.patterns.environmental_patterns import ENVIRONMENTAL_PATTERNS
from doipsim.diagnostics.patterns.protocol_patterns import PROTOCOL_PATTERNS

ALL_PATTERNS = [
    *CONNECTIVITY_PATTERNS,
    *PROTOCOL_PATTERNS,
    *ENVIRONMENTAL_PATTERNS,
    *ECU_PATTERNS,
]
