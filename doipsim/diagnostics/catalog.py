"""Failure pattern catalog.

The catalog is built once at startup from the built-in pattern library plus an optional YAML file
and is never mutated afterwards, so readers need no locking.

YAML format:

    patterns:
      - id: GW_001
        category: connectivity
        pattern: gateway_routing_loss
        description: Gateway drops routed diagnostic traffic
        keywords: ["routing", "gateway .* unreachable"]   # regexes over the error message
        common_causes: [...]
        resolution_steps: [...]
        average_fix_time: 20
        success_rate: 0.7
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple

import yaml

from doipsim.core.models import FailurePattern
from doipsim.diagnostics.patterns import ALL_PATTERNS

logger = logging.getLogger(__name__)


class PatternCatalog:
    def __init__(self, patterns: Iterable[FailurePattern], keywords: Optional[Mapping[str, List[str]]] = None):
        items: Tuple[FailurePattern, ...] = tuple(patterns)
        seen: Set[str] = set()
        for p in items:
            if p.id in seen:
                raise ValueError(f"Duplicate failure pattern id: {p.id}")
            seen.add(p.id)
        self._patterns = items
        self._keywords = MappingProxyType({k: tuple(v) for k, v in (keywords or {}).items()})

    def __iter__(self) -> Iterator[FailurePattern]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def keywords_for(self, tag: str) -> Tuple[str, ...]:
        """Error-message keyword regexes declared for catalog-file patterns."""
        return self._keywords.get(tag, ())


def _load_yaml_patterns(path: str) -> Tuple[List[FailurePattern], Dict[str, List[str]]]:
    with open(Path(path).expanduser()) as f:
        doc = yaml.safe_load(f) or {}

    raw = doc.get("patterns") if isinstance(doc, dict) else doc
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a list under 'patterns'")

    patterns: List[FailurePattern] = []
    keywords: Dict[str, List[str]] = {}
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValueError(f"{path}: pattern entries must be mappings")
        entry = dict(entry)
        kws = [str(k) for k in (entry.pop("keywords", None) or [])]
        p = FailurePattern.model_validate(entry)
        patterns.append(p)
        if kws:
            keywords[p.pattern] = kws
    return patterns, keywords


def load_catalog(patterns_file: Optional[str] = None) -> PatternCatalog:
    """Built-in patterns, extended by `patterns_file` when given."""
    patterns: List[FailurePattern] = list(ALL_PATTERNS)
    keywords: Dict[str, List[str]] = {}
    if patterns_file:
        extra, keywords = _load_yaml_patterns(patterns_file)
        patterns.extend(extra)
        logger.info(f"Loaded {len(extra)} failure pattern(s) from {patterns_file}")
    return PatternCatalog(patterns, keywords)
