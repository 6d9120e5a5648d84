"""Failure diagnosis: pattern catalog matching, historical similarity, merged ranking.

Everything here is deterministic and explainable; there is no learned component.
"""

from doipsim.diagnostics.catalog import PatternCatalog, load_catalog
from doipsim.diagnostics.engine import DiagnosisEngine
from doipsim.diagnostics.pattern_matcher import FailurePatternMatcher

__all__ = ["DiagnosisEngine", "FailurePatternMatcher", "PatternCatalog", "load_catalog"]
