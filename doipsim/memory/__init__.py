"""Memory layer: rolling index of past failures used for similarity-based suggestions."""

from __future__ import annotations

from doipsim.memory.history import HistoricalFailureIndex

__all__ = ["HistoricalFailureIndex"]
