"""Exception types for tally-stats."""

from __future__ import annotations


class TallyError(Exception):
    """Base exception for tally-stats errors."""


class StatsNotFoundError(TallyError, KeyError):
    """Raised when a stats record id is absent from the store."""

    def __init__(self, stats_id: str) -> None:
        super().__init__(f"Stats not found: {stats_id}")
        self.stats_id = stats_id

    def __str__(self) -> str:
        return self.args[0]


class UnitCancelled(TallyError):
    """A pooled unit was stopped by the request deadline or a stop signal."""
