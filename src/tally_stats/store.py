"""Storage capability for computed stats."""

from __future__ import annotations

from typing import Protocol, Union

from .exceptions import StatsNotFoundError
from .models import ContributionStats, OrganizationStats

Stats = Union[ContributionStats, OrganizationStats]


class StatsStore(Protocol):
    def save(self, stats: Stats) -> str: ...

    def find(self, stats_id: str) -> Stats | None: ...

    def get(self, stats_id: str) -> Stats: ...

    def delete(self, stats_id: str) -> bool: ...


class InMemoryStatsStore:
    """Process-local store keyed by ``stats.id``."""

    def __init__(self) -> None:
        self._items: dict[str, Stats] = {}

    def save(self, stats: Stats) -> str:
        self._items[stats.id] = stats
        return stats.id

    def find(self, stats_id: str) -> Stats | None:
        return self._items.get(stats_id)

    def get(self, stats_id: str) -> Stats:
        try:
            return self._items[stats_id]
        except KeyError:
            raise StatsNotFoundError(stats_id) from None

    def delete(self, stats_id: str) -> bool:
        return self._items.pop(stats_id, None) is not None

    def __len__(self) -> int:
        return len(self._items)
