from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from datetime import date

from pydantic import BaseModel, Field

from .schema import LogEntry
from .shard import constants as C


class DailyCostCounter(BaseModel):
    """Running API spend for the current calendar day.

    The first write on a new day replaces the total instead of adding to it.
    """

    total: float = Field(default=0.0, ge=0.0)
    last_updated: date | None = None

    def add(self, cost: float, today: date | None = None) -> float:
        today = today or date.today()
        if self.last_updated != today:
            self.total = cost
        else:
            self.total += cost
        self.last_updated = today
        return self.total


class RequestLog:
    """Bounded newest-first log of API exchanges.

    Appending beyond ``capacity`` evicts the oldest entry (strict FIFO).
    """

    def __init__(
        self,
        entries: Iterable[LogEntry] | None = None,
        cost_counter: DailyCostCounter | None = None,
        capacity: int = C.LOG_CAPACITY,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        # deque(maxlen) drops from the right end on appendleft
        self._entries: deque[LogEntry] = deque(list(entries or ())[:capacity], maxlen=capacity)
        self.cost_counter = cost_counter or DailyCostCounter()

    def append(self, entry: LogEntry, today: date | None = None) -> None:
        self._entries.appendleft(entry)
        if entry.cost is not None:
            self.cost_counter.add(entry.cost, today=today)

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def daily_cost(self) -> float:
        return self.cost_counter.total

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["DailyCostCounter", "RequestLog"]
