from __future__ import annotations

from datetime import date, timedelta

import pytest

from mindful_poster.request_log import DailyCostCounter, RequestLog
from mindful_poster.schema import GenerationRequest, LogEntry

TODAY = date(2024, 6, 3)


def _entry(index: int, cost: float | None = None) -> LogEntry:
    request = GenerationRequest(task_uuid=f"task-{index}", positive_prompt=f"prompt {index}", model="runware:100@1")
    return LogEntry(request=request, execution_time=0.1, cost=cost)


class TestDailyCostCounter:
    def test_same_day_accumulates(self):
        counter = DailyCostCounter()
        counter.add(1.5, today=TODAY)
        assert counter.add(2.0, today=TODAY) == pytest.approx(3.5)

    def test_new_day_resets_to_write_value(self):
        counter = DailyCostCounter(total=10.0, last_updated=TODAY)
        assert counter.add(0.25, today=TODAY + timedelta(days=1)) == 0.25
        assert counter.last_updated == TODAY + timedelta(days=1)

    def test_first_write_ever_sets_total(self):
        counter = DailyCostCounter(total=3.0)
        assert counter.add(1.0, today=TODAY) == 1.0


class TestRequestLog:
    def test_append_is_newest_first(self):
        log = RequestLog()
        log.append(_entry(1))
        log.append(_entry(2))
        assert [e.request.task_uuid for e in log.entries] == ["task-2", "task-1"]

    def test_capacity_evicts_single_oldest(self):
        log = RequestLog()
        for i in range(51):
            log.append(_entry(i))
        assert len(log) == 50
        uuids = [e.request.task_uuid for e in log.entries]
        assert uuids[0] == "task-50"
        assert uuids[-1] == "task-1"
        assert "task-0" not in uuids

    def test_loaded_entries_are_truncated_to_capacity(self):
        stored = [_entry(i) for i in range(5)]
        log = RequestLog(entries=stored, capacity=3)
        assert [e.request.task_uuid for e in log.entries] == ["task-0", "task-1", "task-2"]

    def test_cost_updates_counter_only_when_present(self):
        log = RequestLog()
        log.append(_entry(1, cost=1.5), today=TODAY)
        log.append(_entry(2), today=TODAY)
        log.append(_entry(3, cost=2.0), today=TODAY)
        assert log.daily_cost() == pytest.approx(3.5)

    def test_zero_cost_on_new_day_resets(self):
        log = RequestLog(cost_counter=DailyCostCounter(total=4.0, last_updated=TODAY))
        log.append(_entry(1, cost=0.0), today=TODAY + timedelta(days=1))
        assert log.daily_cost() == 0.0

    def test_clear_keeps_cost(self):
        log = RequestLog()
        log.append(_entry(1, cost=1.0), today=TODAY)
        log.clear()
        assert len(log) == 0
        assert log.daily_cost() == 1.0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            RequestLog(capacity=0)
