from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Tuple

import pytest

from queue_profiler.exceptions import DelayError, PersistenceError, SourceUnavailableError
from queue_profiler.interfaces import DelayProvider, DepthSource, SampleStore
from queue_profiler.sampler import Sampler


class RecordingSource:
    def __init__(self, depths: Iterable[int] = (), fail_on: int | None = None) -> None:
        self._depths = list(depths)
        self._fail_on = fail_on
        self.calls: List[str] = []

    def get_depth(self, queue_name: str) -> int:
        index = len(self.calls)
        self.calls.append(queue_name)
        if self._fail_on is not None and index == self._fail_on:
            raise SourceUnavailableError("broker unreachable")
        if index < len(self._depths):
            return self._depths[index]
        return 0


class RecordingDelay:
    def __init__(self, fail: bool = False) -> None:
        self._fail = fail
        self.calls: List[timedelta] = []

    def delay(self, duration: timedelta) -> None:
        self.calls.append(duration)
        if self._fail:
            raise DelayError("timer broken")


class RecordingStore:
    def __init__(self, fail_on: int | None = None) -> None:
        self._fail_on = fail_on
        self.attempts = 0
        self.saved: List[Tuple[str, datetime, int]] = []

    def save(self, queue_name: str, observed_at: datetime, depth: int) -> None:
        index = self.attempts
        self.attempts += 1
        if self._fail_on is not None and index == self._fail_on:
            raise PersistenceError("disk full")
        self.saved.append((queue_name, observed_at, depth))


def _sampler(
    source: RecordingSource, delay: RecordingDelay, store: RecordingStore, queue_name: str = "orders"
) -> Sampler:
    return Sampler(source, delay, store, queue_name)


def test_recording_doubles_satisfy_protocols() -> None:
    assert isinstance(RecordingSource(), DepthSource)
    assert isinstance(RecordingDelay(), DelayProvider)
    assert isinstance(RecordingStore(), SampleStore)


@pytest.mark.parametrize("executions", [0, 1, 2, 7])
def test_queries_and_saves_once_per_execution(executions: int) -> None:
    source, delay, store = RecordingSource(), RecordingDelay(), RecordingStore()
    _sampler(source, delay, store).run(executions, timedelta.min)
    assert len(source.calls) == executions
    assert len(store.saved) == executions


def test_queries_with_bound_queue_name() -> None:
    source, delay, store = RecordingSource(), RecordingDelay(), RecordingStore()
    _sampler(source, delay, store, queue_name="invoices-dlq").run(3, timedelta.min)
    assert source.calls == ["invoices-dlq"] * 3
    assert [entry[0] for entry in store.saved] == ["invoices-dlq"] * 3


@pytest.mark.parametrize("executions, expected", [(0, 0), (1, 0), (2, 1), (9, 8)])
def test_delays_only_between_samples(executions: int, expected: int) -> None:
    source, delay, store = RecordingSource(), RecordingDelay(), RecordingStore()
    _sampler(source, delay, store).run(executions, timedelta(milliseconds=1))
    assert len(delay.calls) == expected


def test_delay_receives_requested_duration_unchanged() -> None:
    source, delay, store = RecordingSource(), RecordingDelay(), RecordingStore()
    expected = timedelta(milliseconds=7)
    _sampler(source, delay, store).run(2, expected)
    assert delay.calls == [expected]


def test_negative_delay_is_passed_through() -> None:
    source, delay, store = RecordingSource(), RecordingDelay(), RecordingStore()
    _sampler(source, delay, store).run(3, timedelta(seconds=-5))
    assert delay.calls == [timedelta(seconds=-5)] * 2


def test_saved_timestamp_is_current_utc() -> None:
    source, delay, store = RecordingSource(), RecordingDelay(), RecordingStore()
    before = datetime.now(tz=timezone.utc)
    _sampler(source, delay, store).run(1, timedelta(0))
    after = datetime.now(tz=timezone.utc)
    observed_at = store.saved[0][1]
    assert observed_at.utcoffset() == timedelta(0)
    assert before <= observed_at <= after


def test_saved_depth_matches_source() -> None:
    depth = 2**40 + 17
    source, delay, store = RecordingSource([depth]), RecordingDelay(), RecordingStore()
    _sampler(source, delay, store).run(1, timedelta(0))
    assert store.saved[0][2] == depth


def test_three_samples_scenario() -> None:
    source, delay, store = RecordingSource([5, 7, 2]), RecordingDelay(), RecordingStore()
    _sampler(source, delay, store).run(3, timedelta(milliseconds=10))
    assert [(name, depth) for name, _, depth in store.saved] == [
        ("orders", 5),
        ("orders", 7),
        ("orders", 2),
    ]
    timestamps = [observed_at for _, observed_at, _ in store.saved]
    assert timestamps == sorted(timestamps)
    assert delay.calls == [timedelta(milliseconds=10)] * 2


def test_zero_executions_touches_nothing() -> None:
    source, delay, store = RecordingSource(), RecordingDelay(), RecordingStore()
    _sampler(source, delay, store).run(0, timedelta(seconds=1))
    assert source.calls == []
    assert delay.calls == []
    assert store.attempts == 0


def test_timestamp_taken_from_clock_after_query() -> None:
    events: List[str] = []

    class Source:
        def get_depth(self, queue_name: str) -> int:
            events.append("query")
            return 1

    def clock() -> datetime:
        events.append("clock")
        return datetime(2024, 1, 1, tzinfo=timezone.utc)

    store = RecordingStore()
    Sampler(Source(), RecordingDelay(), store, "orders", clock=clock).run(1, timedelta(0))
    assert events == ["query", "clock"]
    assert store.saved == [("orders", datetime(2024, 1, 1, tzinfo=timezone.utc), 1)]


@pytest.mark.parametrize("fail_on", [0, 1, 3])
def test_source_failure_stops_run(fail_on: int) -> None:
    source = RecordingSource([1, 2, 3, 4, 5], fail_on=fail_on)
    delay, store = RecordingDelay(), RecordingStore()
    with pytest.raises(SourceUnavailableError, match="broker unreachable"):
        _sampler(source, delay, store).run(5, timedelta(0))
    assert len(store.saved) == fail_on
    assert len(delay.calls) <= fail_on
    assert len(source.calls) == fail_on + 1


def test_store_failure_stops_run() -> None:
    source, delay, store = RecordingSource([1, 2, 3]), RecordingDelay(), RecordingStore(fail_on=1)
    with pytest.raises(PersistenceError):
        _sampler(source, delay, store).run(3, timedelta(0))
    assert len(store.saved) == 1
    assert len(source.calls) == 2
    assert len(delay.calls) == 1


def test_delay_failure_stops_run() -> None:
    source, delay, store = RecordingSource([1, 2]), RecordingDelay(fail=True), RecordingStore()
    with pytest.raises(DelayError):
        _sampler(source, delay, store).run(2, timedelta(0))
    assert len(source.calls) == 1
    assert len(store.saved) == 1


def test_foreign_exceptions_propagate_unchanged() -> None:
    error = ConnectionResetError("peer went away")

    class Source:
        def get_depth(self, queue_name: str) -> int:
            raise error

    with pytest.raises(ConnectionResetError) as info:
        Sampler(Source(), RecordingDelay(), RecordingStore(), "orders").run(1, timedelta(0))
    assert info.value is error


def test_sampler_can_be_reused() -> None:
    source, delay, store = RecordingSource(), RecordingDelay(), RecordingStore()
    sampler = _sampler(source, delay, store)
    sampler.run(2, timedelta(0))
    sampler.run(3, timedelta(0))
    assert len(store.saved) == 5
    assert len(delay.calls) == 3
