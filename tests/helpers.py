"""Fakes and builders shared by proctop tests."""

from dataclasses import replace

from proctop.models import ProcessSample, SystemCounters
from proctop.monitor import Snapshot

MB = 1024 * 1024


def make_counters(
    mem_total: int = 1000 * MB,
    mem_available: int = 600 * MB,
    aggregate_cpu_ticks: int = 10_000,
) -> SystemCounters:
    """Build SystemCounters with sensible defaults."""
    return SystemCounters(
        aggregate_cpu_ticks=aggregate_cpu_ticks,
        mem_total=mem_total,
        mem_free=mem_available // 2,
        mem_available=mem_available,
        uptime_seconds=3600.0,
    )


class FakeReader:
    """SnapshotReader stand-in that replays scripted process lists.

    The aggregate CPU counter advances by advance_ticks on every read.
    """

    def __init__(
        self,
        *batches,
        counters=None,
        ticks_per_second=100,
        page_bytes=4096,
        advance_ticks=100,
    ):
        self.ticks_per_second = ticks_per_second
        self.page_bytes = page_bytes
        self._batches = list(batches) or [[]]
        self._counters = counters or make_counters()
        self._advance_ticks = advance_ticks
        self.reads = 0

    def read(self) -> Snapshot:
        batch = self._batches[min(self.reads, len(self._batches) - 1)]
        counters = replace(
            self._counters,
            aggregate_cpu_ticks=self._counters.aggregate_cpu_ticks + self._advance_ticks * self.reads,
        )
        self.reads += 1
        return Snapshot(processes=list(batch), counters=counters)


class FakeClock:
    """Monotonic clock stand-in advanced by hand."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTerminator:
    """Records termination requests and answers with a fixed result."""

    def __init__(self, result: bool = True):
        self.result = result
        self.calls: list[int] = []

    def terminate(self, pid: int) -> bool:
        self.calls.append(pid)
        return self.result


class FakeTerminal:
    """Records line mode switches."""

    def __init__(self):
        self.modes: list[bool] = []

    def set_line_mode(self, enabled: bool) -> None:
        self.modes.append(enabled)


def sample(pid: int, ticks: int = 0, pages: int = 0, name: str | None = None) -> ProcessSample:
    """Build a ProcessSample."""
    return ProcessSample(
        pid=pid,
        name=f"proc{pid}" if name is None else name,
        cumulative_cpu_ticks=ticks,
        resident_pages=pages,
    )
