"""Snapshot reader for proctop."""

import logging
import mmap
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import psutil

from proctop.models import ProcessSample, SystemCounters

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TICKS_PER_SECOND = 100

# Errors that degrade a single reading instead of aborting the snapshot
READ_ERRORS = (psutil.Error, OSError, ValueError, TypeError, AttributeError)

# guest time is already accounted in user/nice on Linux
_GUEST_FIELDS = frozenset({"guest", "guest_nice"})


def clock_ticks_per_second() -> int:
    """Get the OS clock tick rate, falling back to 100 when unavailable."""
    try:
        ticks = os.sysconf("SC_CLK_TCK")
    except (AttributeError, ValueError, OSError):
        return DEFAULT_TICKS_PER_SECOND
    return ticks if ticks > 0 else DEFAULT_TICKS_PER_SECOND


def page_size() -> int:
    """Get the memory page size in bytes."""
    try:
        size = os.sysconf("SC_PAGE_SIZE")
    except (AttributeError, ValueError, OSError):
        return mmap.PAGESIZE
    return size if size > 0 else mmap.PAGESIZE


@dataclass(slots=True)
class Snapshot:
    """All processes plus system counters for one instant."""

    processes: list[ProcessSample]
    counters: SystemCounters


class SnapshotReader:
    """
    Best-effort reader of process and system counters using psutil.

    Every pid returned by enumeration yields exactly one ProcessSample.
    Fields that cannot be read (process vanished, access denied, zombie)
    are reported as blank or zero instead of dropping the process.
    """

    def __init__(
        self,
        ticks_per_second: int | None = None,
        page_bytes: int | None = None,
    ) -> None:
        """
        Initialize the SnapshotReader.

        Args:
            ticks_per_second: Clock ticks per second. Defaults to the OS value.
            page_bytes: Memory page size in bytes. Defaults to the OS value.
        """
        self._ticks_per_second = ticks_per_second or clock_ticks_per_second()
        self._page_bytes = page_bytes or page_size()

    @property
    def ticks_per_second(self) -> int:
        """Get the clock tick rate used for conversions."""
        return self._ticks_per_second

    @property
    def page_bytes(self) -> int:
        """Get the page size used for conversions."""
        return self._page_bytes

    def read(self) -> Snapshot:
        """Collect a snapshot of the current system state."""
        counters = self.read_counters()
        processes = self.read_processes()
        return Snapshot(processes=processes, counters=counters)

    def read_counters(self) -> SystemCounters:
        """Read system-wide counters; each unreadable value becomes zero."""
        cpu_ticks = _guarded("cpu_times", self._read_aggregate_ticks, 0)
        mem = _guarded("virtual_memory", psutil.virtual_memory, None)
        uptime = _guarded("boot_time", lambda: time.time() - psutil.boot_time(), 0.0)

        return SystemCounters(
            aggregate_cpu_ticks=cpu_ticks,
            mem_total=getattr(mem, "total", 0),
            mem_free=getattr(mem, "free", 0),
            mem_available=getattr(mem, "available", 0),
            uptime_seconds=max(0.0, uptime),
        )

    def read_processes(self) -> list[ProcessSample]:
        """Read one sample per enumerated pid."""
        pids = _guarded("pids", psutil.pids, [])
        return [self._read_process(pid) for pid in pids]

    def _read_aggregate_ticks(self) -> int:
        times = psutil.cpu_times()
        seconds = sum(
            getattr(times, field) for field in times._fields if field not in _GUEST_FIELDS
        )
        return self._to_ticks(seconds)

    def _read_process(self, pid: int) -> ProcessSample:
        try:
            proc = psutil.Process(pid)
        except READ_ERRORS as exc:
            logger.debug("pid %s unavailable: %s", pid, exc)
            return ProcessSample(pid=pid, name="", cumulative_cpu_ticks=0, resident_pages=0)

        # oneshot() caches the underlying /proc reads across the three calls
        with proc.oneshot():
            name = _guarded(f"name of {pid}", proc.name, "")
            ticks = _guarded(f"cpu_times of {pid}", lambda: self._process_ticks(proc), 0)
            pages = _guarded(f"memory_info of {pid}", lambda: self._process_pages(proc), 0)

        return ProcessSample(
            pid=pid,
            name=name or "",
            cumulative_cpu_ticks=ticks,
            resident_pages=pages,
        )

    def _process_ticks(self, proc: psutil.Process) -> int:
        times = proc.cpu_times()
        return self._to_ticks(times.user + times.system)

    def _process_pages(self, proc: psutil.Process) -> int:
        return max(0, proc.memory_info().rss // self._page_bytes)

    def _to_ticks(self, seconds: float) -> int:
        return max(0, round(seconds * self._ticks_per_second))


def _guarded(what: str, reader: Callable[[], T], default: T) -> T:
    """Call reader, degrading any read error to default."""
    try:
        return reader()
    except READ_ERRORS as exc:
        logger.debug("could not read %s: %s", what, exc)
        return default
