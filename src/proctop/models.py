"""Data models for proctop."""

from dataclasses import dataclass
from enum import Enum


@dataclass(slots=True, frozen=True)
class ProcessSample:
    """Immutable point-in-time reading of one process."""

    pid: int
    name: str
    cumulative_cpu_ticks: int  # user + system, in clock ticks
    resident_pages: int


@dataclass(slots=True, frozen=True)
class SystemCounters:
    """Immutable point-in-time reading of system-wide counters."""

    aggregate_cpu_ticks: int
    mem_total: int  # Bytes
    mem_free: int  # Bytes
    mem_available: int  # Bytes
    uptime_seconds: float


@dataclass(slots=True, frozen=True)
class ProcessView:
    """Derived per-process utilization shown in the table."""

    pid: int
    name: str
    cpu_pct: float
    mem_pct: float


class SortMode(Enum):
    """Ordering of the process table."""

    BY_CPU_DESC = "CPU %"
    BY_MEM_DESC = "MEM %"
    BY_PID_ASC = "PID"

    @property
    def label(self) -> str:
        """Get the display label."""
        return self.value

    def next(self) -> "SortMode":
        """Return the mode that follows this one in the cycle."""
        modes = list(SortMode)
        return modes[(modes.index(self) + 1) % len(modes)]
