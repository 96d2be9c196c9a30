"""Memory percentages, ranking and totals for proctop."""

from collections.abc import Iterable, Mapping

from proctop.models import ProcessSample, ProcessView, SortMode, SystemCounters


def memory_percent(resident_bytes: int, mem_total: int) -> float:
    """Resident size as a percentage of total memory, 0 if the total is unknown."""
    if mem_total <= 0:
        return 0.0
    return resident_bytes / mem_total * 100.0


def memory_used_fraction(counters: SystemCounters) -> float:
    """Fraction of memory not available to new allocations."""
    if counters.mem_total <= 0:
        return 0.0
    return (counters.mem_total - counters.mem_available) / counters.mem_total


def aggregate_cpu(views: Iterable[ProcessView]) -> float:
    """
    Sum of per-process cpu_pct.

    This is a coarse activity indicator, not system utilization: each
    process is measured against one core, so the sum exceeds 100 on busy
    multi-core hosts.
    """
    return sum(view.cpu_pct for view in views)


class Aggregator:
    """Builds ranked ProcessViews from samples and CPU deltas."""

    def __init__(self, page_bytes: int) -> None:
        self._page_bytes = page_bytes

    def build_views(
        self,
        samples: Iterable[ProcessSample],
        cpu_by_pid: Mapping[int, float],
        counters: SystemCounters,
    ) -> list[ProcessView]:
        """Join samples with their cpu_pct and compute mem_pct."""
        return [
            ProcessView(
                pid=sample.pid,
                name=sample.name,
                cpu_pct=cpu_by_pid.get(sample.pid, 0.0),
                mem_pct=memory_percent(sample.resident_pages * self._page_bytes, counters.mem_total),
            )
            for sample in samples
        ]

    @staticmethod
    def rank(views: Iterable[ProcessView], mode: SortMode) -> list[ProcessView]:
        """Sort views by the given mode; ties are broken by ascending pid."""
        key_func = {
            SortMode.BY_CPU_DESC: lambda v: (-v.cpu_pct, v.pid),
            SortMode.BY_MEM_DESC: lambda v: (-v.mem_pct, v.pid),
            SortMode.BY_PID_ASC: lambda v: v.pid,
        }
        return sorted(views, key=key_func[mode])
