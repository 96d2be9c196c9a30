"""Monitoring session state and cadence for proctop."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from proctop.aggregate import Aggregator, aggregate_cpu, memory_used_fraction
from proctop.delta import DeltaEngine, tick_delta
from proctop.models import ProcessView, SortMode, SystemCounters
from proctop.monitor import SnapshotReader

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class MonitorSettings:
    """Tunables for the monitor. The application runs with the defaults."""

    target_interval: float = 1.0  # Seconds between samples
    fallback_interval: float = 1.0  # Used when the measured interval is implausible
    min_interval: float = 0.001
    name_width: int = 20
    min_bar_width: int = 20


class IntervalClock:
    """Measures seconds between successive samples on a monotonic clock."""

    def __init__(
        self,
        fallback: float = 1.0,
        minimum: float = 0.001,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fallback = fallback
        self._minimum = minimum
        self._clock = clock
        self._last = clock()

    def elapsed(self) -> float:
        """Seconds since the previous call (or since creation); implausible values become the fallback."""
        now = self._clock()
        interval = now - self._last
        self._last = now
        if interval < self._minimum:
            logger.debug("implausible interval %.6fs, using %.1fs", interval, self._fallback)
            return self._fallback
        return interval


class Cadence:
    """Single remaining-budget delay toward a target sampling interval."""

    def __init__(self, target_interval: float = 1.0) -> None:
        self._target = max(0.0, target_interval)

    @property
    def target_interval(self) -> float:
        """Get the target interval between samples."""
        return self._target

    def remaining(self, elapsed: float) -> float:
        """Delay still owed after a cycle that took elapsed seconds."""
        return max(0.0, self._target - elapsed)


@dataclass(slots=True)
class Frame:
    """Everything the renderer needs for one display cycle."""

    views: list[ProcessView]
    sort_mode: SortMode
    counters: SystemCounters
    cpu_total: float
    mem_fraction: float
    interval: float = 0.0


class MonitorSession:
    """
    Owns all state that outlives a single cycle.

    The delta engine's prior ticks, the sort mode and the interval clock
    live here and are handed to each component call.
    """

    def __init__(
        self,
        reader: SnapshotReader | None = None,
        settings: MonitorSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or MonitorSettings()
        self.reader = reader or SnapshotReader()
        self.engine = DeltaEngine(self.reader.ticks_per_second)
        self.aggregator = Aggregator(self.reader.page_bytes)
        self.cadence = Cadence(self.settings.target_interval)
        self.sort_mode = SortMode.BY_CPU_DESC
        self.last_frame: Frame | None = None
        self._prior_aggregate_ticks = 0
        self._interval_clock = IntervalClock(
            fallback=self.settings.fallback_interval,
            minimum=self.settings.min_interval,
            clock=clock,
        )

    def sample(self) -> Frame:
        """Run one snapshot -> delta -> views -> rank cycle."""
        snapshot = self.reader.read()
        interval = self._interval_clock.elapsed()
        cpu_by_pid = self.engine.update(snapshot.processes, interval)
        views = self.aggregator.build_views(snapshot.processes, cpu_by_pid, snapshot.counters)

        # The indicator reads 0 when the system tick counter is unreadable or stalled
        aggregate_ticks = snapshot.counters.aggregate_cpu_ticks
        advanced = tick_delta(aggregate_ticks, self._prior_aggregate_ticks) > 0
        cpu_total = aggregate_cpu(views) if advanced else 0.0
        self._prior_aggregate_ticks = aggregate_ticks

        frame = Frame(
            views=self.aggregator.rank(views, self.sort_mode),
            sort_mode=self.sort_mode,
            counters=snapshot.counters,
            cpu_total=cpu_total,
            mem_fraction=memory_used_fraction(snapshot.counters),
            interval=interval,
        )
        logger.debug("sampled %d processes over %.3fs", len(views), interval)
        self.last_frame = frame
        return frame

    def cycle_sort(self) -> SortMode:
        """Advance to the next sort mode and re-rank the last frame."""
        self.sort_mode = self.sort_mode.next()
        logger.info("sort mode: %s", self.sort_mode.label)
        if self.last_frame is not None:
            self.last_frame.views = self.aggregator.rank(self.last_frame.views, self.sort_mode)
            self.last_frame.sort_mode = self.sort_mode
        return self.sort_mode
