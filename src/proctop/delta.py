"""Cumulative CPU tick deltas for proctop."""

import logging
from collections.abc import Iterable

from proctop.models import ProcessSample

logger = logging.getLogger(__name__)


def tick_delta(current: int, prior: int) -> int:
    """Ticks consumed since prior; a counter that went backwards counts as zero."""
    return max(0, current - prior)


def cpu_percent(delta_ticks: int, ticks_per_second: int, interval: float) -> float:
    """Share of the interval spent on CPU, as a percentage of one core."""
    if interval <= 0:
        return 0.0
    return (delta_ticks / ticks_per_second) / interval * 100.0


class DeltaEngine:
    """
    Turns successive cumulative tick readings into CPU percentages.

    Keeps the last observed tick count per pid. A pid seen for the first
    time has no history, so its first delta is zero. Pids missing from the
    latest samples are forgotten on each update.
    """

    def __init__(self, ticks_per_second: int) -> None:
        if ticks_per_second <= 0:
            raise ValueError(f"ticks_per_second must be positive, got {ticks_per_second}")
        self._ticks_per_second = ticks_per_second
        self._prior: dict[int, int] = {}

    @property
    def ticks_per_second(self) -> int:
        """Get the clock tick rate."""
        return self._ticks_per_second

    @property
    def prior_state(self) -> dict[int, int]:
        """Get a copy of the pid -> last ticks mapping."""
        return dict(self._prior)

    def update(self, samples: Iterable[ProcessSample], interval: float) -> dict[int, float]:
        """
        Compute cpu_pct per pid and replace the prior state with these samples.

        Args:
            samples: Fresh samples from the current snapshot.
            interval: Seconds elapsed since the previous update.

        Returns:
            Mapping of pid to cpu_pct (never negative).
        """
        cpu_by_pid: dict[int, float] = {}
        observed: dict[int, int] = {}

        for sample in samples:
            ticks = sample.cumulative_cpu_ticks
            prior = self._prior.get(sample.pid, ticks)
            if ticks < prior:
                logger.debug("pid %s ticks went backwards (%s < %s)", sample.pid, ticks, prior)
            delta = tick_delta(ticks, prior)
            cpu_by_pid[sample.pid] = cpu_percent(delta, self._ticks_per_second, interval)
            observed[sample.pid] = ticks

        dropped = len(self._prior.keys() - observed.keys())
        if dropped:
            logger.debug("forgetting %d exited pids", dropped)
        self._prior = observed
        return cpu_by_pid
