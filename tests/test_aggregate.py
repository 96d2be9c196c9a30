"""Tests for memory percentages, ranking and totals."""

import pytest
from helpers import MB, make_counters, sample

from proctop.aggregate import (
    Aggregator,
    aggregate_cpu,
    memory_percent,
    memory_used_fraction,
)
from proctop.models import ProcessView, SortMode


def view(pid: int, cpu: float = 0.0, mem: float = 0.0) -> ProcessView:
    return ProcessView(pid=pid, name=f"p{pid}", cpu_pct=cpu, mem_pct=mem)


class TestMemoryPercent:
    """Tests for memory_percent and memory_used_fraction."""

    def test_hundred_of_thousand_megabytes(self):
        """Test 100 MB resident out of 1000 MB total is 10%."""
        assert memory_percent(100 * MB, 1000 * MB) == pytest.approx(10.0)

    @pytest.mark.parametrize("resident", [0, 1, 4096, 10**15])
    def test_zero_total_is_zero(self, resident):
        """Test an unknown total memory gives 0% for any resident size."""
        assert memory_percent(resident, 0) == 0.0

    def test_used_fraction(self):
        """Test the used fraction is based on available memory."""
        counters = make_counters(mem_total=1000 * MB, mem_available=250 * MB)

        assert memory_used_fraction(counters) == pytest.approx(0.75)

    def test_used_fraction_zero_total(self):
        """Test the used fraction is 0 without a total."""
        assert memory_used_fraction(make_counters(mem_total=0, mem_available=0)) == 0.0


class TestAggregator:
    """Tests for Aggregator class."""

    def test_build_views_end_to_end_memory(self):
        """Test pages are converted to bytes against total memory."""
        aggregator = Aggregator(page_bytes=4096)
        pages = (100 * MB) // 4096

        views = aggregator.build_views([sample(5, pages=pages)], {5: 12.5}, make_counters(mem_total=1000 * MB))

        assert len(views) == 1
        assert (views[0].pid, views[0].name, views[0].cpu_pct) == (5, "proc5", 12.5)
        assert views[0].mem_pct == pytest.approx(10.0)

    def test_build_views_missing_cpu_defaults_zero(self):
        """Test a sample without a cpu entry reports 0%."""
        aggregator = Aggregator(page_bytes=4096)

        views = aggregator.build_views([sample(8)], {}, make_counters())

        assert views[0].cpu_pct == 0.0

    def test_build_views_zero_total(self):
        """Test mem_pct is 0 when total memory is reported as 0."""
        aggregator = Aggregator(page_bytes=4096)

        views = aggregator.build_views(
            [sample(1, pages=10**6)], {1: 0.0}, make_counters(mem_total=0, mem_available=0)
        )

        assert views[0].mem_pct == 0.0

    def test_rank_by_cpu(self):
        """Test CPU ranking is non-increasing with ascending pid ties."""
        views = [view(30, cpu=5.0), view(10, cpu=5.0), view(20, cpu=50.0), view(5, cpu=0.0)]

        ranked = Aggregator.rank(views, SortMode.BY_CPU_DESC)

        assert [v.pid for v in ranked] == [20, 10, 30, 5]

    def test_rank_by_mem(self):
        """Test memory ranking is non-increasing with ascending pid ties."""
        views = [view(3, mem=1.0), view(1, mem=9.0), view(4, mem=1.0), view(2, mem=9.0)]

        ranked = Aggregator.rank(views, SortMode.BY_MEM_DESC)

        assert [v.pid for v in ranked] == [1, 2, 3, 4]

    def test_rank_by_pid(self):
        """Test pid ranking is strictly ascending regardless of usage."""
        views = [view(300, cpu=99.0), view(2, mem=50.0), view(41)]

        ranked = Aggregator.rank(views, SortMode.BY_PID_ASC)

        assert [v.pid for v in ranked] == [2, 41, 300]

    def test_rank_is_deterministic(self):
        """Test ranking does not depend on input order."""
        views = [view(pid, cpu=float(pid % 3)) for pid in range(1, 30)]

        forward = Aggregator.rank(views, SortMode.BY_CPU_DESC)
        backward = Aggregator.rank(list(reversed(views)), SortMode.BY_CPU_DESC)

        assert forward == backward
        for first, second in zip(forward, forward[1:]):
            assert first.cpu_pct >= second.cpu_pct
            if first.cpu_pct == second.cpu_pct:
                assert first.pid < second.pid


def test_aggregate_cpu_may_exceed_hundred():
    """Test the aggregate indicator is a plain sum and is not capped."""
    views = [view(1, cpu=80.0), view(2, cpu=70.0), view(3, cpu=0.0)]

    assert aggregate_cpu(views) == pytest.approx(150.0)


def test_aggregate_cpu_empty():
    """Test the aggregate indicator of no processes is 0."""
    assert aggregate_cpu([]) == 0
