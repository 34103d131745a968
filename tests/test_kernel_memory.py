"""Tests for the kernel's memory operations.

Paged memory: page-size reconfiguration, simulated accesses, one-step
LRU eviction and wholesale clearing, all keeping the per-process page
lists in step with the page table.

Fixed partitions: first-fit allocation through the kernel, reported
failures, deallocation by id, reset, and the owner/statistics views.
"""

import random
from typing import Any

import pytest

from kernel_sim.kernel import Kernel

PAGE_SIZE = 4096


class _FirstChoice(random.Random):
    """Random source that always picks the first candidate."""

    def choice(self, seq: Any) -> Any:  # noqa: ANN401
        """Return the first element."""
        return seq[0]


def _page_total(kernel: Kernel) -> int:
    return sum(len(p.page_numbers) for p in kernel.processes)


class TestPageSize:
    """Verify page size reconfiguration."""

    def test_set_page_size(self) -> None:
        """New processes are paged with the new size."""
        kernel = Kernel()
        kernel.page_size = 1024
        process = kernel.create_process("p", 0, 4096, 1)
        assert kernel.page_size == 1024
        assert len(process.page_numbers) == 4

    def test_existing_pages_untouched(self) -> None:
        """Changing the size does not repage live processes."""
        kernel = Kernel()
        process = kernel.create_process("p", 0, 4096, 1)
        kernel.page_size = 512
        assert len(process.page_numbers) == 1
        assert len(kernel.page_table) == 1

    def test_rejects_zero(self) -> None:
        """A zero page size is refused."""
        kernel = Kernel()
        with pytest.raises(ValueError, match="positive"):
            kernel.page_size = 0
        assert kernel.page_size == PAGE_SIZE


class TestSimulatePageAccess:
    """Verify simulated accesses through the kernel."""

    def test_default_touches_three_pages(self) -> None:
        """The default access burst is three pages."""
        kernel = Kernel(rng=random.Random(1))
        kernel.create_process("p", 0, PAGE_SIZE * 4, 1)
        assert len(kernel.simulate_page_access()) == 3

    def test_empty_table_is_noop(self) -> None:
        """With no pages nothing happens."""
        assert Kernel().simulate_page_access() == []

    def test_counts_accumulate(self) -> None:
        """Access counters add up to the number of accesses."""
        kernel = Kernel(rng=random.Random(2))
        kernel.create_process("p", 0, PAGE_SIZE * 4, 1)
        kernel.simulate_page_access(10)
        assert sum(p.access_count for p in kernel.page_table.pages.values()) == 10


class TestApplyLRU:
    """Verify LRU eviction through the kernel."""

    def test_under_limit_changes_nothing(self) -> None:
        """At or below the limit no page is removed."""
        kernel = Kernel()
        process = kernel.create_process("p", 0, PAGE_SIZE * 3, 1)
        result = kernel.apply_lru(3)
        assert not result.evicted
        assert len(kernel.page_table) == 3
        assert len(process.page_numbers) == 3

    def test_evicts_one_per_call(self) -> None:
        """Each call removes exactly one page while over the limit."""
        kernel = Kernel()
        kernel.create_process("p", 0, PAGE_SIZE * 4, 1)
        sizes = []
        while kernel.apply_lru(1).evicted:
            sizes.append(len(kernel.page_table))
        assert sizes == [3, 2, 1]

    def test_evicts_least_recently_used(self) -> None:
        """The page with the oldest access goes first."""
        kernel = Kernel(rng=_FirstChoice())
        first = kernel.create_process("a", 0, PAGE_SIZE, 1)
        second = kernel.create_process("b", 0, PAGE_SIZE, 1)
        kernel.simulate_page_access(1)  # refreshes the first process's page
        result = kernel.apply_lru(1)
        assert result.page_number == 1
        assert result.process_id == second.pid
        assert second.page_numbers == []
        assert first.page_numbers == [0]

    def test_owner_loses_evicted_page(self) -> None:
        """The evicted page number leaves its owner's page list."""
        kernel = Kernel()
        process = kernel.create_process("p", 0, PAGE_SIZE * 2, 1)
        result = kernel.apply_lru(1)
        assert result.page_number not in process.page_numbers
        assert len(kernel.page_table) == _page_total(kernel)

    def test_destroy_after_eviction(self) -> None:
        """Destroying a process after an eviction leaves the table consistent."""
        kernel = Kernel()
        first = kernel.create_process("a", 0, PAGE_SIZE * 2, 1)
        kernel.create_process("b", 0, PAGE_SIZE, 1)
        kernel.apply_lru(2)
        kernel.destroy_process(first)
        assert len(kernel.page_table) == 1
        assert len(kernel.page_table) == _page_total(kernel)

    def test_negative_limit_on_empty_table(self) -> None:
        """An empty table reports no eviction even below a zero limit."""
        kernel = Kernel()
        result = kernel.apply_lru(-1)
        assert not result.evicted
        assert len(kernel.page_table) == 0


class TestClearPageTable:
    """Verify wholesale clearing."""

    def test_clear_empties_table_and_page_lists(self) -> None:
        """Clearing removes every page and every process's page list."""
        kernel = Kernel()
        first = kernel.create_process("a", 0, PAGE_SIZE * 2, 1)
        second = kernel.create_process("b", 0, PAGE_SIZE, 1)
        kernel.clear_page_table()
        assert len(kernel.page_table) == 0
        assert first.page_numbers == []
        assert second.page_numbers == []

    def test_processes_survive_clear(self) -> None:
        """Clearing pages does not touch the process set or queues."""
        kernel = Kernel()
        process = kernel.create_process("a", 0, PAGE_SIZE, 1)
        kernel.clear_page_table()
        assert kernel.processes == [process]
        assert kernel.ready_queue == [process]

    def test_numbering_restarts(self) -> None:
        """Pages allocated after a clear are numbered from zero."""
        kernel = Kernel()
        kernel.create_process("a", 0, PAGE_SIZE * 3, 1)
        kernel.clear_page_table()
        process = kernel.create_process("b", 0, PAGE_SIZE, 1)
        assert process.page_numbers == [0]


class TestFixedPartitions:
    """Verify partition operations through the kernel."""

    def test_first_fit(self) -> None:
        """A 120 KB process lands in partition 2."""
        kernel = Kernel()
        process = kernel.create_process("p", 0, 120, 1)
        result = kernel.allocate_fixed_partition(process)
        assert result.success
        assert result.partition_id == 2
        assert kernel.partition_owner(2) is process

    def test_failure_keeps_process(self) -> None:
        """A process no partition fits keeps existing and keeps its pages."""
        kernel = Kernel()
        process = kernel.create_process("huge", 0, 5000, 1)
        result = kernel.allocate_fixed_partition(process)
        assert not result.success
        assert process in kernel.processes
        assert len(process.page_numbers) == 2

    def test_deallocate(self) -> None:
        """Freeing by id clears the owner."""
        kernel = Kernel()
        process = kernel.create_process("p", 0, 120, 1)
        kernel.allocate_fixed_partition(process)
        result = kernel.deallocate_fixed_partition(2)
        assert result.success
        assert result.process_id == process.pid
        assert kernel.partition_owner(2) is None

    def test_deallocate_invalid(self) -> None:
        """Unknown or free partitions are reported failures."""
        kernel = Kernel()
        assert not kernel.deallocate_fixed_partition(1).success
        assert not kernel.deallocate_fixed_partition(42).success

    def test_reset(self) -> None:
        """Reset frees every partition."""
        kernel = Kernel()
        for memory in (50, 150, 250):
            kernel.allocate_fixed_partition(kernel.create_process("p", 0, memory, 1))
        kernel.reset_partitions()
        assert not any(p.allocated for p in kernel.partitions)

    def test_owner_of_destroyed_process_is_gone(self) -> None:
        """Destroying the owner frees its partition."""
        kernel = Kernel()
        process = kernel.create_process("p", 0, 120, 1)
        kernel.allocate_fixed_partition(process)
        kernel.destroy_process(process)
        assert kernel.partition_owner(2) is None
        assert kernel.partition_stats().allocated == 0

    def test_stats(self) -> None:
        """Statistics reflect allocations and waste."""
        kernel = Kernel()
        kernel.allocate_fixed_partition(kernel.create_process("p", 0, 120, 1))
        stats = kernel.partition_stats()
        assert stats.allocated == 200
        assert stats.fragmentation == 80

    def test_stats_with_partition_marked_through_view(self) -> None:
        """A partition taken through the live view is counted without waste."""
        kernel = Kernel()
        kernel.partitions[0].allocate(7)
        stats = kernel.partition_stats()
        assert stats.allocated == 100
        assert stats.fragmentation == 0

    def test_custom_layout(self) -> None:
        """The partition layout is configurable."""
        kernel = Kernel(partition_sizes=(64, 64))
        assert [p.start_address for p in kernel.partitions] == [0, 64]
