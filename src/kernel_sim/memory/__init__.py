"""Memory subsystem — paged allocation with LRU, and fixed partitions.

Re-exports public symbols so callers can write::

    from kernel_sim.memory import PageTable, PartitionTable
"""

from kernel_sim.memory.paging import EvictionResult, Page, PageTable
from kernel_sim.memory.partitions import (
    AllocationResult,
    DeallocationResult,
    Partition,
    PartitionStats,
    PartitionTable,
)

__all__ = [
    "AllocationResult",
    "DeallocationResult",
    "EvictionResult",
    "Page",
    "PageTable",
    "Partition",
    "PartitionStats",
    "PartitionTable",
]
