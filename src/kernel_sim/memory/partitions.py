"""Fixed partitioning — contiguous allocation with first-fit.

Memory is carved into a fixed set of partitions once, at kernel start,
and the layout never changes afterwards.  Only the allocation state of
each partition toggles.

A process goes into the **first** free partition (in ascending id
order) that is large enough — classic first-fit.  Whatever the process
does not use inside its partition is **internal fragmentation**:
wasted space that no other process can claim.

Why report instead of raise?
    Running out of partitions is an expected outcome in a simulation,
    not a programming error.  Allocation and deallocation return result
    objects that the caller renders; the process keeps existing either
    way, and paged allocation is unaffected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from kernel_sim.config import DEFAULT_PARTITION_SIZES

if TYPE_CHECKING:
    from collections.abc import Iterable

    from kernel_sim.process.pcb import Process


class Partition:
    """A fixed memory region.

    ``allocated``, ``process_id`` and ``requirement`` only ever change
    together, through ``allocate`` and ``deallocate``.
    """

    def __init__(self, *, partition_id: int, start_address: int, size: int) -> None:
        """Create a free partition.

        Args:
            partition_id: Fixed identifier (1-based in the default layout).
            start_address: First address of the region, in KB.
            size: Region size, in KB.

        """
        self._partition_id = partition_id
        self._start_address = start_address
        self._size = size
        self._process_id: int | None = None
        self._requirement = 0

    @property
    def partition_id(self) -> int:
        """Return the partition identifier."""
        return self._partition_id

    @property
    def start_address(self) -> int:
        """Return the start address."""
        return self._start_address

    @property
    def end_address(self) -> int:
        """Return one past the last address (start + size)."""
        return self._start_address + self._size

    @property
    def size(self) -> int:
        """Return the partition size."""
        return self._size

    @property
    def allocated(self) -> bool:
        """Return whether a process occupies this partition."""
        return self._process_id is not None

    @property
    def process_id(self) -> int | None:
        """Return the occupying PID, or None when free."""
        return self._process_id

    @property
    def requirement(self) -> int:
        """Return the occupant's memory requirement in KB (0 when free)."""
        return self._requirement

    @property
    def fragmentation(self) -> int:
        """Return the unused space inside the partition (0 when free)."""
        if self._process_id is None:
            return 0
        return self._size - self._requirement

    def allocate(self, process_id: int, requirement: int | None = None) -> None:
        """Mark the partition as held by ``process_id``.

        Without a ``requirement`` the occupant is taken to fill the whole
        partition.
        """
        self._process_id = process_id
        self._requirement = self._size if requirement is None else requirement

    def deallocate(self) -> None:
        """Mark the partition as free."""
        self._process_id = None
        self._requirement = 0

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        holder = f"P{self._process_id}" if self._process_id is not None else "free"
        return f"Partition(id={self._partition_id}, {self._start_address}-{self.end_address}, {holder})"


@dataclass(frozen=True)
class AllocationResult:
    """Outcome of a first-fit allocation attempt."""

    success: bool
    process_id: int
    requirement: int
    partition_id: int | None = None
    partition_size: int | None = None

    @property
    def fragmentation(self) -> int:
        """Return the internal fragmentation in KB (0 on failure)."""
        if self.partition_size is None:
            return 0
        return self.partition_size - self.requirement

    @property
    def message(self) -> str:
        """Return a human-readable description of the outcome."""
        if not self.success:
            return (
                f"No suitable partition found! Process P{self.process_id} cannot be allocated."
            )
        return (
            f"Process P{self.process_id} allocated to Partition {self.partition_id}\n"
            f"Partition Size: {self.partition_size} KB\n"
            f"Process Size: {self.requirement} KB\n"
            f"Internal Fragmentation: {self.fragmentation} KB"
        )

    def __str__(self) -> str:
        """Return the outcome message."""
        return self.message


@dataclass(frozen=True)
class DeallocationResult:
    """Outcome of freeing a partition by id."""

    success: bool
    partition_id: int
    process_id: int | None = None

    @property
    def message(self) -> str:
        """Return a human-readable description of the outcome."""
        if not self.success:
            return f"Partition {self.partition_id} is not allocated or doesn't exist!"
        return (
            f"Partition {self.partition_id} deallocated "
            f"(was holding Process P{self.process_id})"
        )

    def __str__(self) -> str:
        """Return the outcome message."""
        return self.message


@dataclass(frozen=True)
class PartitionStats:
    """Memory totals across the partition table, in KB."""

    total: int
    allocated: int
    free: int
    fragmentation: int


class PartitionTable:
    """The fixed, ordered list of partitions.

    Partitions are laid out contiguously starting at address 0, in the
    order their sizes are given, and numbered from 1.
    """

    def __init__(self, sizes: Iterable[int] = DEFAULT_PARTITION_SIZES) -> None:
        """Create the partition layout.

        Args:
            sizes: Partition sizes in KB, in id order.

        Raises:
            ValueError: If any size is not positive.

        """
        self._partitions: list[Partition] = []
        start = 0
        for partition_id, size in enumerate(sizes, start=1):
            if size <= 0:
                msg = f"Partition {partition_id} size must be positive, got {size}"
                raise ValueError(msg)
            self._partitions.append(
                Partition(partition_id=partition_id, start_address=start, size=size),
            )
            start += size

    @property
    def partitions(self) -> list[Partition]:
        """Return the partitions in id order."""
        return list(self._partitions)

    def get(self, partition_id: int) -> Partition | None:
        """Return the partition with this id, or None."""
        for partition in self._partitions:
            if partition.partition_id == partition_id:
                return partition
        return None

    def __len__(self) -> int:
        """Return the number of partitions."""
        return len(self._partitions)

    def allocate(self, process: Process) -> AllocationResult:
        """Place a process in the first free partition that fits.

        Returns:
            The chosen partition and its fragmentation, or a failure
            naming the process.

        """
        requirement = process.memory_requirement
        for partition in self._partitions:
            if not partition.allocated and partition.size >= requirement:
                partition.allocate(process.pid, requirement)
                return AllocationResult(
                    success=True,
                    process_id=process.pid,
                    requirement=requirement,
                    partition_id=partition.partition_id,
                    partition_size=partition.size,
                )
        return AllocationResult(success=False, process_id=process.pid, requirement=requirement)

    def deallocate(self, partition_id: int) -> DeallocationResult:
        """Free a partition by id.

        Fails (reported, not raised) when the id is unknown or the
        partition is already free.
        """
        partition = self.get(partition_id)
        if partition is None or not partition.allocated:
            return DeallocationResult(success=False, partition_id=partition_id)
        process_id = partition.process_id
        partition.deallocate()
        return DeallocationResult(success=True, partition_id=partition_id, process_id=process_id)

    def release_process(self, process_id: int) -> list[int]:
        """Free every partition held by ``process_id``.

        Returns:
            The ids of the partitions that were freed.

        """
        freed: list[int] = []
        for partition in self._partitions:
            if partition.process_id == process_id:
                partition.deallocate()
                freed.append(partition.partition_id)
        return freed

    def reset_all(self) -> None:
        """Free every partition unconditionally."""
        for partition in self._partitions:
            partition.deallocate()

    def stats(self) -> PartitionStats:
        """Return total, allocated, free and wasted memory."""
        total = sum(p.size for p in self._partitions)
        allocated = sum(p.size for p in self._partitions if p.allocated)
        return PartitionStats(
            total=total,
            allocated=allocated,
            free=total - allocated,
            fragmentation=sum(p.fragmentation for p in self._partitions),
        )
