"""Process and Process Control Block (PCB).

A process is a program in execution. The kernel tracks each one via a
PCB holding its identity (pid and owner), its scheduling attributes
(priority, burst time, remaining time, arrival time), its lifecycle
state, and the page numbers it owns in the page table.

The PCB is a plain data holder.  It does not police its own state
machine: the kernel decides which transitions are legal and moves the
process between queues, then records the result here.

State machine (as driven by the kernel)::

    NEW → READY ⇄ RUNNING → TERMINATED
            ↑  ↘    ↓
            │   BLOCKED / SUSPENDED
            └──────┘
"""

from enum import StrEnum


class ProcessState(StrEnum):
    """Lifecycle states of a process.

    - NEW: just created, memory not yet allocated.
    - READY: waiting in the ready queue for CPU time.
    - RUNNING: currently holding the (single) CPU.
    - BLOCKED: waiting on an event, parked in the blocked queue.
    - SUSPENDED: swapped out of contention until resumed.
    - TERMINATED: finished its burst under Round Robin.
    """

    NEW = "NEW"
    READY = "READY"
    RUNNING = "RUNNING"
    BLOCKED = "BLOCKED"
    SUSPENDED = "SUSPENDED"
    TERMINATED = "TERMINATED"


class Location(StrEnum):
    """Where the kernel currently keeps a process.

    A process lives in exactly one location at a time.  NONE covers
    processes that sit in no container: freshly created ones before
    admission and terminated ones.
    """

    NONE = "none"
    READY = "ready"
    BLOCKED = "blocked"
    SUSPENDED = "suspended"
    RUNNING = "running"


class Process:
    """A simulated process (the Process Control Block)."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        pid: int,
        owner: str,
        priority: int,
        memory_requirement: int,
        burst_time: int,
        arrival_time: int = 0,
    ) -> None:
        """Create a new process in the NEW state.

        Args:
            pid: Unique process identifier, assigned by the kernel.
            owner: Human-readable owner label (e.g. "Process1").
            priority: Caller-assigned priority; no range is enforced.
            memory_requirement: Memory needed, in KB for partitions and
                in bytes-per-page units for paging.
            burst_time: Total simulated CPU units the process needs.
            arrival_time: Simulated arrival time.

        """
        self._pid: int = pid
        self._owner: str = owner
        self._priority: int = priority
        self._memory_requirement: int = memory_requirement
        self._burst_time: int = burst_time
        self._remaining_time: int = burst_time
        self._arrival_time: int = arrival_time
        self._state: ProcessState = ProcessState.NEW
        self._location: Location = Location.NONE
        self._page_numbers: list[int] = []

    @property
    def pid(self) -> int:
        """Return the unique process identifier."""
        return self._pid

    @property
    def owner(self) -> str:
        """Return the owner label."""
        return self._owner

    @property
    def priority(self) -> int:
        """Return the priority."""
        return self._priority

    @priority.setter
    def priority(self, value: int) -> None:
        """Set the priority.  Informational only; no scheduler reads it."""
        self._priority = value

    @property
    def memory_requirement(self) -> int:
        """Return the memory requirement."""
        return self._memory_requirement

    @property
    def burst_time(self) -> int:
        """Return the total CPU units required."""
        return self._burst_time

    @property
    def remaining_time(self) -> int:
        """Return the CPU units still owed (decremented by Round Robin)."""
        return self._remaining_time

    @remaining_time.setter
    def remaining_time(self, value: int) -> None:
        self._remaining_time = value

    @property
    def arrival_time(self) -> int:
        """Return the arrival time."""
        return self._arrival_time

    @property
    def state(self) -> ProcessState:
        """Return the current lifecycle state."""
        return self._state

    @state.setter
    def state(self, value: ProcessState) -> None:
        self._state = value

    @property
    def location(self) -> Location:
        """Return the kernel container currently holding this process."""
        return self._location

    @location.setter
    def location(self, value: Location) -> None:
        self._location = value

    @property
    def page_numbers(self) -> list[int]:
        """Return the page numbers owned by this process, in allocation order."""
        return list(self._page_numbers)

    def add_page(self, page_number: int) -> None:
        """Record a newly allocated page."""
        self._page_numbers.append(page_number)

    def remove_page(self, page_number: int) -> None:
        """Forget a page that was evicted from the page table (no-op if absent)."""
        if page_number in self._page_numbers:
            self._page_numbers.remove(page_number)

    def clear_pages(self) -> None:
        """Forget every page this process owned."""
        self._page_numbers.clear()

    def __str__(self) -> str:
        """Return the one-line status summary used by process listings."""
        return (
            f"P{self._pid} [{self._state}] Pri:{self._priority} "
            f"Burst:{self._burst_time} AT:{self._arrival_time}"
        )

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return f"Process(pid={self._pid}, owner={self._owner!r}, state={self._state})"
