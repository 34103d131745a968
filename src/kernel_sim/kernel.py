"""The kernel — core of the simulated operating system.

The kernel owns every piece of simulation state and is the only thing
allowed to change it:

- the process table (pid → PCB),
- the ready queue (FIFO), the blocked queue (FIFO), the suspended set,
  and the single running slot,
- the page table used for paged allocation and LRU eviction,
- the fixed partition table used for first-fit contiguous allocation.

Callers drive the simulation one operation at a time.  There is no
internal loop or timer: each ``schedule_*`` call advances the CPU by
exactly one decision, and the caller re-reads the query views
afterwards to see what changed.

Queue membership is a single tagged location per process (see
``Location``).  Every move goes through ``_place``, which detaches the
process from wherever it was before attaching it somewhere new, so a
process can never sit in two containers at once.

Concurrency:
    Operations are synchronous and run to completion.  ``mutex`` is a
    lock for callers that share one kernel between threads; the kernel
    never takes it itself.
"""

from __future__ import annotations

import random
import threading
from collections import deque
from itertools import count
from typing import TYPE_CHECKING

from kernel_sim.config import (
    DEFAULT_ACCESS_COUNT,
    DEFAULT_PAGE_SIZE,
    DEFAULT_PARTITION_SIZES,
)
from kernel_sim.logging import Logger, LogLevel
from kernel_sim.memory.paging import EvictionResult, Page, PageTable
from kernel_sim.memory.partitions import (
    AllocationResult,
    DeallocationResult,
    Partition,
    PartitionStats,
    PartitionTable,
)
from kernel_sim.process.pcb import Location, Process, ProcessState
from kernel_sim.process.scheduler import (
    FCFSPolicy,
    RoundRobinPolicy,
    SchedulingPolicy,
    SJFPolicy,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence


class Kernel:
    """The central coordinator of the simulation."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        partition_sizes: Iterable[int] = DEFAULT_PARTITION_SIZES,
        rng: random.Random | None = None,
        quantum_draw: Callable[[], float] | None = None,
        clock: Callable[[], float] | None = None,
        pid_source: Iterator[int] | None = None,
        lru_tie_breaker: Callable[[Sequence[Page]], Page] | None = None,
    ) -> None:
        """Create a kernel with empty queues and all partitions free.

        Args:
            page_size: Bytes per page for paged allocation.
            partition_sizes: Fixed partition sizes in KB, in id order.
            rng: Random source for page-access picks and, unless
                ``quantum_draw`` is given, for Round Robin preemption.
            quantum_draw: Zero-argument callable returning a float in
                [0, 1); Round Robin preempts when it exceeds 0.7.
            clock: Timestamp source for page recency (default: logical).
            pid_source: Iterator of fresh process ids (default: 1, 2, ...).
            lru_tie_breaker: Picks one page among equally-old candidates.

        """
        self._rng = rng if rng is not None else random.Random()
        self._pids = pid_source if pid_source is not None else count(start=1)
        self._logger = Logger()
        self._mutex = threading.Lock()

        self._processes: dict[int, Process] = {}
        self._ready: deque[Process] = deque()
        self._blocked: deque[Process] = deque()
        # Insertion-ordered dict used as a set: pid → process
        self._suspended: dict[int, Process] = {}
        self._running: Process | None = None

        self._page_table = PageTable(
            page_size=page_size,
            clock=clock,
            rng=self._rng,
            tie_breaker=lru_tie_breaker,
        )
        self._partition_table = PartitionTable(partition_sizes)

        self._fcfs = FCFSPolicy()
        self._sjf = SJFPolicy()
        self._round_robin = RoundRobinPolicy(
            draw=quantum_draw if quantum_draw is not None else self._rng.random,
        )

        self._log(
            LogLevel.INFO,
            f"Kernel initialised: {len(self._partition_table)} partitions, "
            f"page size {page_size} bytes",
        )

    # -- Query views -----------------------------------------------------------

    @property
    def processes(self) -> list[Process]:
        """Return every live process in creation order."""
        return list(self._processes.values())

    @property
    def ready_queue(self) -> list[Process]:
        """Return the ready queue, head first."""
        return list(self._ready)

    @property
    def blocked_queue(self) -> list[Process]:
        """Return the blocked queue, head first."""
        return list(self._blocked)

    @property
    def suspended(self) -> list[Process]:
        """Return the suspended processes (no meaningful order)."""
        return list(self._suspended.values())

    @property
    def running(self) -> Process | None:
        """Return the process holding the CPU, or None when idle."""
        return self._running

    @property
    def page_table(self) -> PageTable:
        """Return the page table.

        Read it freely; change it only through kernel operations so the
        per-process page lists stay in step.
        """
        return self._page_table

    @property
    def page_size(self) -> int:
        """Return the page size used for new allocations."""
        return self._page_table.page_size

    @page_size.setter
    def page_size(self, value: int) -> None:
        """Reconfigure the page size.  Existing pages are untouched.

        Raises:
            ValueError: If the size is not positive.

        """
        self._page_table.page_size = value
        self._log(LogLevel.INFO, f"Page size set to {value} bytes", source="memory")

    @property
    def partitions(self) -> list[Partition]:
        """Return the fixed partitions in id order."""
        return self._partition_table.partitions

    @property
    def logger(self) -> Logger:
        """Return the kernel log buffer."""
        return self._logger

    @property
    def mutex(self) -> threading.Lock:
        """Return the lock available to multi-threaded callers."""
        return self._mutex

    def get_process(self, pid: int) -> Process | None:
        """Return the live process with this pid, or None."""
        return self._processes.get(pid)

    def location_of(self, process: Process) -> Location:
        """Return where the kernel keeps a process (NONE if untracked)."""
        if not self._is_tracked(process):
            return Location.NONE
        return process.location

    def partition_owner(self, partition_id: int) -> Process | None:
        """Return the live process occupying a partition, or None."""
        partition = self._partition_table.get(partition_id)
        if partition is None or partition.process_id is None:
            return None
        return self._processes.get(partition.process_id)

    def partition_stats(self) -> PartitionStats:
        """Return total, allocated, free and wasted partition memory."""
        return self._partition_table.stats()

    def dmesg(self, limit: int | None = None) -> list[str]:
        """Return the kernel log as formatted lines, optionally only the last ``limit``."""
        entries = self._logger.entries if limit is None else self._logger.tail(limit)
        return [str(entry) for entry in entries]

    # -- Internal helpers ------------------------------------------------------

    def _log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str = "kernel",
        pid: int | None = None,
    ) -> None:
        self._logger.log(level, message, source=source, pid=pid)

    def _is_tracked(self, process: Process) -> bool:
        return self._processes.get(process.pid) is process

    def _require_live(self, process: Process, action: str) -> bool:
        """Return True if ``process`` can take part in ``action``.

        Unknown and terminated processes are ignored with a warning.
        """
        if not self._is_tracked(process):
            self._log(
                LogLevel.WARNING,
                f"Ignored {action}: P{process.pid} is not a live process",
                pid=process.pid,
            )
            return False
        if process.state is ProcessState.TERMINATED:
            self._log(
                LogLevel.WARNING,
                f"Ignored {action}: P{process.pid} has terminated",
                pid=process.pid,
            )
            return False
        return True

    def _detach(self, process: Process) -> None:
        """Remove a process from whichever container holds it."""
        match process.location:
            case Location.READY:
                self._ready.remove(process)
            case Location.BLOCKED:
                self._blocked.remove(process)
            case Location.SUSPENDED:
                del self._suspended[process.pid]
            case Location.RUNNING:
                self._running = None
            case Location.NONE:
                pass
        process.location = Location.NONE

    def _place(self, process: Process, location: Location, state: ProcessState) -> None:
        """Move a process to ``location`` and record its new state."""
        self._detach(process)
        match location:
            case Location.READY:
                self._ready.append(process)
            case Location.BLOCKED:
                self._blocked.append(process)
            case Location.SUSPENDED:
                self._suspended[process.pid] = process
            case Location.RUNNING:
                self._running = process
            case Location.NONE:
                pass
        process.location = location
        process.state = state

    # -- Process lifecycle -----------------------------------------------------

    def create_process(  # noqa: PLR0913
        self,
        owner: str,
        priority: int,
        memory_requirement: int,
        burst_time: int,
        arrival_time: int = 0,
    ) -> Process:
        """Create a process, give it pages, and admit it to the ready queue.

        1. Create the PCB with a fresh pid (state NEW).
        2. Allocate ``ceil(memory_requirement / page_size)`` pages.
        3. Admit it: NEW → READY, appended to the ready queue tail.

        Paged allocation always succeeds, so creation never fails.
        Fixed partitions are separate; see ``allocate_fixed_partition``.

        Returns:
            The new process.

        """
        process = Process(
            pid=next(self._pids),
            owner=owner,
            priority=priority,
            memory_requirement=memory_requirement,
            burst_time=burst_time,
            arrival_time=arrival_time,
        )
        self._processes[process.pid] = process
        pages = self._page_table.allocate(process)
        self._place(process, Location.READY, ProcessState.READY)
        self._log(
            LogLevel.INFO,
            f"Created P{process.pid} ({owner}) with {len(pages)} pages",
            source="process",
            pid=process.pid,
        )
        return process

    def destroy_process(self, process: Process) -> bool:
        """Remove a process from the system entirely.

        The process leaves every queue (or the running slot, which is
        left empty), loses all of its pages, and gives up any fixed
        partition it held.

        Returns:
            True if the process was destroyed, False if it was unknown.

        """
        if not self._is_tracked(process):
            self._log(
                LogLevel.WARNING,
                f"Ignored destroy: P{process.pid} is not a live process",
                pid=process.pid,
            )
            return False
        self._detach(process)
        del self._processes[process.pid]
        freed_pages = self._page_table.deallocate(process)
        freed_partitions = self._partition_table.release_process(process.pid)
        self._log(
            LogLevel.INFO,
            f"Destroyed P{process.pid}: freed {freed_pages} pages, "
            f"{len(freed_partitions)} partitions",
            source="process",
            pid=process.pid,
        )
        return True

    def suspend_process(self, process: Process) -> bool:
        """Move a process to the suspended set.

        Works from READY, RUNNING (the CPU is left idle) or BLOCKED.

        Returns:
            True if the process was suspended by this call.

        """
        if not self._require_live(process, "suspend"):
            return False
        if process.state is ProcessState.SUSPENDED:
            return False
        self._place(process, Location.SUSPENDED, ProcessState.SUSPENDED)
        self._log(LogLevel.INFO, f"Suspended P{process.pid}", source="process", pid=process.pid)
        return True

    def resume_process(self, process: Process) -> bool:
        """Move a SUSPENDED process to the ready queue tail.

        Anything else is a silent no-op.
        """
        if not self._is_tracked(process) or process.state is not ProcessState.SUSPENDED:
            return False
        self._place(process, Location.READY, ProcessState.READY)
        self._log(LogLevel.INFO, f"Resumed P{process.pid}", source="process", pid=process.pid)
        return True

    def block_process(self, process: Process) -> bool:
        """Move a process to the blocked queue tail.

        Works from READY, RUNNING (the CPU is left idle) or SUSPENDED.

        Returns:
            True if the process was blocked by this call.

        """
        if not self._require_live(process, "block"):
            return False
        if process.state is ProcessState.BLOCKED:
            return False
        self._place(process, Location.BLOCKED, ProcessState.BLOCKED)
        self._log(LogLevel.INFO, f"Blocked P{process.pid}", source="process", pid=process.pid)
        return True

    def wakeup_process(self, process: Process) -> bool:
        """Move a BLOCKED process to the ready queue tail.

        Anything else is a silent no-op.
        """
        if not self._is_tracked(process) or process.state is not ProcessState.BLOCKED:
            return False
        self._place(process, Location.READY, ProcessState.READY)
        self._log(LogLevel.INFO, f"Woke up P{process.pid}", source="process", pid=process.pid)
        return True

    def change_priority(self, process: Process, new_priority: int) -> None:
        """Set a process's priority.  Queue positions do not change."""
        old_priority = process.priority
        process.priority = new_priority
        self._log(
            LogLevel.INFO,
            f"P{process.pid} priority {old_priority} -> {new_priority}",
            source="process",
            pid=process.pid,
        )

    def dispatch(self, process: Process) -> bool:
        """Give the CPU to ``process``.

        A different process already running is demoted to READY and
        appended to the ready queue tail first.  Dispatching the process
        that is already running changes nothing.

        Returns:
            True if ``process`` was newly dispatched.

        """
        if not self._require_live(process, "dispatch"):
            return False
        if process is self._running:
            return False
        previous = self._running
        if previous is not None:
            self._place(previous, Location.READY, ProcessState.READY)
            self._log(
                LogLevel.INFO,
                f"Preempted P{previous.pid} for P{process.pid}",
                source="scheduler",
                pid=previous.pid,
            )
        self._place(process, Location.RUNNING, ProcessState.RUNNING)
        self._log(LogLevel.INFO, f"Dispatched P{process.pid}", source="scheduler", pid=process.pid)
        return True

    # -- Scheduling ------------------------------------------------------------

    def _schedule_idle_cpu(self, policy: SchedulingPolicy, name: str) -> Process | None:
        """Dispatch the policy's pick if the CPU is idle."""
        if self._running is not None:
            self._log(
                LogLevel.DEBUG,
                f"{name}: CPU busy with P{self._running.pid}",
                source="scheduler",
            )
            return None
        chosen = policy.pick(self._ready)
        if chosen is None:
            self._log(LogLevel.DEBUG, f"{name}: ready queue empty", source="scheduler")
            return None
        self.dispatch(chosen)
        return chosen

    def schedule_fcfs(self) -> Process | None:
        """Dispatch the ready queue head if the CPU is idle.

        Returns:
            The newly dispatched process, or None if nothing changed.

        """
        return self._schedule_idle_cpu(self._fcfs, "FCFS")

    def schedule_sjf(self) -> Process | None:
        """Dispatch the shortest-burst ready process if the CPU is idle.

        Returns:
            The newly dispatched process, or None if nothing changed.

        """
        return self._schedule_idle_cpu(self._sjf, "SJF")

    def schedule_round_robin(self) -> Process | None:
        """Advance Round Robin by one step.

        1. If a process is running, charge it one unit of CPU time.
           At zero remaining time it terminates and leaves the CPU
           (it stays in the process table until destroyed).  Otherwise
           the simulated quantum may expire, sending it to the ready
           queue tail.
        2. If the CPU is now idle, dispatch the ready queue head.

        Returns:
            The process running after this step, or None if idle.

        """
        current = self._running
        if current is not None:
            current.remaining_time -= 1
            if current.remaining_time <= 0:
                self._place(current, Location.NONE, ProcessState.TERMINATED)
                self._log(
                    LogLevel.INFO,
                    f"P{current.pid} terminated",
                    source="scheduler",
                    pid=current.pid,
                )
            elif self._round_robin.quantum_expired():
                self._place(current, Location.READY, ProcessState.READY)
                self._log(
                    LogLevel.INFO,
                    f"Quantum expired for P{current.pid} ({current.remaining_time} left)",
                    source="scheduler",
                    pid=current.pid,
                )
        if self._running is None:
            head = self._round_robin.pick(self._ready)
            if head is not None:
                self.dispatch(head)
        return self._running

    # -- Paged memory ----------------------------------------------------------

    def simulate_page_access(self, count: int = DEFAULT_ACCESS_COUNT) -> list[int]:
        """Touch ``count`` random pages to spread out their recency.

        Returns:
            The page numbers touched (empty if the table is empty).

        """
        touched = self._page_table.simulate_access(count)
        self._log(LogLevel.DEBUG, f"Accessed pages {touched}", source="memory")
        return touched

    def apply_lru(self, max_pages: int) -> EvictionResult:
        """Evict at most one least-recently-used page.

        Call repeatedly to bring the table under ``max_pages``.
        """
        result = self._page_table.apply_lru(max_pages)
        if result.evicted:
            owner = (
                self._processes.get(result.process_id) if result.process_id is not None else None
            )
            if owner is not None and result.page_number is not None:
                owner.remove_page(result.page_number)
            self._log(
                LogLevel.INFO,
                f"LRU evicted page {result.page_number} of P{result.process_id}",
                source="memory",
                pid=result.process_id,
            )
        else:
            self._log(LogLevel.DEBUG, "LRU: no eviction needed", source="memory")
        return result

    def clear_page_table(self) -> None:
        """Drop every page and empty every process's page list."""
        self._page_table.clear()
        for process in self._processes.values():
            process.clear_pages()
        self._log(LogLevel.INFO, "Page table cleared", source="memory")

    # -- Fixed partitions ------------------------------------------------------

    def allocate_fixed_partition(self, process: Process) -> AllocationResult:
        """Place a process in the first free partition large enough."""
        result = self._partition_table.allocate(process)
        level = LogLevel.INFO if result.success else LogLevel.WARNING
        self._log(
            level,
            result.message.replace("\n", "; "),
            source="partition",
            pid=process.pid,
        )
        return result

    def deallocate_fixed_partition(self, partition_id: int) -> DeallocationResult:
        """Free a partition by id (reported failure if unknown or free)."""
        result = self._partition_table.deallocate(partition_id)
        level = LogLevel.INFO if result.success else LogLevel.WARNING
        self._log(level, result.message, source="partition", pid=result.process_id)
        return result

    def reset_partitions(self) -> None:
        """Free every partition."""
        self._partition_table.reset_all()
        self._log(LogLevel.INFO, "All partitions reset", source="partition")
