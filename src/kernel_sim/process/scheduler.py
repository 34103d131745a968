"""CPU scheduling policies — decide which READY process gets the CPU next.

The kernel owns the ready queue and the running slot; each policy only
answers "who is next?".  Three policies ship out of the box:

- **FCFSPolicy** (First Come, First Served): pure FIFO — the head of
  the ready queue runs first.  Simple, but a long job starves everyone
  behind it (convoy effect).
- **SJFPolicy** (Shortest Job First, non-preemptive): scan the whole
  ready queue and pick the smallest burst time.  Ties go to the process
  nearest the head, because the comparison is a strict ``<``.
- **RoundRobinPolicy**: FIFO selection plus a simulated quantum.  There
  is no timer — at each step the running process is preempted with a
  fixed probability, decided by an injectable random draw.

None of the policies read ``priority``; it is stored on the PCB and can
be changed, but scheduling ignores it.

Design: Strategy pattern
    The kernel is the *context*; SchedulingPolicy is the *strategy*.
    Each call to a kernel ``schedule_*`` method advances the simulation
    by exactly one decision, so policies hold no loop of their own.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Protocol

from kernel_sim.config import RR_PREEMPT_THRESHOLD

if TYPE_CHECKING:
    from collections import deque
    from collections.abc import Callable

    from kernel_sim.process.pcb import Process


class SchedulingPolicy(Protocol):
    """Interface that every scheduling algorithm must satisfy."""

    def pick(self, ready_queue: deque[Process]) -> Process | None:
        """Return the next process to run, or None if the queue is empty.

        The process is *not* removed; the kernel does that when it
        dispatches, so queue membership changes in one place only.
        """
        ...  # pragma: no cover


class FCFSPolicy:
    """First Come, First Served — processes run in enqueue order."""

    def pick(self, ready_queue: deque[Process]) -> Process | None:
        """Return the head of the queue (oldest arrival)."""
        if not ready_queue:
            return None
        return ready_queue[0]


class SJFPolicy:
    """Shortest Job First — smallest burst time runs first.

    Non-preemptive and greedy: the kernel only consults it when the CPU
    is idle, so a running process is never displaced by a shorter one.
    The selection uses the *total* burst time, not the remaining time.
    """

    def pick(self, ready_queue: deque[Process]) -> Process | None:
        """Return the process with the minimum burst time (first wins ties)."""
        shortest: Process | None = None
        for process in ready_queue:
            if shortest is None or process.burst_time < shortest.burst_time:
                shortest = process
        return shortest


class RoundRobinPolicy:
    """Round Robin with a randomised quantum.

    Selection behaves like FCFS.  Quantum expiry is simulated: every
    step, ``quantum_expired`` draws a number in [0, 1) and reports
    expiry when it exceeds the threshold.  Tests inject a fixed draw to
    make preemption deterministic.
    """

    def __init__(
        self,
        *,
        draw: Callable[[], float] | None = None,
        threshold: float = RR_PREEMPT_THRESHOLD,
    ) -> None:
        """Create a Round Robin policy.

        Args:
            draw: Zero-argument callable returning a float in [0, 1).
                Defaults to ``random.random``.
            threshold: Preempt when the draw is strictly greater than this.

        """
        self._draw = draw if draw is not None else random.random
        self._threshold = threshold

    @property
    def threshold(self) -> float:
        """Return the preemption threshold."""
        return self._threshold

    def pick(self, ready_queue: deque[Process]) -> Process | None:
        """Return the head of the queue — same as FCFS for selection."""
        if not ready_queue:
            return None
        return ready_queue[0]

    def quantum_expired(self) -> bool:
        """Return True if the running process should be preempted now."""
        return self._draw() > self._threshold
