"""kernel_sim — a teaching simulator for process and memory management.

The simulation kernel tracks processes through their lifecycle,
schedules them with FCFS, SJF or Round Robin, and manages memory two
ways: paged allocation with LRU eviction, and fixed partitions with
first-fit placement.

Typical use::

    from kernel_sim import Kernel

    kernel = Kernel()
    p = kernel.create_process("Process1", 5, 1024, 3)
    kernel.schedule_fcfs()
    assert kernel.running is p
"""

from kernel_sim.kernel import Kernel
from kernel_sim.process.pcb import Location, Process, ProcessState

__all__ = ["Kernel", "Location", "Process", "ProcessState"]
