"""Process subsystem — PCB and scheduling policies.

Re-exports public symbols so callers can write::

    from kernel_sim.process import Process, ProcessState, SJFPolicy
"""

from kernel_sim.process.pcb import Location, Process, ProcessState
from kernel_sim.process.scheduler import (
    FCFSPolicy,
    RoundRobinPolicy,
    SchedulingPolicy,
    SJFPolicy,
)

__all__ = [
    "FCFSPolicy",
    "Location",
    "Process",
    "ProcessState",
    "RoundRobinPolicy",
    "SJFPolicy",
    "SchedulingPolicy",
]
