"""Kernel event log.

Each simulation step the kernel takes is recorded here as a numbered
event: process creation and destruction, queue moves, dispatches,
partition allocations, page evictions, and requests the kernel chose to
ignore.  Event numbers start at 1 and keep counting across ``clear``,
so a trace copied out before clearing can still be lined up against
later entries.

Entries are tagged with the subsystem that produced them (``kernel``,
``process``, ``scheduler``, ``memory``, ``partition``) and, where the
event concerns one process, its PID.  ``history`` replays the life of
a single process from those tags.
"""

from dataclasses import dataclass
from enum import IntEnum
from itertools import count


class LogLevel(IntEnum):
    """Severity levels, ordered so ``min_level`` filtering can use ``>=``."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """One kernel event.

    Attributes:
        level: The severity of this event.
        message: What happened, in words.
        source: The subsystem that generated the event (e.g. "scheduler").
        pid: The process the event concerns, if any.
        seq: Event number, assigned by the logger.

    """

    level: LogLevel
    message: str
    source: str
    pid: int | None = None
    seq: int = 0

    def __str__(self) -> str:
        """Format as ``[LEVEL] source: message``."""
        return f"[{self.level.name}] {self.source}: {self.message}"


class Logger:
    """Append-only event log."""

    def __init__(self) -> None:
        """Create an empty logger."""
        self._entries: list[LogEntry] = []
        self._seq = count(start=1)

    @property
    def entries(self) -> list[LogEntry]:
        """Return all entries, oldest first."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        pid: int | None = None,
    ) -> LogEntry:
        """Record an event and return the stored entry."""
        entry = LogEntry(
            level=level, message=message, source=source, pid=pid, seq=next(self._seq)
        )
        self._entries.append(entry)
        return entry

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
        pid: int | None = None,
    ) -> list[LogEntry]:
        """Return entries matching every given criterion.

        Args:
            min_level: If set, only entries at or above this level.
            source: If set, only entries from this subsystem.
            pid: If set, only entries about this process.

        """
        return [
            entry
            for entry in self._entries
            if (min_level is None or entry.level >= min_level)
            and (source is None or entry.source == source)
            and (pid is None or entry.pid == pid)
        ]

    def tail(self, limit: int) -> list[LogEntry]:
        """Return the last ``limit`` entries (all of them if fewer)."""
        if limit <= 0:
            return []
        return self._entries[-limit:]

    def history(self, pid: int) -> list[str]:
        """Return the messages logged about one process, in order."""
        return [entry.message for entry in self._entries if entry.pid == pid]

    def clear(self) -> None:
        """Drop all entries.  Event numbering carries on."""
        self._entries.clear()
