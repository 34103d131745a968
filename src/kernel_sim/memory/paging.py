"""Paged memory — the page table and LRU eviction.

Every process gets ``ceil(memory_requirement / page_size)`` pages when
it is created.  There is no physical-frame limit at allocation time:
the page table grows without bound, and the only way it shrinks is
when a process is destroyed, the table is cleared, or the caller asks
for an LRU eviction.

Page numbers come from a per-table counter, so a number is never handed
out twice while the table lives (clearing the table restarts it at 0).

LRU here is deliberately one-step: ``apply_lru`` evicts *at most one*
page per call, even if the table is still over the limit afterwards.
Callers watch each eviction and decide whether to call again.

Recency comes from an injectable clock.  The default is a logical
clock (an ever-increasing counter) so two accesses never share a
timestamp; a wall-clock source works too, but then ties are possible
and are broken by an injectable tie-breaker (default: the page that
appears first in table order).
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from itertools import count
from typing import TYPE_CHECKING

from kernel_sim.config import DEFAULT_PAGE_SIZE

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from kernel_sim.process.pcb import Process


def logical_clock() -> Callable[[], int]:
    """Return a fresh logical clock: each call yields the next integer."""
    return count(start=1).__next__


def first_in_table_order(candidates: Sequence[Page]) -> Page:
    """Break an LRU tie by taking the earliest page in table order."""
    return candidates[0]


@dataclass
class Page:
    """One page-table entry.

    Attributes:
        page_number: Identifier unique within the live page table.
        process_id: PID of the owning process.
        last_accessed: Clock value of the most recent access (or of
            creation, if never accessed).
        access_count: Number of simulated accesses so far.

    """

    page_number: int
    process_id: int
    last_accessed: float
    access_count: int = 0

    def access(self, now: float) -> None:
        """Record a simulated access at time ``now``."""
        self.last_accessed = now
        self.access_count += 1


@dataclass(frozen=True)
class EvictionResult:
    """Outcome of a single ``apply_lru`` call."""

    evicted: bool
    remaining: int
    max_pages: int
    page_number: int | None = None
    process_id: int | None = None

    @property
    def message(self) -> str:
        """Return a human-readable description of the outcome."""
        if not self.evicted:
            return (
                f"No pages need to be replaced. Current pages: {self.remaining}, "
                f"Max allowed: {self.max_pages}"
            )
        return (
            f"Removed Page #{self.page_number} (Process P{self.process_id}) - "
            f"Least Recently Used\nRemaining pages: {self.remaining}"
        )

    def __str__(self) -> str:
        """Return the outcome message."""
        return self.message


class PageTable:
    """Map page numbers to pages, with LRU bookkeeping.

    The table owns the pages; processes only hold page *numbers*.  The
    kernel keeps the two sides in step.
    """

    def __init__(
        self,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        clock: Callable[[], float] | None = None,
        rng: random.Random | None = None,
        tie_breaker: Callable[[Sequence[Page]], Page] | None = None,
    ) -> None:
        """Create an empty page table.

        Args:
            page_size: Bytes per page.
            clock: Source of access timestamps (default: logical clock).
            rng: Random source used to pick pages in ``simulate_access``.
            tie_breaker: Picks one page among equally-old LRU candidates.

        Raises:
            ValueError: If page_size is not positive.

        """
        self._check_page_size(page_size)
        self._page_size = page_size
        self._clock = clock if clock is not None else logical_clock()
        self._rng = rng if rng is not None else random.Random()
        self._tie_breaker = tie_breaker if tie_breaker is not None else first_in_table_order
        self._pages: dict[int, Page] = {}
        self._next_page_number = count()

    @staticmethod
    def _check_page_size(page_size: int) -> None:
        if page_size <= 0:
            msg = f"Page size must be positive, got {page_size}"
            raise ValueError(msg)

    @property
    def page_size(self) -> int:
        """Return the page size in bytes."""
        return self._page_size

    @page_size.setter
    def page_size(self, value: int) -> None:
        """Change the page size.  Pages already allocated keep their count."""
        self._check_page_size(value)
        self._page_size = value

    @property
    def pages(self) -> dict[int, Page]:
        """Return a snapshot of the table (page number → page)."""
        return dict(self._pages)

    def get(self, page_number: int) -> Page | None:
        """Return the page with this number, or None."""
        return self._pages.get(page_number)

    def __len__(self) -> int:
        """Return the number of live pages."""
        return len(self._pages)

    def __contains__(self, page_number: object) -> bool:
        """Return True if the page number is live."""
        return page_number in self._pages

    def pages_needed(self, memory_requirement: int) -> int:
        """Return how many pages a requirement occupies (ceiling division)."""
        return max(0, -(-memory_requirement // self._page_size))

    def allocate(self, process: Process) -> list[int]:
        """Give a process the pages its memory requirement needs.

        Always succeeds.  New page numbers are appended to the process's
        page list in increasing order.

        Returns:
            The newly allocated page numbers.

        """
        allocated: list[int] = []
        for _ in range(self.pages_needed(process.memory_requirement)):
            page_number = next(self._next_page_number)
            self._pages[page_number] = Page(
                page_number=page_number,
                process_id=process.pid,
                last_accessed=self._clock(),
            )
            process.add_page(page_number)
            allocated.append(page_number)
        return allocated

    def deallocate(self, process: Process) -> int:
        """Remove every page the process owns and empty its page list.

        Returns:
            The number of pages removed from the table.

        """
        removed = 0
        for page_number in process.page_numbers:
            if self._pages.pop(page_number, None) is not None:
                removed += 1
        process.clear_pages()
        return removed

    def simulate_access(self, accesses: int) -> list[int]:
        """Touch ``accesses`` randomly chosen pages (repeats allowed).

        Each touched page gets a fresh timestamp and its access counter
        bumped.  No-op on an empty table.

        Returns:
            The page numbers touched, in access order.

        Raises:
            ValueError: If accesses is negative.

        """
        if accesses < 0:
            msg = f"Access count must be non-negative, got {accesses}"
            raise ValueError(msg)
        if not self._pages:
            return []
        page_numbers = list(self._pages)
        touched: list[int] = []
        for _ in range(accesses):
            page_number = self._rng.choice(page_numbers)
            self._pages[page_number].access(self._clock())
            touched.append(page_number)
        return touched

    def lru_page(self) -> Page | None:
        """Return the least recently used page, or None if empty."""
        if not self._pages:
            return None
        oldest = min(page.last_accessed for page in self._pages.values())
        candidates = [page for page in self._pages.values() if page.last_accessed == oldest]
        return self._tie_breaker(candidates)

    def mru_page(self) -> Page | None:
        """Return the most recently used page, or None if empty."""
        if not self._pages:
            return None
        return max(self._pages.values(), key=lambda page: page.last_accessed)

    def pages_by_recency(self) -> list[Page]:
        """Return pages sorted from least to most recently accessed."""
        return sorted(self._pages.values(), key=lambda page: page.last_accessed)

    def apply_lru(self, max_pages: int) -> EvictionResult:
        """Evict the single least recently used page if over ``max_pages``.

        Returns:
            What happened: either "no eviction needed" (table unchanged)
            or the evicted page, its owner, and the new table size.

        """
        victim = self.lru_page() if len(self._pages) > max_pages else None
        if victim is None:
            return EvictionResult(evicted=False, remaining=len(self._pages), max_pages=max_pages)
        del self._pages[victim.page_number]
        return EvictionResult(
            evicted=True,
            remaining=len(self._pages),
            max_pages=max_pages,
            page_number=victim.page_number,
            process_id=victim.process_id,
        )

    def clear(self) -> None:
        """Drop every page and restart page numbering at 0."""
        self._pages.clear()
        self._next_page_number = count()
