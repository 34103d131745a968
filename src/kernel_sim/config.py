"""Default configuration for the simulated kernel.

Every value here is only a default — the ``Kernel`` constructor accepts
a keyword argument for each of them, so tests and callers can build a
kernel with a different memory layout without touching module state.
"""

# Bytes per page for paged allocation (4 KB, the classic x86 page).
DEFAULT_PAGE_SIZE = 4096

# Fixed partition sizes in KB, laid out contiguously from address 0.
# Partition ids are assigned 1..N in this order.
DEFAULT_PARTITION_SIZES: tuple[int, ...] = (100, 200, 150, 250, 324)

TOTAL_MEMORY_KB = sum(DEFAULT_PARTITION_SIZES)

# Pages touched by one ``simulate_page_access`` call.
DEFAULT_ACCESS_COUNT = 3

# Round Robin preempts the running process when a uniform draw in
# [0, 1) is strictly greater than this threshold (a 30% chance).
RR_PREEMPT_THRESHOLD = 0.7
