import gc
import os
import resource
import sys
import tracemalloc
from typing import NamedTuple

RUNTIME: str = "python/sitefront"
MB: float = 1024.0 * 1024.0


class MemoryStats(NamedTuple):
	rss: str
	heap_used: str
	heap_total: str


class Stats(NamedTuple):
	runtime: str
	pid: int
	memory: MemoryStats


def formatMB(size: int) -> str:
	return f"{size / MB:.2f} MB"


def rssBytes() -> int | None:
	"""Returns the resident set size from `/proc`, when available."""
	try:
		with open("/proc/self/statm", "rb") as f:
			fields = f.read().split()
		return int(fields[1]) * os.sysconf("SC_PAGE_SIZE")
	except (OSError, IndexError, ValueError):
		return None


def maxRSSBytes() -> int:
	"""Peak resident set size, which Darwin reports in bytes and others in
	kilobytes."""
	usage = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
	return usage if sys.platform == "darwin" else usage * 1024


def heapBytes() -> tuple[int, int]:
	"""Returns the used and peak heap sizes. Without `tracemalloc`, this is
	an estimate based on the objects tracked by the garbage collector."""
	if tracemalloc.is_tracing():
		used, peak = tracemalloc.get_traced_memory()
		return used, max(used, peak)
	used = sum(sys.getsizeof(_) for _ in gc.get_objects())
	return used, used


def collect() -> Stats:
	used, total = heapBytes()
	rss = rssBytes()
	return Stats(
		runtime=RUNTIME,
		pid=os.getpid(),
		memory=MemoryStats(
			rss=formatMB(rss if rss is not None else maxRSSBytes()),
			heap_used=formatMB(used),
			heap_total=formatMB(max(total, used)),
		),
	)


# EOF
