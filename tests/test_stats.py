import os

from sitefront.stats import RUNTIME, collect, formatMB, heapBytes


def test_format():
	assert formatMB(0) == "0.00 MB"
	assert formatMB(1024 * 1024) == "1.00 MB"
	assert formatMB(1536 * 1024) == "1.50 MB"


def test_collect():
	stats = collect()
	assert stats.runtime == RUNTIME
	assert stats.pid == os.getpid()
	for value in stats.memory:
		assert value.endswith(" MB")
		assert float(value.split()[0]) >= 0
	used, total = heapBytes()
	assert 0 < used <= total


# EOF
