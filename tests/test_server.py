import asyncio
import socket
from pathlib import Path

from sitefront.config import SiteConfig
from sitefront.content.sources import DiskSource, EmbeddedSource
from sitefront.server import AIOSocketServer, ServerOptions, ServerState
from sitefront.site import Site

from conftest import SITE_FILES


def freePort() -> int:
	with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
		s.bind(("127.0.0.1", 0))
		return s.getsockname()[1]


def fetch(site: Site, payload: bytes) -> bytes:
	"""Starts a server for the site, sends the payload on a connection and
	returns everything received until the server closes it."""
	running: list[bool] = [True]
	options = ServerOptions(
		host="127.0.0.1",
		port=freePort(),
		polling=0.05,
		logRequests=False,
		shutdownTimeout=1.0,
		condition=lambda: running[0],
		stopSignals=False,
	)

	async def scenario() -> bytes:
		server = asyncio.create_task(AIOSocketServer.Serve(site, options))
		for _ in range(100):
			try:
				reader, writer = await asyncio.open_connection(options.host, options.port)
				break
			except OSError:
				await asyncio.sleep(0.02)
		else:
			raise AssertionError("Server did not start")
		writer.write(payload)
		await writer.drain()
		res = await asyncio.wait_for(reader.read(), timeout=5)
		writer.close()
		running[0] = False
		await asyncio.wait_for(server, timeout=5)
		return res

	return asyncio.run(scenario())


def test_serve():
	site = Site(EmbeddedSource(SITE_FILES), SiteConfig(logRequests=False))
	payload = fetch(
		site, b"GET /about HTTP/1.1\r\nHost: localhost\r\nConnection: close\r\n\r\n"
	)
	assert payload.startswith(b"HTTP/1.1 200 OK\r\n")
	assert payload.endswith(SITE_FILES["about.html"])


def test_serve_disk(root: Path):
	# Large enough to need several writes
	data = bytes(range(256)) * 16_384
	(root / "large.bin").write_bytes(data)
	site = Site(DiskSource(root), SiteConfig(logRequests=False))
	payload = fetch(
		site,
		b"GET /about HTTP/1.1\r\nHost: localhost\r\n\r\n"
		b"GET /large.bin HTTP/1.1\r\nHost: localhost\r\nConnection: close\r\n\r\n",
	)
	assert payload.count(b"HTTP/1.1 200 OK\r\n") == 2
	assert SITE_FILES["about.html"] in payload
	assert f"Content-Length: {len(data)}\r\n".encode() in payload
	assert payload.endswith(data)


def test_drain():
	async def scenario() -> tuple[bool, bool, bool, bool]:
		state = ServerState()
		slow = asyncio.create_task(asyncio.sleep(10))
		fast = asyncio.create_task(asyncio.sleep(0.01))
		idle = asyncio.create_task(asyncio.sleep(10))
		state.idle.add(idle)
		completed = await AIOSocketServer.Drain({slow, fast, idle}, state, 0.2)
		return completed, slow.cancelled(), idle.cancelled(), fast.cancelled()

	completed, slow, idle, fast = asyncio.run(scenario())
	assert not completed
	assert slow
	assert idle
	assert not fast


def test_drain_completes():
	async def scenario() -> bool:
		state = ServerState()
		tasks = {asyncio.create_task(asyncio.sleep(0.01)) for _ in range(3)}
		return await AIOSocketServer.Drain(tasks, state, 1.0)

	assert asyncio.run(scenario())


def test_state():
	state = ServerState()
	assert state.isRunning
	state.stop()
	state.stop()
	assert not state.isRunning


# EOF
