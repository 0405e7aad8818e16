import asyncio
import socket
import threading
from dataclasses import dataclass, field
from signal import SIGINT, SIGTERM
from typing import Any, Callable, Literal, NamedTuple, Protocol

from .config import DEFAULT_PORT, HOST, SHUTDOWN_TIMEOUT, SiteConfig
from .http.model import (
	HTTPBodyFile,
	HTTPBodyWriter,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPResponse,
)
from .http.parser import HTTPParser
from .site import Site
from .utils.limits import LimitType, unlimit
from .utils.logging import (
	LogLevel,
	debug,
	error,
	event,
	exception,
	info,
	logged,
	warning,
)


class Application(Protocol):
	def process(self, request: HTTPRequest) -> HTTPResponse: ...


@dataclass(slots=True)
class ServerState:
	isRunning: bool = True
	# Connection tasks waiting for a request, which can be dropped right
	# away on shutdown.
	idle: set[asyncio.Task[None]] = field(default_factory=set)

	def stop(self) -> None:
		if self.isRunning:
			info("Server stopping…")
		self.isRunning = False

	def onException(
		self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
	) -> None:
		e = context.get("exception")
		if e:
			exception(e)


class ServerOptions(NamedTuple):
	host: str = HOST
	port: int = DEFAULT_PORT
	backlog: int = 10_000
	# This is the polling timeout for accepting new requests. Every second is
	# good
	polling: float = 1.0
	readsize: int = 4_096
	keepalive: float = 30.0
	logRequests: bool = True
	shutdownTimeout: float = SHUTDOWN_TIMEOUT
	condition: Callable[[], bool] | None = None
	stopSignals: bool = True


OPTIONS: ServerOptions = ServerOptions()


SERVER_ERROR: bytes = (
	b"HTTP/1.1 500 Internal Server Error\r\n"
	b"Content-Type: text/plain\r\n"
	b"Content-Length: 39\r\n"
	b"Connection: close\r\n"
	b"\r\n"
	b"Internal server error: Request not sent"
)

SERVER_BAD_REQUEST: bytes = (
	b"HTTP/1.1 400 Bad Request\r\n"
	b"Content-Type: text/plain\r\n"
	b"Content-Length: 11\r\n"
	b"Connection: close\r\n"
	b"\r\n"
	b"Bad Request"
)


class AIOSocketBodyWriter(HTTPBodyWriter):
	"""Specialized body writer to work with AIO sockets."""

	def __init__(
		self,
		client: "socket.socket",
		loop: asyncio.AbstractEventLoop,
	) -> None:
		super().__init__()
		self.client: socket.socket = client
		self.loop: asyncio.AbstractEventLoop = loop

	async def _writeBytes(
		self, chunk: bytes | None | Literal[False], more: bool = False
	) -> bool:
		if chunk:
			await self.loop.sock_sendall(self.client, chunk)
		return True

	async def _writeFile(self, body: HTTPBodyFile, size: int = 64_000) -> bool:
		# Uses `sendfile` for files on disk, and falls back to reading chunks
		# in the default executor for in-memory files.
		await self.loop.sock_sendfile(self.client, body.stream)
		return True


async def sendResponse(
	request: HTTPRequest,
	app: Application,
	writer: HTTPBodyWriter,
) -> HTTPResponse | None:
	"""Processes the request within the application and sends a response
	using the given writer. Returns the response once fully sent."""
	res: HTTPResponse | None = None
	sent: bool = False
	try:
		res = app.process(request)
		await writer.write(res.head())
		sent = True
		await writer.write(res.body)
	except (BrokenPipeError, ConnectionResetError):
		# Client did an early close
		writer.shouldClose = True
		if res:
			# Releases the file of a body that was not sent
			res.withoutBody()
		return None
	except Exception as e:
		exception(e)
		writer.shouldClose = True
		if res:
			res.withoutBody()
		if not sent:
			try:
				await writer.write(SERVER_ERROR)
			except OSError as e:
				exception(e)
		return None
	return res


# NOTE: Based on benchmarks, working with non-blocking sockets directly gave
# the best performance.
class AIOSocketServer:
	"""AsyncIO backend using sockets directly."""

	@classmethod
	async def OnRequest(
		cls,
		app: Application,
		client: socket.socket,
		*,
		loop: asyncio.AbstractEventLoop,
		options: ServerOptions,
		state: ServerState,
	) -> None:
		"""Asynchronous worker, processing the requests sent on a client
		connection until it's closed, times out or the server stops."""
		size: int = options.readsize
		buffer = bytearray(size)
		keep_alive: bool = True
		status: HTTPProcessingStatus = HTTPProcessingStatus.Processing
		req_count: int = 0
		res_count: int = 0
		task = asyncio.current_task()
		try:
			parser: HTTPParser = HTTPParser()
			writer: AIOSocketBodyWriter = AIOSocketBodyWriter(client, loop)
			while keep_alive and not writer.shouldClose and state.isRunning:
				if task:
					state.idle.add(task)
				try:
					n = await asyncio.wait_for(
						loop.sock_recv_into(client, buffer),
						timeout=options.keepalive,
					)
				except TimeoutError:
					status = HTTPProcessingStatus.Timeout
					break
				finally:
					if task:
						state.idle.discard(task)
				if not n:
					# A no-data means a close
					status = HTTPProcessingStatus.NoData
					break
				# NOTE: With HTTP Pipelining, we may receive more than one
				# request in the same payload.
				for atom in parser.feed(bytes(buffer[:n])):
					if atom is HTTPProcessingStatus.BadFormat:
						warning("Malformed request", Requests=req_count)
						await writer.write(SERVER_BAD_REQUEST)
						keep_alive = False
						break
					elif isinstance(atom, HTTPRequest):
						req = atom
						if options.logRequests:
							event(req.method, req.path)
						req_count += 1
						if (
							req.protocol == "HTTP/1.0"
							or (req.header("Connection") or "").lower() == "close"
						):
							keep_alive = False
						res = await sendResponse(req, app, writer)
						if res:
							res_count += 1
							if res.shouldClose:
								keep_alive = False
						if not keep_alive or writer.shouldClose:
							break
			if res_count != req_count:
				warning("Incomplete responses", Requests=req_count, Responses=res_count)
			elif status is HTTPProcessingStatus.Timeout and not req_count:
				logged(LogLevel.Debug) and debug(
					"Client timed out without sending a request",
					Client=f"{id(client):x}",
				)
		except asyncio.CancelledError:
			raise
		except Exception as e:
			exception(e)
		finally:
			# NOTE: The above loop takes care of keep alive, so we always close
			# the connection on exit.
			client.close()

	@classmethod
	async def Serve(
		cls,
		app: Application,
		options: ServerOptions = ServerOptions(),
	) -> None:
		"""Main server coroutine."""
		server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
		server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
		server.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
		try:
			server.bind((options.host, options.port))
		except OSError as e:
			server.close()
			error(
				f"Unable to bind to {options.host}:{options.port}, aborting.",
				"HOSTPORTERR",
			)
			raise e from e

		# The argument is the backlog of connections that will be accepted before
		# they are refused.
		server.listen(options.backlog)
		# This is what we need to use it with asyncio
		server.setblocking(False)

		tasks: set[asyncio.Task[None]] = set()
		loop = asyncio.get_running_loop()

		state = ServerState()
		# Signal handlers can only be registered from the main thread
		if (
			options.stopSignals
			and threading.current_thread() is threading.main_thread()
		):
			loop.add_signal_handler(SIGINT, state.stop)
			loop.add_signal_handler(SIGTERM, state.stop)
		loop.set_exception_handler(state.onException)

		info(
			"Sitefront server listening",
			icon="🚀",
			Host=options.host,
			Port=options.port,
		)

		try:
			while state.isRunning:
				if options.condition and not options.condition():
					break
				try:
					client, _ = await asyncio.wait_for(
						loop.sock_accept(server), timeout=options.polling or 1.0
					)
				except TimeoutError:
					continue
				except OSError as e:
					# This can be: [OSError] [Errno 24] Too many open files
					if e.errno == 24:
						await asyncio.sleep(0.1)
					else:
						exception(e)
					continue
				task = loop.create_task(
					cls.OnRequest(
						app, client, loop=loop, options=options, state=state
					)
				)
				tasks.add(task)
				task.add_done_callback(tasks.discard)
		finally:
			state.stop()
			server.close()
			await cls.Drain(tasks, state, options.shutdownTimeout)
			if (
				options.stopSignals
				and threading.current_thread() is threading.main_thread()
			):
				loop.remove_signal_handler(SIGINT)
				loop.remove_signal_handler(SIGTERM)

	@staticmethod
	async def Drain(
		tasks: set[asyncio.Task[None]], state: ServerState, timeout: float
	) -> bool:
		"""Lets in-flight responses complete within `timeout` seconds, and
		cancels whatever remains. Idle connections are dropped right away."""
		for task in list(state.idle):
			task.cancel()
		pending: set[asyncio.Task[None]] = set(tasks)
		if pending:
			info("Waiting for in-flight responses", Count=len(pending), Timeout=timeout)
			_, pending = await asyncio.wait(pending, timeout=timeout)
		for task in pending:
			task.cancel()
		if pending:
			warning(
				"Graceful shutdown timed out, abandoning responses",
				Count=len(pending),
				Timeout=timeout,
			)
			await asyncio.gather(*pending, return_exceptions=True)
		return not pending


def run(
	config: SiteConfig,
	app: Application | None = None,
	*,
	backlog: int = OPTIONS.backlog,
	condition: Callable[[], bool] | None = None,
	polling: float = OPTIONS.polling,
	keepalive: float = OPTIONS.keepalive,
) -> None:
	"""High level function to run the server."""
	unlimit(LimitType.Files)
	options = ServerOptions(
		host=config.host,
		port=config.port,
		backlog=backlog,
		condition=condition,
		polling=polling,
		logRequests=config.logRequests,
		keepalive=keepalive,
		shutdownTimeout=config.shutdownTimeout,
	)
	site: Application = app or Site.FromConfig(config)
	try:
		asyncio.run(AIOSocketServer.Serve(site, options))
	except KeyboardInterrupt:
		event("ManualShutdown")
	event("EOK")


# EOF
