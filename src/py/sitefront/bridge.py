import asyncio
from typing import Literal, NamedTuple

from .http.model import HTTPBodyWriter, HTTPProcessingStatus, HTTPRequest
from .http.parser import HTTPParser
from .server import SERVER_BAD_REQUEST, Application, sendResponse

__doc__ = """
Runs raw HTTP requests through an application without opening any socket.
This is what the tests use to check responses end to end, from the bytes
of the request to the bytes of the response.
"""


class BufferBodyWriter(HTTPBodyWriter):
	"""Accumulates written bytes in memory."""

	def __init__(self) -> None:
		super().__init__()
		self.buffer: bytearray = bytearray()

	async def _writeBytes(
		self, chunk: bytes | None | Literal[False], more: bool = False
	) -> bool:
		if chunk:
			self.buffer += chunk
		return True


class BridgeResponse(NamedTuple):
	status: int
	message: str
	headers: dict[str, str]
	body: bytes

	def header(self, name: str) -> str | None:
		return self.headers.get(name.lower())

	@staticmethod
	def Parse(payload: bytes) -> "BridgeResponse":
		"""Parses a single serialized response."""
		head, _, body = payload.partition(b"\r\n\r\n")
		lines = head.decode("latin-1").split("\r\n")
		_, status, message = lines[0].split(" ", 2)
		headers: dict[str, str] = {}
		for line in lines[1:]:
			name, _, value = line.partition(":")
			headers[name.strip().lower()] = value.strip()
		return BridgeResponse(int(status), message, headers, body)


async def process(app: Application, payload: bytes) -> bytes:
	"""Feeds the payload to a parser and sends the responses for all the
	requests it contains, returning what would have gone on the wire."""
	parser = HTTPParser()
	writer = BufferBodyWriter()
	for atom in parser.feed(payload):
		if atom is HTTPProcessingStatus.BadFormat:
			await writer.write(SERVER_BAD_REQUEST)
			break
		elif isinstance(atom, HTTPRequest):
			await sendResponse(atom, app, writer)
			if writer.shouldClose:
				break
	return bytes(writer.buffer)


def request(
	app: Application,
	method: str = "GET",
	path: str = "/",
	*,
	headers: dict[str, str] | None = None,
	body: bytes = b"",
) -> BridgeResponse:
	"""Sends a single request to the application and parses the response."""
	lines: list[str] = [f"{method} {path} HTTP/1.1", "Host: localhost"]
	for k, v in (headers or {}).items():
		lines.append(f"{k}: {v}")
	if body:
		lines.append(f"Content-Length: {len(body)}")
	payload = ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1") + body
	return BridgeResponse.Parse(asyncio.run(process(app, payload)))


# EOF
