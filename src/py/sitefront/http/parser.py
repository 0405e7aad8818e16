from typing import Iterator, Literal

from ..utils.io import LineParser
from .model import (
	HTTPAtom,
	HTTPBodyBlob,
	HTTPHeaders,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPRequestLine,
	headername,
)


class MessageParser:
	"""Parses an HTTP request line."""

	__slots__ = ["line", "value"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser()
		self.value: HTTPRequestLine | HTTPProcessingStatus | None = None

	def flush(self) -> HTTPRequestLine | HTTPProcessingStatus | None:
		res = self.value
		self.reset()
		return res

	def reset(self) -> "MessageParser":
		self.line.reset()
		self.value = None
		return self

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool | None, int]:
		line, read = self.line.feed(chunk, start)
		if line is None:
			return None, read
		elif not line:
			# Stray empty lines between pipelined requests are tolerated
			# (RFC 9112 §2.2)
			self.line.reset()
			return None, read
		else:
			ln = line.decode("latin-1")
			i = ln.find(" ")
			j = ln.rfind(" ")
			if i <= 0 or i == j:
				self.value = HTTPProcessingStatus.BadFormat
			else:
				p: list[str] = ln[i + 1 : j].split("?", 1)
				self.value = HTTPRequestLine(
					ln[0:i].upper(), p[0], p[1] if len(p) > 1 else "", ln[j + 1 :]
				)
			return True, read

	def __str__(self) -> str:
		return f"MessageParser({self.value})"


class HeadersParser:
	__slots__ = ["headers", "contentType", "contentLength", "line"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser()
		self.headers: dict[str, str] = {}
		self.contentType: str | None = None
		self.contentLength: int | None = None

	def flush(self) -> HTTPHeaders:
		res = HTTPHeaders(self.headers, self.contentType, self.contentLength)
		self.reset()
		return res

	def reset(self) -> "HeadersParser":
		self.line.reset()
		self.headers = {}
		self.contentType = None
		self.contentLength = None
		return self

	def feed(
		self, chunk: bytes, start: int = 0
	) -> tuple[str | Literal[False] | None, int]:
		"""Feeds data from chunk, starting at `start` offset. Returns
		a value and the next start offset. When the value is `None`, no
		header has been extracted, when the value is `False` it's an empty
		line, and when the value is a string, that header was added."""
		line, read = self.line.feed(chunk, start)
		if line is None:
			return None, read
		elif line:
			ln: str = line.decode("latin-1")
			i = ln.find(":")
			if i != -1:
				h = ln[:i].lower().strip()
				v = ln[i + 1 :].strip()
				if h == "content-length":
					try:
						self.contentLength = int(v)
					except ValueError:
						self.contentLength = None
				elif h == "content-type":
					self.contentType = v
				n: str = headername(h)
				self.headers[n] = v
				return n, read
			else:
				return None, read
		else:
			# An empty line denotes the end of headers
			return False, read

	def __str__(self) -> str:
		return f"HeadersParser({self.headers})"


class BodySkipParser:
	"""Consumes the body of a request with a `Content-Length`, without keeping
	it. Files are only ever served, so request bodies are never used and
	must not accumulate in memory."""

	__slots__ = ["expected", "read"]

	def __init__(self) -> None:
		self.expected: int = 0
		self.read: int = 0

	def flush(self) -> HTTPBodyBlob:
		res = HTTPBodyBlob(b"", self.read, self.expected - self.read)
		self.reset()
		return res

	def reset(self, length: int = 0) -> "BodySkipParser":
		self.expected = max(0, length)
		self.read = 0
		return self

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool | None, int]:
		skipped: int = min(len(chunk) - start, self.expected - self.read)
		self.read += skipped
		return (True if self.read >= self.expected else None), skipped


class HTTPParser:
	"""A stateful HTTP request parser. Chunks are fed as they come from the
	socket, and the parser yields atoms, including complete `HTTPRequest`
	objects."""

	def __init__(self) -> None:
		self.message: MessageParser = MessageParser()
		self.headers: HeadersParser = HeadersParser()
		self.bodySkip: BodySkipParser = BodySkipParser()
		self.parser: MessageParser | HeadersParser | BodySkipParser = self.message
		self.requestLine: HTTPRequestLine | None = None
		self.requestHeaders: HTTPHeaders | None = None

	def reset(self) -> "HTTPParser":
		self.requestLine = None
		self.requestHeaders = None
		self.parser = self.message.reset()
		return self

	def request(self, body: HTTPBodyBlob) -> HTTPRequest:
		line = self.requestLine
		if line is None:
			raise RuntimeError("Request line is missing")
		return HTTPRequest(
			method=line.method,
			path=line.path,
			query=line.query,
			headers=self.requestHeaders or HTTPHeaders({}),
			protocol=line.protocol,
			body=body,
		)

	def feed(self, chunk: bytes) -> Iterator[HTTPAtom]:
		size: int = len(chunk)
		offset: int = 0
		while offset < size:
			# The expectation here is that when we feed a chunk and it's
			# partially read, we don't need to re-feed it again. The underlying
			# parser will keep a buffer up until it is flushed.
			ln, read = self.parser.feed(chunk, offset)
			offset += read
			if ln is None:
				continue
			elif self.parser is self.message:
				line = self.message.flush()
				if isinstance(line, HTTPRequestLine):
					self.requestLine = line
					self.requestHeaders = None
					yield line
					self.parser = self.headers
				else:
					yield HTTPProcessingStatus.BadFormat
					self.reset()
					return
			elif self.parser is self.headers:
				if ln is not False:
					# `ln` is the header name, we keep on parsing
					continue
				headers = self.headers.flush()
				self.requestHeaders = headers
				yield headers
				# NOTE: Without a `Content-Length`, a request has no body (RFC 9112 §6.3)
				if not headers.contentLength or headers.contentLength < 0:
					# That's an early exit, there is no body to read
					yield self.request(HTTPBodyBlob(b"", 0))
					self.reset()
				else:
					self.parser = self.bodySkip.reset(headers.contentLength)
					yield HTTPProcessingStatus.Body
			else:
				yield self.request(self.bodySkip.flush())
				self.reset()


# EOF
