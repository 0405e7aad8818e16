import tracemalloc

from sitefront.http.model import (
	HTTPHeaders,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPRequestLine,
	headername,
)
from sitefront.http.parser import HTTPParser
from sitefront.utils.io import LineParser


def requests(parser: HTTPParser, *chunks: bytes) -> list[HTTPRequest]:
	return [
		atom
		for chunk in chunks
		for atom in parser.feed(chunk)
		if isinstance(atom, HTTPRequest)
	]


def test_line_parser():
	parser = LineParser()
	lines: list[bytes] = []
	for chunk in [
		b"GET /time/5 HTTP/1.1\r\nHost: 127.0.0.1\r\nConnection: close",
		b"\r\n\r",
		b"\n",
	]:
		offset: int = 0
		while offset < len(chunk):
			line, read = parser.feed(chunk, offset)
			offset += read
			if line is not None:
				lines.append(line)
	assert lines == [
		b"GET /time/5 HTTP/1.1",
		b"Host: 127.0.0.1",
		b"Connection: close",
		b"",
	]


def test_parser_chunks():
	parser = HTTPParser()
	atoms = [
		atom
		for chunk in [
			b"GET /time/5 ",
			b"HTTP/1.1\r\nHost: ",
			b"127.0.0.1\r",
			b"\nConn",
			b"ection: close\r\n",
			b"\r",
			b"\n",
		]
		for atom in parser.feed(chunk)
	]
	assert isinstance(atoms[0], HTTPRequestLine)
	assert isinstance(atoms[1], HTTPHeaders)
	req = atoms[-1]
	assert isinstance(req, HTTPRequest)
	assert req.method == "GET"
	assert req.path == "/time/5"
	assert req.protocol == "HTTP/1.1"
	assert req.header("Host") == "127.0.0.1"
	assert req.header("connection") == "close"


def test_parser_query():
	(req,) = requests(HTTPParser(), b"get /search?q=static&all HTTP/1.1\r\n\r\n")
	assert req.method == "GET"
	assert req.path == "/search"
	assert req.query == "q=static&all"


def test_parser_body():
	parser = HTTPParser()
	(req,) = requests(
		parser,
		b"POST /upload HTTP/1.1\r\nContent-Length: 11\r\n\r\nhello",
		b" world",
	)
	assert req.method == "POST"
	assert req.contentLength == 11
	assert req.body is not None
	# Bodies are consumed, not kept
	assert req.body.payload == b""
	assert req.body.length == 11
	assert req.body.remaining == 0


def test_parser_body_without_length():
	(req,) = requests(HTTPParser(), b"POST /anything HTTP/1.1\r\nHost: x\r\n\r\n")
	assert req.method == "POST"
	assert req.body is not None
	assert req.body.payload == b""


def test_parser_pipelining():
	reqs = requests(
		HTTPParser(),
		b"GET / HTTP/1.1\r\n\r\nPUT /a HTTP/1.1\r\nContent-Length: 2\r\n\r\nokHEAD /b HTTP/1.1\r\n\r\n",
	)
	assert [(_.method, _.path) for _ in reqs] == [
		("GET", "/"),
		("PUT", "/a"),
		("HEAD", "/b"),
	]
	assert reqs[1].body.length == 2


def test_parser_bad_format():
	atoms = list(HTTPParser().feed(b"NONSENSE\r\n\r\n"))
	assert atoms == [HTTPProcessingStatus.BadFormat]
	atoms = list(HTTPParser().feed(b"GET /\r\n\r\n"))
	assert atoms == [HTTPProcessingStatus.BadFormat]


def test_parser_large_body():
	size: int = 1_000_000
	chunk = bytes(size)
	parser = HTTPParser()
	atoms = list(
		parser.feed(b"POST /upload HTTP/1.1\r\nContent-Length: 20000000\r\n\r\n")
	)
	assert atoms[-1] is HTTPProcessingStatus.Body
	tracemalloc.start()
	try:
		for _ in range(19):
			assert requests(parser, chunk) == []
		_, peak = tracemalloc.get_traced_memory()
	finally:
		tracemalloc.stop()
	assert peak < size
	req, following = requests(parser, chunk, b"GET / HTTP/1.1\r\n\r\n")
	assert following.method == "GET"
	assert req.body.length == 20_000_000
	assert req.body.payload == b""


def test_header_names_bounded():
	headername.cache_clear()
	parser = HTTPParser()
	for i in range(2_000):
		payload = f"GET / HTTP/1.1\r\nX-Junk-{i}: 1\r\n\r\n".encode()
		assert len(requests(parser, payload)) == 1
	assert headername.cache_info().currsize <= 256
	assert headername("x-junk-5") == "X-Junk-5"
	assert headername("CONTENT-TYPE") == "Content-Type"


# EOF
