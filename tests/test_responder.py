import asyncio

from sitefront.bridge import BufferBodyWriter
from sitefront.content.resolver import resolve
from sitefront.content.responder import respond
from sitefront.content.sources import ContentSource
from sitefront.http.model import HTTPBodyFile, HTTPRequest
from sitefront.http.parser import HTTPParser

from conftest import PNG


def parse(payload: bytes) -> HTTPRequest:
	(req,) = [_ for _ in HTTPParser().feed(payload) if isinstance(_, HTTPRequest)]
	return req


def test_file_body(source: ContentSource):
	resolved = resolve(source, "/logo.png")
	res = respond(parse(b"GET /logo.png HTTP/1.1\r\n\r\n"), resolved, source)
	body = res.body
	assert isinstance(body, HTTPBodyFile)
	assert body.length == len(PNG)
	assert not body.stream.closed
	writer = BufferBodyWriter()
	asyncio.run(writer.write(body))
	assert bytes(writer.buffer) == PNG
	# The writer releases the file
	assert body.stream.closed


def test_file_body_head(source: ContentSource):
	resolved = resolve(source, "/logo.png")
	get = respond(parse(b"GET /logo.png HTTP/1.1\r\n\r\n"), resolved, source)
	stream = get.body.stream
	res = respond(parse(b"HEAD /logo.png HTTP/1.1\r\n\r\n"), resolved, source)
	assert res.body is None
	assert res.headers.headers == get.headers.headers
	# Dropping the body closes its file
	get.withoutBody()
	assert stream.closed


# EOF
