import mimetypes

mimetypes.init()

# Types that are missing from (or inconsistent across) the platform's
# `mimetypes` database.
MIME_TYPES: dict[str, str] = {
	".html": "text/html",
	".htm": "text/html",
	".css": "text/css",
	".js": "text/javascript",
	".mjs": "text/javascript",
	".json": "application/json",
	".map": "application/json",
	".webmanifest": "application/manifest+json",
	".svg": "image/svg+xml",
	".webp": "image/webp",
	".avif": "image/avif",
	".ico": "image/vnd.microsoft.icon",
	".woff": "font/woff",
	".woff2": "font/woff2",
	".wasm": "application/wasm",
	".md": "text/markdown",
	".bz2": "application/x-bzip",
	".gz": "application/gzip",
}

CACHE_IMMUTABLE: str = "public, max-age=31536000, immutable"
CACHE_SCRIPT: str = "public, max-age=86400"
CACHE_PAGE: str = "public, max-age=0, must-revalidate, stale-while-revalidate=30"
CACHE_NONE: str = "no-store"

CACHE_CONTROL: dict[str, str] = {
	".woff": CACHE_IMMUTABLE,
	".woff2": CACHE_IMMUTABLE,
	".png": CACHE_IMMUTABLE,
	".jpg": CACHE_IMMUTABLE,
	".jpeg": CACHE_IMMUTABLE,
	".gif": CACHE_IMMUTABLE,
	".svg": CACHE_IMMUTABLE,
	".webp": CACHE_IMMUTABLE,
	".css": CACHE_IMMUTABLE,
	".js": CACHE_SCRIPT,
	".html": CACHE_PAGE,
}

# Applied to every response
SECURITY_HEADERS: dict[str, str] = {
	"X-Content-Type-Options": "nosniff",
	"Referrer-Policy": "no-referrer-when-downgrade",
	"Permissions-Policy": "camera=(), microphone=(), geolocation=()",
	"X-Frame-Options": "DENY",
	"Content-Security-Policy": "default-src 'self'; script-src 'self'; style-src 'self' 'unsafe-inline'; object-src 'none'; base-uri 'self'; frame-ancestors 'none'",
}

SNIFF_SIZE: int = 512

# Byte signatures, checked in order against the start of the content.
# SEE: https://mimesniff.spec.whatwg.org/#matching-an-image-type-pattern
SIGNATURES: list[tuple[bytes, str]] = [
	(b"%PDF-", "application/pdf"),
	(b"\x89PNG\r\n\x1a\n", "image/png"),
	(b"\xff\xd8\xff", "image/jpeg"),
	(b"GIF87a", "image/gif"),
	(b"GIF89a", "image/gif"),
	(b"BM", "image/bmp"),
	(b"\x00\x00\x01\x00", "image/vnd.microsoft.icon"),
	(b"wOFF", "font/woff"),
	(b"wOF2", "font/woff2"),
	(b"\x00asm", "application/wasm"),
	(b"\x1f\x8b\x08", "application/gzip"),
	(b"PK\x03\x04", "application/zip"),
	(b"OggS\x00", "application/ogg"),
]

# HTML markers, matched case-insensitively after leading whitespace
HTML_MARKERS: list[bytes] = [
	b"<!doctype html",
	b"<html",
	b"<head",
	b"<script",
	b"<iframe",
	b"<h1",
	b"<div",
	b"<font",
	b"<table",
	b"<a",
	b"<style",
	b"<title",
	b"<b",
	b"<body",
	b"<br",
	b"<p",
	b"<!--",
]

TEXT_PLAIN: str = "text/plain; charset=utf-8"
OCTET_STREAM: str = "application/octet-stream"


def cacheControl(extension: str) -> str | None:
	"""Returns the `Cache-Control` directive for the given extension, if any."""
	return CACHE_CONTROL.get(extension.lower())


def guessType(extension: str) -> str | None:
	"""Returns the content type registered for the extension, `None`
	when the extension is empty or unknown."""
	if not extension:
		return None
	ext = extension.lower()
	return MIME_TYPES.get(ext) or mimetypes.types_map.get(ext)


def sniff(prefix: bytes) -> str:
	"""Infers a content type from the first bytes of a file, falling back to
	plain text for UTF-8 content and to an octet stream otherwise."""
	data = prefix[:SNIFF_SIZE]
	for signature, contentType in SIGNATURES:
		if data.startswith(signature):
			return contentType
	if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
		return "image/webp"
	head = data.lstrip(b"\t\n\x0c\r ").lower()
	for marker in HTML_MARKERS:
		if head.startswith(marker):
			# The marker must be terminated by a space or a closing angle
			end = head[len(marker) : len(marker) + 1]
			if end in (b" ", b">") or marker == b"<!--":
				return "text/html"
	if head.startswith(b"<?xml"):
		return "text/xml"
	if b"\x00" in data:
		return OCTET_STREAM
	try:
		data.decode("utf-8")
	except UnicodeDecodeError as e:
		# A multibyte sequence may be cut at the end of the prefix
		if e.start < len(data) - 3:
			return OCTET_STREAM
	return TEXT_PLAIN


# EOF
