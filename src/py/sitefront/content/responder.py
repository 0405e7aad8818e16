from ..errors import SourceReadError
from ..http.model import HTTPBodyFile, HTTPRequest, HTTPResponse
from .policy import CACHE_PAGE, SNIFF_SIZE, cacheControl, guessType, sniff
from .resolver import ResolvedFile
from .sources import ContentSource, SourceFile


def detectType(resolved: ResolvedFile, source: ContentSource) -> str:
	"""Returns the content type from the extension, sniffing the first bytes
	of the file when the extension is absent or unknown."""
	guessed = guessType(resolved.extension)
	if guessed:
		return guessed
	# The sniffing stream is discarded, the body is read from a fresh one
	opened = source.open(resolved.path)
	try:
		prefix: bytes = opened.stream.read(SNIFF_SIZE)
	except OSError as e:
		raise SourceReadError(resolved.path, e.strerror or str(e)) from e
	finally:
		opened.stream.close()
	return sniff(prefix)


def headers(resolved: ResolvedFile, contentType: str) -> dict[str, str]:
	"""Returns the `Content-Type` and `Cache-Control` headers of the file."""
	res: dict[str, str] = {"Content-Type": contentType}
	cache = cacheControl(resolved.extension)
	if cache is None and not resolved.extension and contentType == "text/html":
		# Extensionless documents are pages too
		cache = CACHE_PAGE
	if cache:
		res["Cache-Control"] = cache
	return res


def respond(
	request: HTTPRequest,
	resolved: ResolvedFile,
	source: ContentSource,
	*,
	status: int = 200,
	contentType: str | None = None,
) -> HTTPResponse:
	"""Responds with the contents of the resolved file. `HEAD` requests get
	the exact same headers, without a body. Raises `SourceReadError` when the
	file can't be opened. Once sent, the file is closed by the body writer."""
	content_type: str = contentType or detectType(resolved, source)
	base_headers = headers(resolved, content_type)
	opened: SourceFile = source.open(resolved.path)
	response = request.respond(
		content=HTTPBodyFile(opened.stream, opened.size),
		contentType=content_type,
		contentLength=opened.size,
		status=status,
		headers=base_headers,
	)
	return response.withoutBody() if request.method == "HEAD" else response


# EOF
