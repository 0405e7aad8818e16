from ..errors import SourceReadError
from ..http.model import HTTPRequest, HTTPResponse
from ..utils.htmpl import H, html
from ..utils.logging import warning
from .policy import CACHE_PAGE
from .resolver import ResolvedFile
from .responder import respond
from .sources import ContentSource

NOT_FOUND_PAGE: str = "404.html"

NOT_FOUND_CSS: str = """
body { font-family: sans-serif; margin: 4em auto; max-width: 40em; color: #222; }
code { background: #F0F0F0; padding: 0.1em 0.3em; }
"""


def fallbackPage(path: str) -> str:
	"""Generates a minimal document showing the (escaped) request path."""
	return "".join(
		html(
			H.html(
				H.head(
					H.meta(charset="utf-8"),
					H.title("404 Not Found"),
					H.style(NOT_FOUND_CSS),
				),
				H.body(
					H.h1("404 Not Found"),
					H.p("No page matches ", H.code(path), "."),
				),
				lang="en",
			),
			doctype="html",
		)
	)


def notFound(
	request: HTTPRequest,
	source: ContentSource,
	*,
	page: str = NOT_FOUND_PAGE,
) -> HTTPResponse:
	"""Responds with a 404, using the source's not found page when it has
	one, or a generated page otherwise."""
	size = source.stat(page)
	if size is not None:
		try:
			return respond(
				request,
				ResolvedFile.Make(page, size),
				source,
				status=404,
				contentType="text/html",
			)
		except SourceReadError as e:
			warning("Could not read not found page", Page=page, Reason=e.reason)
	response = request.respondHTML(
		fallbackPage(request.path),
		status=404,
		headers={"Cache-Control": CACHE_PAGE},
	)
	return response.withoutBody() if request.method == "HEAD" else response


# EOF
