from typing import ClassVar

from .config import SiteConfig
from .content.notfound import notFound
from .content.policy import CACHE_NONE, SECURITY_HEADERS
from .content.resolver import resolve
from .content.responder import respond
from .content.sources import ContentSource
from .errors import SourceReadError
from .http.model import HTTPRequest, HTTPResponse
from .stats import collect
from .utils.logging import warning

SERVER_NAME: str = "sitefront"


class Site:
	"""Serves the files of a content source. Only `GET` and `HEAD` are
	supported, any other method gets a `405`, whatever the path."""

	METHODS: ClassVar[tuple[str, ...]] = ("GET", "HEAD")
	STATS_PATH: ClassVar[str] = "/stats"

	def __init__(
		self, source: ContentSource, config: SiteConfig | None = None
	) -> None:
		self.source: ContentSource = source
		self.config: SiteConfig = config or SiteConfig()

	@staticmethod
	def FromConfig(config: SiteConfig) -> "Site":
		return Site(config.source(), config)

	def process(self, request: HTTPRequest) -> HTTPResponse:
		"""Processes the request and returns a response, with the security
		headers applied."""
		try:
			response = self.dispatch(request)
		except SourceReadError as e:
			warning(
				"Could not read file",
				Method=request.method,
				Path=request.path,
				Reason=e.reason,
			)
			response = request.fail("Internal Server Error: could not read file")
		return response.setHeaders({"Server": SERVER_NAME, **SECURITY_HEADERS})

	def dispatch(self, request: HTTPRequest) -> HTTPResponse:
		if request.method not in self.METHODS:
			return request.notAllowed(self.METHODS)
		elif self.config.stats and request.path == self.STATS_PATH:
			return self.stats(request)
		resolved = resolve(
			self.source, request.path, directoryIndex=self.config.directoryIndex
		)
		if resolved is None:
			return notFound(request, self.source, page=self.config.notFoundPage)
		else:
			return respond(request, resolved, self.source)

	def stats(self, request: HTTPRequest) -> HTTPResponse:
		response = request.returns(collect(), headers={"Cache-Control": CACHE_NONE})
		return response.withoutBody() if request.method == "HEAD" else response

	def __repr__(self) -> str:
		return f"(Site {self.source.name})"


# EOF
