import posixpath
from typing import NamedTuple
from urllib.parse import unquote

from ..utils.logging import LogLevel, debug, logged
from .sources import ContentSource

__doc__ = """
Maps request paths to files of a content source.

The request path is cleaned lexically first, so that `..` segments can
never climb above the root, and then a short list of candidates is tried
in a fixed order:

1. the exact path,
2. the path with `.html` appended, when its last segment has no extension,
3. the path with `/index.html` appended, under the same condition and only
   when directory indexes are enabled.

The first candidate that is a regular file wins. Disk sources also check
that the canonical location of a candidate stays within the root, which
covers symlinks pointing outside of it.
"""

INDEX: str = "index.html"
PAGE_SUFFIX: str = ".html"


class ResolvedFile(NamedTuple):
	"""A file of the content source that matched a request."""

	path: str
	size: int
	extension: str

	@staticmethod
	def Make(path: str, size: int) -> "ResolvedFile":
		return ResolvedFile(path, size, extension(path))


def extension(path: str) -> str:
	"""Returns the lowercase extension of the path basename, including the
	leading dot, or an empty string."""
	return posixpath.splitext(posixpath.basename(path))[1].lower()


def normalize(rawPath: str) -> str:
	"""Cleans the raw request path into a root-relative key. The result never
	contains `.` or `..` segments nor a leading slash. The root is
	mapped to `index.html`."""
	path = unquote(rawPath.strip()).replace("\\", "/")
	if not path or path == "/":
		return INDEX
	# NOTE: `normpath` preserves a leading `//`, so we make sure there's
	# exactly one.
	cleaned = posixpath.normpath("/" + path.lstrip("/"))
	key = cleaned.lstrip("/")
	return key if key and key != "." else INDEX


def isPage(key: str) -> bool:
	"""Extensionless paths denote pages rather than assets."""
	return "." not in posixpath.basename(key)


def candidates(key: str, directoryIndex: bool = True) -> list[str]:
	"""Returns the paths to try for the given key, in priority order."""
	res: list[str] = [key]
	if isPage(key):
		res.append(f"{key}{PAGE_SUFFIX}")
		if directoryIndex:
			res.append(f"{key}/{INDEX}")
	return res


def resolve(
	source: ContentSource, rawPath: str, *, directoryIndex: bool = True
) -> ResolvedFile | None:
	"""Resolves the request path against the source, returning `None` when
	no candidate is a regular file within the root."""
	key = normalize(rawPath)
	if "\x00" in key:
		return None
	for candidate in candidates(key, directoryIndex):
		size = source.stat(candidate)
		if size is not None:
			return ResolvedFile.Make(candidate, size)
	logged(LogLevel.Debug) and debug(
		"No candidate matched", Path=rawPath, Key=key, Source=source.name
	)
	return None


# EOF
