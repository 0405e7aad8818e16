import os
import stat
from importlib import resources
from importlib.resources.abc import Traversable
from io import BytesIO
from pathlib import Path
from types import MappingProxyType
from typing import BinaryIO, Iterator, Mapping, NamedTuple, Protocol

from ..errors import ConfigurationError, SourceReadError  # NOQA: F401
from ..utils.logging import warning

__doc__ = """
Content sources give read-only access to a tree of files keyed by
normalized relative paths (`segments/joined/by/slashes`). There are two
of them:

- `EmbeddedSource`, an immutable in-memory mapping, typically loaded from
  the `static/` directory shipped within the package.
- `DiskSource`, a live directory that is re-read on every call, which is
  what you want when editing the site locally.

Both satisfy the `ContentSource` protocol, which is all the resolver and
responder depend on.
"""

# The package data directory baked in the distribution
EMBEDDED_PACKAGE: str = "sitefront"
EMBEDDED_DIRECTORY: str = "static"


class SourceFile(NamedTuple):
	"""An open file, with its size when known."""

	stream: BinaryIO
	size: int | None


class ContentSource(Protocol):
	name: str

	def stat(self, path: str) -> int | None:
		"""Returns the size of the regular file at `path`, or `None` when
		there is no such file (directories included)."""
		...

	def exists(self, path: str) -> bool: ...

	def open(self, path: str) -> SourceFile: ...


def normpath(path: str) -> str | None:
	"""Normalizes a relative key, returning `None` if it contains `.`/`..`
	segments (or NUL bytes), which content sources never hold."""
	if "\x00" in path:
		return None
	parts = [_ for _ in path.replace("\\", "/").split("/") if _]
	if any(_ in (".", "..") for _ in parts):
		return None
	return "/".join(parts)


# -----------------------------------------------------------------------------
#
# EMBEDDED
#
# -----------------------------------------------------------------------------


class EmbeddedSource:
	"""An immutable tree of files held in memory."""

	@staticmethod
	def FromDirectory(path: Path | str) -> "EmbeddedSource":
		"""Snapshots the regular files of the given directory."""
		root = Path(path)
		return EmbeddedSource(
			{
				_.relative_to(root).as_posix(): _.read_bytes()
				for _ in sorted(root.rglob("*"))
				if _.is_file()
			},
			name=f"embedded:{root}",
		)

	@staticmethod
	def FromPackage(
		package: str = EMBEDDED_PACKAGE, directory: str = EMBEDDED_DIRECTORY
	) -> "EmbeddedSource":
		"""Loads the files that were baked into the package distribution."""
		base = resources.files(package).joinpath(directory)
		files: dict[str, bytes] = {}

		def walk(node: Traversable, prefix: str) -> None:
			for child in node.iterdir():
				key = f"{prefix}{child.name}"
				if child.is_dir():
					walk(child, f"{key}/")
				elif child.is_file() and not child.name.endswith((".py", ".pyc")):
					files[key] = child.read_bytes()

		if base.is_dir():
			walk(base, "")
		return EmbeddedSource(files, name=f"embedded:{package}/{directory}")

	def __init__(self, files: Mapping[str, bytes], *, name: str = "embedded"):
		entries: dict[str, bytes] = {}
		for key, data in files.items():
			path = normpath(key)
			if not path:
				raise ValueError(f"Invalid embedded path: {key!r}")
			entries[path] = bytes(data)
		self.name: str = name
		self.files: Mapping[str, bytes] = MappingProxyType(entries)
		# Every strict prefix of a key is a directory
		self.directories: frozenset[str] = frozenset(
			"/".join(parts[:i])
			for parts in (_.split("/") for _ in entries)
			for i in range(1, len(parts))
		)

	def stat(self, path: str) -> int | None:
		key = normpath(path)
		if key is None or key in self.directories:
			return None
		data = self.files.get(key)
		return None if data is None else len(data)

	def exists(self, path: str) -> bool:
		return self.stat(path) is not None

	def open(self, path: str) -> SourceFile:
		key = normpath(path)
		data = self.files.get(key) if key is not None else None
		if data is None:
			raise SourceReadError(path, "not in embedded files")
		return SourceFile(BytesIO(data), len(data))

	def __len__(self) -> int:
		return len(self.files)

	def __iter__(self) -> Iterator[str]:
		return iter(self.files)

	def __repr__(self) -> str:
		return f"(EmbeddedSource {self.name} files={len(self.files)})"


# -----------------------------------------------------------------------------
#
# DISK
#
# -----------------------------------------------------------------------------


def contains(root: str, path: str) -> bool:
	"""Tells if `path` is lexically within `root`, both being absolute and
	canonical. The comparison respects separators, so that `/srv/static`
	does not contain `/srv/static-evil`."""
	if path == root:
		return True
	prefix = root if root.endswith(os.sep) else root + os.sep
	return path.startswith(prefix)


class DiskSource:
	"""A live directory on disk. Nothing is cached: each call hits the
	filesystem."""

	def __init__(self, root: Path | str):
		self.path: Path = Path(root)
		if not self.path.is_dir():
			raise ConfigurationError(
				f"Static directory does not exist or is not a directory: {self.path}"
			)
		self.root: str = os.path.realpath(self.path)
		self.name: str = f"disk:{self.path}"

	def locate(self, path: str) -> str | None:
		"""Returns the canonical absolute location of `path`, or `None`
		when it falls outside of the root."""
		key = normpath(path)
		if key is None:
			return None
		location = os.path.realpath(os.path.join(self.root, *key.split("/")))
		if not contains(self.root, location):
			warning(
				"Blocked path outside of static root",
				Path=path,
				Resolved=location,
				Root=self.root,
			)
			return None
		return location

	def stat(self, path: str) -> int | None:
		location = self.locate(path)
		if location is None:
			return None
		try:
			st = os.stat(location)
		except OSError:
			return None
		return st.st_size if stat.S_ISREG(st.st_mode) else None

	def exists(self, path: str) -> bool:
		return self.stat(path) is not None

	def open(self, path: str) -> SourceFile:
		location = self.locate(path)
		if location is None:
			raise SourceReadError(path, "outside of static root")
		try:
			stream = open(location, "rb")
		except OSError as e:
			raise SourceReadError(path, e.strerror or str(e)) from e
		try:
			size: int | None = os.fstat(stream.fileno()).st_size
		except OSError:
			size = None
		return SourceFile(stream, size)

	def __repr__(self) -> str:
		return f"(DiskSource {self.root})"


# EOF
