import argparse
import os
from enum import Enum
from os import getenv
from pathlib import Path
from typing import Mapping, NamedTuple

from .content.notfound import NOT_FOUND_PAGE
from .content.sources import ContentSource, DiskSource, EmbeddedSource
from .errors import ConfigurationError

DEFAULT_PORT: int = 9327

# We're serving in containers and VMs, so we want to be reachable from everywhere
HOST: str = getenv("HOST", "0.0.0.0")  # nosec: B104

LOG_REQUESTS: bool = getenv("SITEFRONT_LOG_REQUESTS", "1") == "1"

STATIC_DIR: str = getenv("SITEFRONT_STATIC_DIR", "static")

SHUTDOWN_TIMEOUT: float = 5.0


class AssetMode(Enum):
	Embedded = "embedded"
	Disk = "disk"


class SiteConfig(NamedTuple):
	"""The configuration of a site, built once at boot."""

	host: str = HOST
	port: int = DEFAULT_PORT
	assets: AssetMode = AssetMode.Embedded
	staticDir: Path = Path(STATIC_DIR)
	shutdownTimeout: float = SHUTDOWN_TIMEOUT
	notFoundPage: str = NOT_FOUND_PAGE
	directoryIndex: bool = True
	stats: bool = True
	logRequests: bool = LOG_REQUESTS

	def source(self) -> ContentSource:
		"""Creates the content source for the configured asset mode."""
		if self.assets is AssetMode.Disk:
			return DiskSource(self.staticDir)
		source = EmbeddedSource.FromPackage()
		if not len(source):
			raise ConfigurationError("No embedded static files found in the package")
		return source


def parsePort(value: str | int, origin: str) -> int:
	"""Parses a TCP port, raising a `ConfigurationError` when invalid."""
	try:
		port = int(str(value).strip())
	except ValueError:
		raise ConfigurationError(f"Invalid port in {origin}: {value!r}") from None
	if not 0 < port < 65536:
		raise ConfigurationError(f"Port out of range in {origin}: {port}")
	return port


def resolvePort(flag: int | str | None, environ: Mapping[str, str]) -> int:
	"""Explicit flag first, then the `PORT` environment variable, then the
	default port."""
	if flag is not None:
		return parsePort(flag, "--port")
	env = environ.get("PORT")
	if env is not None and env.strip():
		return parsePort(env, "PORT")
	return DEFAULT_PORT


def parser() -> argparse.ArgumentParser:
	"""Creates the command line parser. The `serve` subcommand is optional
	and takes the same options as the bare command."""
	res = argparse.ArgumentParser(
		prog="sitefront",
		description="Serves a static site, from embedded files or a directory",
		formatter_class=argparse.ArgumentDefaultsHelpFormatter,
	)
	res.add_argument(
		"command",
		nargs="?",
		choices=["serve"],
		default="serve",
		help="The command to run",
	)
	res.add_argument(
		"-p",
		"--port",
		action="store",
		dest="port",
		help=f"Specifies the port (defaults to $PORT, then {DEFAULT_PORT})",
	)
	res.add_argument(
		"--host",
		action="store",
		dest="host",
		default=HOST,
		help="The address to listen on",
	)
	res.add_argument(
		"--assets",
		action="store",
		dest="assets",
		choices=[_.value for _ in AssetMode],
		default=AssetMode.Embedded.value,
		help="Serves the files embedded in the package, or a directory on disk",
	)
	res.add_argument(
		"--use-disk",
		action="store_true",
		dest="useDisk",
		help="Shorthand for --assets=disk",
	)
	res.add_argument(
		"--static-dir",
		action="store",
		dest="staticDir",
		default=STATIC_DIR,
		help="The directory served in disk mode",
	)
	res.add_argument(
		"--shutdown-timeout",
		action="store",
		dest="shutdownTimeout",
		type=float,
		default=SHUTDOWN_TIMEOUT,
		help="Seconds given to in-flight responses on shutdown",
	)
	res.add_argument(
		"--no-directory-index",
		action="store_false",
		dest="directoryIndex",
		help="Does not look for PATH/index.html when PATH is not found",
	)
	res.add_argument(
		"--no-stats",
		action="store_false",
		dest="stats",
		help="Disables the /stats diagnostics endpoint",
	)
	res.add_argument(
		"--no-log-requests",
		action="store_false",
		dest="logRequests",
		default=LOG_REQUESTS,
		help="Does not log each request",
	)
	return res


def load(
	args: list[str] | None = None, environ: Mapping[str, str] | None = None
) -> SiteConfig:
	"""Builds the site configuration from the command line arguments and the
	environment, raising `ConfigurationError` when it's invalid."""
	options = parser().parse_args(args=args)
	env: Mapping[str, str] = os.environ if environ is None else environ
	if options.shutdownTimeout < 0:
		raise ConfigurationError(
			f"Shutdown timeout can't be negative: {options.shutdownTimeout}"
		)
	return SiteConfig(
		host=options.host,
		port=resolvePort(options.port, env),
		assets=AssetMode.Disk if options.useDisk else AssetMode(options.assets),
		staticDir=Path(options.staticDir),
		shutdownTimeout=options.shutdownTimeout,
		directoryIndex=options.directoryIndex,
		stats=options.stats,
		logRequests=options.logRequests,
	)


# EOF
