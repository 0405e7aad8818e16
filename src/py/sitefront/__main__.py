import sys

from .config import load
from .errors import ConfigurationError
from .server import run
from .utils.logging import error, info


def main(args: list[str] | None = None) -> int:
	"""Runs the `sitefront` command, returning the exit code."""
	try:
		config = load(sys.argv[1:] if args is None else args)
		info(
			"Sitefront starting",
			icon="🌐",
			Host=config.host,
			Port=config.port,
			Assets=config.assets.value,
			StaticDir=str(config.staticDir),
			ShutdownTimeout=config.shutdownTimeout,
		)
		run(config)
	except ConfigurationError as e:
		error(str(e), "CONFIG")
		return 2
	except OSError:
		# The server already logged the bind failure
		return 1
	return 0


if __name__ == "__main__":
	sys.exit(main())

# EOF
