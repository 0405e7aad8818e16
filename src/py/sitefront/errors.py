class ConfigurationError(Exception):
	"""Invalid configuration detected at boot, the server can't start."""


class SourceReadError(Exception):
	"""Raised when a file that was found could not be opened or read."""

	def __init__(self, path: str, reason: str):
		super().__init__(f"Could not read '{path}': {reason}")
		self.path: str = path
		self.reason: str = reason


# EOF
