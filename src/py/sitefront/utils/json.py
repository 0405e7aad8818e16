import json as basejson
from typing import Any

from .primitives import asPrimitive


def json(value: Any) -> bytes:
	"""Serializes the given value as UTF-8 encoded JSON."""
	return basejson.dumps(asPrimitive(value)).encode("utf8")


# EOF
