from .resolver import ResolvedFile, resolve  # NOQA: F401
from .responder import respond  # NOQA: F401
from .notfound import notFound  # NOQA: F401
from .sources import ContentSource, DiskSource, EmbeddedSource  # NOQA: F401

# EOF
