from .config import SiteConfig, AssetMode, load  # NOQA: F401
from .errors import ConfigurationError, SourceReadError  # NOQA: F401
from .site import Site  # NOQA: F401
from .server import run  # NOQA: F401


# EOF
