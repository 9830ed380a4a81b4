from os import getenv
from .utils.io import DEFAULT_ENCODING  # NOQA: F401

# Upper bound (in bytes) for a connection buffer that hasn't yielded a
# complete message yet. Zero disables the bound.
MAX_SIZE: int = int(getenv("SIPFRAME_MAX_SIZE", 2_000_000))

# Name of the minimum `LogLevel` that gets written out
LOG_LEVEL: str = getenv("SIPFRAME_LOG_LEVEL", "Warning")

# EOF
