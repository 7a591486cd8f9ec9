"""Server configuration.

The allowed directories are validated and canonicalized exactly once, at
startup, into an immutable ``ServerConfig``. Nothing mutates it afterwards;
the sandbox receives it by injection.

Environment:
    SECURE_FS_MCP_LOG_LEVEL: Log level used when none is given explicitly
        (default: WARNING)
"""

import logging
import os
import sys
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from .models import AllowedRoots
from .sandbox import absolute_path, default_case_insensitive

LOG_LEVEL_ENV = "SECURE_FS_MCP_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Startup configuration is unusable."""


class ServerConfig(BaseModel):
    """Immutable process-wide configuration."""

    model_config = ConfigDict(frozen=True)

    allowed_roots: AllowedRoots
    log_level: str = DEFAULT_LOG_LEVEL


def resolve_log_level(level: Optional[str] = None) -> str:
    """Pick the log level from the argument or the environment.

    Unknown level names fall back to the default with a warning.
    """
    raw = level if level is not None else os.environ.get(LOG_LEVEL_ENV, "")
    raw = raw.strip().upper()
    if not raw:
        return DEFAULT_LOG_LEVEL
    if not isinstance(logging.getLevelName(raw), int):
        logger.warning("Unknown log level %r. Falling back to %s.", raw, DEFAULT_LOG_LEVEL)
        return DEFAULT_LOG_LEVEL
    return raw


def load_allowed_roots(
    directories: Sequence[str], case_insensitive: Optional[bool] = None
) -> AllowedRoots:
    """Validate and canonicalize the allowed directories.

    Args:
        directories: Directories as given on the command line
        case_insensitive: Path comparison policy; None picks the platform
            default (case-insensitive on Windows and macOS)

    Returns:
        AllowedRoots with de-duplicated real paths

    Raises:
        ConfigError: No directories, or one is missing or not a directory
    """
    if not directories:
        raise ConfigError("At least one allowed directory is required")

    canonical = []
    aliases = []
    for directory in directories:
        absolute = absolute_path(directory)
        if not os.path.exists(absolute):
            raise ConfigError(f"Error accessing directory {directory}: does not exist")
        if not os.path.isdir(absolute):
            raise ConfigError(f"Error: {directory} is not a directory")

        real = os.path.realpath(absolute)
        if real not in canonical:
            canonical.append(real)
        if absolute != real and absolute not in aliases:
            aliases.append(absolute)

    if case_insensitive is None:
        case_insensitive = default_case_insensitive()

    return AllowedRoots(
        directories=tuple(canonical),
        aliases=tuple(aliases),
        case_insensitive=case_insensitive,
    )


def load_config(
    directories: Sequence[str],
    case_insensitive: Optional[bool] = None,
    log_level: Optional[str] = None,
) -> ServerConfig:
    """Build the server configuration from command-line values."""
    return ServerConfig(
        allowed_roots=load_allowed_roots(directories, case_insensitive),
        log_level=resolve_log_level(log_level),
    )


def configure_logging(level: str) -> None:
    """Send log records to stderr; stdout carries the MCP stdio transport."""
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
