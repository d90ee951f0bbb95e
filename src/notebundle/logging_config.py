"""Logging configuration for notebundle."""

import sys

from loguru import logger

_QUIET_FORMAT = "{level.icon} {message}"
_VERBOSE_FORMAT = "{time:HH:mm:ss.SSS} [{level.name:.1}] {name}: {message}"


def configure_logging(*, verbose: bool = False) -> None:
    """Send notebundle's log records to stderr.

    Normal runs show info and above as short messages. Verbose runs add the
    debug trail of package reads and writes, with time and module.
    """
    logger.remove()
    if verbose:
        logger.add(sys.stderr, level="DEBUG", format=_VERBOSE_FORMAT, filter="notebundle")
    else:
        logger.add(sys.stderr, level="INFO", format=_QUIET_FORMAT, filter="notebundle")
