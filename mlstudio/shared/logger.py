"""
Logging setup for the ML Studio client.

Library modules only ever call get_logger(); the CLI calls setup_logging()
once with the level from Settings (``MLSTUDIO_LOG_LEVEL`` or ``--log-level``).
Log lines go to stderr so they never mix with command output on stdout.

Usage:
    from mlstudio.shared.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Backend connected: %s", base_url)
    logger.warning("Failed to save session: %s", err)
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers kept at WARNING regardless of the client level
QUIET_LOGGERS = ("httpx", "httpcore")

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Send client logs to stderr at the given level.

    Only the first call takes effect.
    """
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
