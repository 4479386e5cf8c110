"""Logging setup for dayplanner with allocation-oriented verbosity levels."""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

# Placements sit between INFO and WARNING, slot checks between DEBUG and INFO
PLACEMENTS_LEVEL = 25
CHECKS_LEVEL = 15

logging.addLevelName(PLACEMENTS_LEVEL, "PLACEMENTS")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0  # Only errors
VERBOSITY_PLACEMENTS = 1  # One line per task placement
VERBOSITY_CHECKS = 2  # Every day/hour the allocator tries
VERBOSITY_DEBUG = 3  # Grid construction and scoring internals

_LEVEL_BY_VERBOSITY = {
    VERBOSITY_SILENT: logging.ERROR,
    VERBOSITY_PLACEMENTS: PLACEMENTS_LEVEL,
    VERBOSITY_CHECKS: CHECKS_LEVEL,
    VERBOSITY_DEBUG: logging.DEBUG,
}


class PlannerLogger(logging.Logger):
    """Logger with semantic methods for the allocator's verbosity levels.

    - placements(): verbosity 1, where each task landed (or that it did not)
    - checks(): verbosity 2, candidate days and start hours being tried
    - debug(): verbosity 3, everything else
    """

    def placements(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a placement decision (verbosity level 1)."""
        if self.isEnabledFor(PLACEMENTS_LEVEL):
            self._log(PLACEMENTS_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a slot check (verbosity level 2)."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> PlannerLogger:
    """Return the shared dayplanner logger.

    Every module calls this at import time; setup_logger() may reconfigure the
    same instance later.
    """
    logging.setLoggerClass(PlannerLogger)
    logger = logging.getLogger("dayplanner")
    assert isinstance(logger, PlannerLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Configure the dayplanner logger for a verbosity level.

    Args:
        verbosity: 0=silent (errors only), 1=placements, 2=checks, 3=debug
        stream: Optional output stream (defaults to sys.stderr)
    """
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(_LEVEL_BY_VERBOSITY.get(verbosity, logging.ERROR))

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop handlers and return to silent mode (used between tests)."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.ERROR)


def checks_enabled() -> bool:
    """Return True if slot checks will be emitted (verbosity >= 2)."""
    return get_logger().isEnabledFor(CHECKS_LEVEL)


def debug_enabled() -> bool:
    """Return True if debug output will be emitted (verbosity >= 3)."""
    return get_logger().isEnabledFor(logging.DEBUG)
