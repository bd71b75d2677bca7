"""Centralized logging configuration for the OLAP schema advisor. 📝"""

import logging
import sys

from rich.logging import RichHandler

RULES_LOGGER = "olapadvisor.rules"


def setup_logging(level: int | str = logging.INFO, trace_rules: bool = False) -> None:
    """Configure logging with a rich handler for advisor runs.

    Rule modules log every decision at debug level. Those lines are noisy on
    wide tables, so they stay muted unless ``trace_rules`` is set.

    Args:
        level: Logging level for the advisor (default: logging.INFO).
        trace_rules: Emit per-rule debug decisions from ``olapadvisor.rules``.
    """
    if "pytest" in sys.modules:
        # Plain formatter under pytest so caplog output has no ANSI codes
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)-8s %(name)s %(message)s",
            datefmt="%H:%M:%S",
            force=True,
        )
    else:
        logging.basicConfig(
            level=level,
            format="%(message)s",
            handlers=[RichHandler(rich_tracebacks=True, markup=False, show_path=False)],
            force=True,
        )

    logging.getLogger(RULES_LOGGER).setLevel(
        logging.DEBUG if trace_rules else logging.INFO
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given module name.

    Args:
        name: Name of the module (typically __name__).

    Returns:
        logging.Logger: Logger instance.
    """
    return logging.getLogger(name)
