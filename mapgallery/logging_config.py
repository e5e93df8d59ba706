"""
logging_config.py – console logging for the gallery runner

All records go through a single RichHandler on the root logger; calling
:func:`configure` again replaces it.  The HTTP and GDAL layers underneath
the loaders are kept at WARNING so a normal run only shows gallery progress.
"""
import logging
from typing import Tuple

from rich.logging import RichHandler

LEVELS: Tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR")

# libraries that log every request / driver call at INFO or DEBUG
QUIET_LOGGERS: Tuple[str, ...] = ("urllib3", "pyogrio", "fiona")


def configure(level: str = "INFO") -> None:
    """Install the rich console handler at *level* (case-insensitive)."""
    level = str(level).upper()
    if level not in LEVELS:
        raise ValueError(f"Unknown log level {level!r}; expected one of {', '.join(LEVELS)}")

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_time=False, show_path=False)],
        force=True,
    )
    logging.getLogger("mapgallery").setLevel(level)

    # debugging the gallery should not turn on third-party chatter
    quiet = max(logging.WARNING, logging.getLevelName(level))
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet)
