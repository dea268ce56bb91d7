from __future__ import annotations

import logging

from rich.logging import RichHandler

_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
}


def configure_logging(verbosity: int = 0) -> None:
    """Install a rich console handler on the root logger.

    ``verbosity`` is the number of ``-v`` flags given on the command line:
    none shows warnings, one shows info, two or more shows debug output.
    """
    level = _LEVELS.get(verbosity, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=verbosity >= 2)],
        force=True,
    )
