"""Centralized logging configuration for the wallpanel setup tool.

Console output carries no timestamps (the terminal or journald adds context);
the optional log file keeps a timestamped trail of every decision, which is
the only record left behind when the progress gauge owns the terminal.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

DEFAULT_LOG_FILE = Path("/var/log/wallpanel-setup.log")


def setup_logging(
    verbose: bool = False,
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> Optional[Path]:
    """Set up logging configuration for the application.

    Args:
        verbose: If True, force DEBUG level (overrides other settings)
        log_level: Optional log level override (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path of a persistent log file (INFO and above)

    Returns:
        The log file actually in use, or None if only the console is logged to
    """
    # Determine log level
    if verbose:
        level = logging.DEBUG
    elif log_level:
        level = getattr(logging, log_level.upper(), logging.WARNING)
    else:
        # Read from environment variable, default to WARNING
        env_level = os.environ.get("LOG_LEVEL", "WARNING").upper()
        level = getattr(logging, env_level, logging.WARNING)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter("%(name)s - %(levelname)s - %(message)s"))
    handlers: list[logging.Handler] = [console]

    used_file = None
    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
        except OSError:
            # Read-only /var/log on some images; console logging still works
            file_handler = None
        if file_handler is not None:
            file_handler.setLevel(min(level, logging.INFO))
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s %(levelname)s %(name)s: %(message)s",
                    datefmt="%Y-%m-%dT%H:%M:%S%z",
                )
            )
            handlers.append(file_handler)
            used_file = log_file

    logging.basicConfig(
        level=min(h.level for h in handlers),
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    return used_file


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
