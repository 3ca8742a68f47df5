"""Logging setup helper with an optional rotating file handler."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, List

from core.exceptions import ConfigError

_VERBOSITY_STEPS = [logging.WARNING, logging.INFO, logging.DEBUG]


def setup_logging(cfg: Dict[str, Any], verbosity: int = 0) -> logging.Logger:
    """Configure the root logger with stderr and optional rotating-file outputs.

    Parameters
    ----------
    cfg : dict
        The ``logging`` section of ``probe.yaml``.
    verbosity : int
        Number of ``-v`` flags given on the command line.  Each one lowers
        the configured level by one step, down to DEBUG.

    Returns
    -------
    logging.Logger
        The configured root logger.

    Raises
    ------
    ConfigError
        On a malformed rotation setting, a bad format string, or a log
        file that cannot be opened.
    """
    level_name = str(cfg.get("level", "WARNING")).upper()
    log_file = cfg.get("file")
    fmt = cfg.get("format", "%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    rotate = cfg.get("rotate") or {}
    try:
        max_bytes = int(rotate.get("max_bytes", 1_048_576))
        backup_count = int(rotate.get("backup_count", 3))
        formatter = logging.Formatter(fmt)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid logging setting: {exc}") from exc

    level = getattr(logging, level_name, logging.WARNING)
    if not isinstance(level, int):
        level = logging.WARNING
    if verbosity > 0:
        steps = [s for s in _VERBOSITY_STEPS if s < level] or [logging.DEBUG]
        level = steps[min(verbosity, len(steps)) - 1]

    # stdout carries the plugin status line only
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    handlers: List[logging.Handler] = [console_handler]

    if log_file:
        try:
            file_handler = RotatingFileHandler(
                str(log_file), maxBytes=max_bytes, backupCount=backup_count
            )
        except OSError as exc:
            raise ConfigError(f"cannot open log file {log_file}: {exc}") from exc
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = handlers

    return root
