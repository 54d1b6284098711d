"""Logging setup for the ``live-visualizer`` command.

The library modules only create loggers; handlers are installed here, by the
CLI, so an instrumented host application keeps control of its own logging.
"""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

_MAX_LOG_BYTES = 2 * 1024 * 1024  # 2 MB
_LOG_BACKUPS = 3

_CONSOLE_FORMAT = "%(levelname)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Chatty per-connection loggers from the HTTP stack, muted unless --debug.
TRANSPORT_LOGGERS = ("urllib3", "requests")

# Marks handlers installed by this module so reconfiguring replaces them.
_OWNED_ATTR = "_live_visualizer_owned"


def parse_level(name: str) -> int:
    """Turn a level name such as ``"info"`` into its numeric value."""
    level = logging.getLevelName(str(name).strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def console_level_for(configured: int, *, verbose: bool = False, debug: bool = False) -> int:
    """Pick the console threshold for one CLI run.

    ``--debug`` shows everything. ``--verbose`` asks the client to report
    failed requests, so the threshold is lowered to at most INFO to keep those
    reports and the demo narration visible even under a quieter configured
    level.
    """
    if debug:
        return logging.DEBUG
    if verbose:
        return min(configured, logging.INFO)
    return configured


def configure_logging(level: int, *, log_path: Optional[Path] = None, debug: bool = False) -> None:
    """Install the console handler and, when ``log_path`` is set, a rotating file.

    Calling it again replaces the handlers installed by the previous call.
    """
    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _OWNED_ATTR, False)]:
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    _install(root, console, level)

    if log_path is not None:
        path = Path(log_path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(path, maxBytes=_MAX_LOG_BYTES, backupCount=_LOG_BACKUPS, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        _install(root, file_handler, level)

    root.setLevel(level)
    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if debug else logging.WARNING)


def _install(root: logging.Logger, handler: logging.Handler, level: int) -> None:
    setattr(handler, _OWNED_ATTR, True)
    handler.setLevel(level)
    root.addHandler(handler)
