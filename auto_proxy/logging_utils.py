from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

DEFAULT_LOG_PATH = "auto-proxy.log"

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

# Handlers we attached to the root logger, plus the file actually written.
_installed: List[logging.Handler] = []
_active_path: Optional[str] = None


def _open_run_log(path: str) -> logging.FileHandler:
    # Mode "w": each provisioning run starts with a fresh log.
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="w", encoding="utf-8")


def configure_logging(log_path: str = DEFAULT_LOG_PATH, *, verbose: bool = False) -> str:
    """Send the run log to `log_path` and mirror it on stdout.

    The file always records DEBUG, which includes the full stdout/stderr of
    every command; the console shows INFO unless `verbose`. An unwritable
    `log_path` falls back to DEFAULT_LOG_PATH in the working directory.

    Returns the path being written. Calling it again is a no-op until
    reset_logging().
    """

    global _active_path
    if _installed:
        return _active_path or log_path

    try:
        file_handler = _open_run_log(log_path)
        _active_path = log_path
    except OSError as e:
        _active_path = str(Path.cwd() / DEFAULT_LOG_PATH)
        file_handler = _open_run_log(_active_path)
        print(f"Cannot write log to {log_path} ({e}); using {_active_path}", file=sys.stderr)
    file_handler.setLevel(logging.DEBUG)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.DEBUG if verbose else logging.INFO)

    fmt = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in (file_handler, console):
        h.setFormatter(fmt)
        root.addHandler(h)
        _installed.append(h)

    logging.getLogger(__name__).info("Logging to %s", _active_path)
    return _active_path


def reset_logging() -> None:
    """Detach and close the handlers installed by configure_logging()."""

    global _active_path
    root = logging.getLogger()
    while _installed:
        h = _installed.pop()
        root.removeHandler(h)
        h.close()
    _active_path = None
