"""
Logging for the apkforge CLI.

Library modules only call ``logging.getLogger(__name__)``; the CLI calls
:func:`setup_logging` once. At WARNING the console shows bare messages,
INFO adds one timestamped line per pipeline step, and DEBUG adds the
tool argv with source locations.

Console level: ``--debug``/``--verbose``/``--quiet``, then
``APKFORGE_LOG_LEVEL``, then WARNING. A build log can be written in
addition via ``APKFORGE_LOG_FILE`` at ``APKFORGE_LOG_FILE_LEVEL``.
"""

from __future__ import annotations

import logging
import os
import sys

LOG_LEVEL_ENV = "APKFORGE_LOG_LEVEL"
LOG_FILE_ENV = "APKFORGE_LOG_FILE"
LOG_FILE_LEVEL_ENV = "APKFORGE_LOG_FILE_LEVEL"

_STEP_FORMAT = "%(asctime)s [%(name)s] %(message)s"
_DETAIL_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s"


def resolve_level(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the console level from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(LOG_LEVEL_ENV, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console handler, and a file handler when *log_file* is set."""
    console_level = _parse_level(level)
    if console_level <= logging.DEBUG:
        console_format = logging.Formatter(_DETAIL_FORMAT, datefmt="%H:%M:%S")
    elif console_level <= logging.INFO:
        console_format = logging.Formatter(_STEP_FORMAT, datefmt="%H:%M:%S")
    else:
        console_format = logging.Formatter("%(message)s")

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(console_format)
    handlers: list[logging.Handler] = [console]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(_parse_level(log_file_level or level))
        file_handler.setFormatter(logging.Formatter(_DETAIL_FORMAT))
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers[:] = handlers
    root.setLevel(min(h.level for h in handlers))


def _parse_level(name: str | None) -> int:
    """Numeric level for *name*; unknown or empty names mean WARNING."""
    if not name:
        return logging.WARNING
    return logging.getLevelNamesMapping().get(name.upper(), logging.WARNING)
