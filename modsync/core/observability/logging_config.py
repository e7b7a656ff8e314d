"""
Logging configuration — set up once by the CLI entrypoint.

Modules log through ``logging.getLogger(__name__)`` and inherit this
setup. Console level precedence:

    --debug / --verbose / --quiet  >  MODSYNC_LOG_LEVEL  >  WARNING

MODSYNC_LOG_FILE adds a file handler (level MODSYNC_LOG_FILE_LEVEL, else
the console level). Every record carries the id of the sync run that
produced it, so one run can be pulled out of a shared log file.
"""

from __future__ import annotations

import logging
import sys

_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s [%(operation)s] %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s %(message)s", "%H:%M:%S"),
}
_CONSOLE_DEFAULT = ("%(levelname)s: %(message)s", None)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s [%(operation)s] %(name)s — %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Id of the sync run in progress; "-" outside of one
_operation_id: str | None = None


def set_operation_id(operation_id: str | None) -> None:
    """Tag subsequent log records with ``operation_id`` (None clears it)."""
    global _operation_id
    _operation_id = operation_id


def get_operation_id() -> str | None:
    return _operation_id


class OperationFilter(logging.Filter):
    """Adds ``record.operation`` for the format strings above."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.operation = _operation_id or "-"
        return True


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root logger's handlers with modsync's console (and file) handler.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to append full-detail records to.
        log_file_level: Level for the file handler; defaults to ``level``.
    """
    console_level = _parse_level(level)
    fmt, datefmt = _console_format(console_level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    console.addFilter(OperationFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        fh.addFilter(OperationFilter())
        root.addHandler(fh)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)


def resolve_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env_level: str | None = None,
) -> str:
    """Pick the console level from CLI flags, then the env var."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return env_level or "WARNING"


def _console_format(level: int) -> tuple[str, str | None]:
    for threshold in sorted(_CONSOLE_FORMATS):
        if level <= threshold:
            return _CONSOLE_FORMATS[threshold]
    return _CONSOLE_DEFAULT


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    numeric = logging.getLevelName((level or "").upper())
    return numeric if isinstance(numeric, int) else logging.WARNING
