"""
Logging setup for laptop-setup.

main.py configures the root logger once; modules only ever ask for
``logging.getLogger(__name__)``.

Console level, highest priority first:
    --debug  >  --verbose  >  --quiet  >  LAPTOP_SETUP_LOG_LEVEL  >  WARNING

Optional file output via LAPTOP_SETUP_LOG_FILE / LAPTOP_SETUP_LOG_FILE_LEVEL.

User-facing progress is printed with click; logging carries the
diagnostics.  Secret values (agent tokens, access keys) registered
with ``setup_logging(secrets=...)`` are masked in every record, on
the console and in the log file alike.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterable

ENV_LOG_LEVEL = "LAPTOP_SETUP_LOG_LEVEL"
ENV_LOG_FILE = "LAPTOP_SETUP_LOG_FILE"
ENV_LOG_FILE_LEVEL = "LAPTOP_SETUP_LOG_FILE_LEVEL"

# Console layout per threshold: (format, datefmt).  Anything above INFO
# prints the bare message, as user-facing output comes from click.
_CONSOLE_FORMATS = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s %(name)s: %(message)s", "%H:%M:%S"),
}
_CONSOLE_DEFAULT = ("%(levelname)s: %(message)s", None)

_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s:%(lineno)d  %(message)s"
_FILE_DATEFMT = "%Y-%m-%dT%H:%M:%S"

_MASK = "***"


class SecretMaskingFilter(logging.Filter):
    """Replace known secret values in log messages with ``***``."""

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        # Longest first so a secret containing another is masked whole
        self._secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self._secrets:
            masked = masked.replace(secret, _MASK)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> str:
    """Pick the console level from CLI flags, falling back to the env var."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LOG_LEVEL, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    secrets: Iterable[str] = (),
) -> None:
    """Configure Python logging for the entire process.

    Replaces any handlers already on the root logger, so calling it
    twice does not duplicate output.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.  Defaults to
            ``$LAPTOP_SETUP_LOG_FILE`` when set.
        log_file_level: Optional separate level for the log file.
            Defaults to ``$LAPTOP_SETUP_LOG_FILE_LEVEL``, then ``level``.
        secrets: Values that must never appear in log output.
    """
    masking = SecretMaskingFilter(secrets)
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level, masking)]

    log_file = log_file or os.environ.get(ENV_LOG_FILE) or None
    if log_file:
        file_level_name = log_file_level or os.environ.get(ENV_LOG_FILE_LEVEL)
        file_level = _parse_level(file_level_name) if file_level_name else console_level
        handlers.append(_file_handler(log_file, file_level, masking))

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    for handler in handlers:
        root.addHandler(handler)
    # root must let through whatever the most verbose handler wants
    root.setLevel(min(h.level for h in handlers))

    logging.raiseExceptions = False


def _console_handler(level: int, masking: logging.Filter) -> logging.Handler:
    fmt, datefmt = _CONSOLE_DEFAULT
    for threshold in sorted(_CONSOLE_FORMATS):
        if level <= threshold:
            fmt, datefmt = _CONSOLE_FORMATS[threshold]
            break
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    handler.addFilter(masking)
    return handler


def _file_handler(path: str, level: int, masking: logging.Filter) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    handler.addFilter(masking)
    return handler


def _parse_level(name: str | None) -> int:
    """Map a level name to its number; unknown or empty names mean WARNING."""
    value = logging.getLevelName(name.upper()) if name else None
    return value if isinstance(value, int) else logging.WARNING
