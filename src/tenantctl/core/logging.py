"""Logging for tenantctl.

All log records go to stderr through a handler on the ``tenantctl`` logger,
so stdout carries only command data. Loggers are wrapped in
``StructuredLogger`` to attach ``key=value`` fields such as the deployment or
pipeline being processed.
"""

import logging
import sys
from enum import Enum
from typing import Any, MutableMapping

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "tenantctl"
QUIET_LIBRARIES = ("boto3", "botocore", "urllib3")

# Keyword arguments the logging module itself understands.
_LOGGING_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})


class LogLevel(str, Enum):
    """Log level enumeration."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def numeric(self) -> int:
        return getattr(logging, self.name)


def resolve_level(verbose: int, quiet: bool, default: LogLevel) -> LogLevel:
    """Pick the log level from the -v count and -q flag.

    -vv wins over -v, and either wins over -q.
    """
    if verbose >= 2:
        return LogLevel.DEBUG
    if verbose == 1:
        return LogLevel.INFO
    if quiet:
        return LogLevel.ERROR
    return default


class _StderrHandler(logging.StreamHandler):
    """Plain handler writing to whatever ``sys.stderr`` is at emit time."""

    def __init__(self) -> None:
        super().__init__(sys.stderr)

    @property
    def stream(self) -> Any:
        return sys.stderr

    @stream.setter
    def stream(self, value: Any) -> None:
        pass


def setup_logging(level: LogLevel = LogLevel.INFO, rich_output: bool = True) -> logging.Logger:
    """(Re)configure the package logger.

    Calling this again replaces the previous handler instead of adding one.

    Args:
        level: Threshold for tenantctl records
        rich_output: Render with Rich, or as plain timestamped lines

    Returns:
        The package logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)

    handler: logging.Handler
    if rich_output:
        handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    else:
        handler = _StderrHandler()
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )

    package_logger.addHandler(handler)
    package_logger.setLevel(level.numeric)

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Logger under the tenantctl namespace; module names are used as-is."""
    if name == PACKAGE_LOGGER or name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter that appends fields to the message as ``[k=v ...]``.

    Fields come from ``bind()`` and from keyword arguments of each call:

        log = StructuredLogger(__name__).bind(deployment="t1")
        log.info("Starting execution", pipeline="silo-t1-pipeline")
        # Starting execution [deployment=t1 pipeline=silo-t1-pipeline]
    """

    def __init__(self, name: str, fields: dict[str, Any] | None = None):
        super().__init__(get_logger(name), dict(fields or {}))

    def bind(self, **fields: Any) -> "StructuredLogger":
        """Return a logger carrying additional fields."""
        return StructuredLogger(self.logger.name, {**self.extra, **fields})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        fields = dict(self.extra)
        for key in [k for k in kwargs if k not in _LOGGING_KWARGS]:
            fields[key] = kwargs.pop(key)
        if fields:
            msg = f"{msg} [{' '.join(f'{k}={v}' for k, v in fields.items())}]"
        return msg, kwargs
