"""Console output policy shared by the transform and formatting steps.

The XSLT and FO engines print a lot of progress chatter. Unless the user asked
for verbose logging, that chatter is routed to ``INFO`` so it stays hidden at
the default ``WARNING`` level.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager, redirect_stderr, redirect_stdout
import io
import logging


LOGGER_NAMESPACE = "docbook_reference"


def verbose_logging(logger_obj: logging.Logger | None = None) -> bool:
    """Return whether the user requested ``INFO`` or ``DEBUG`` output."""
    target = logger_obj or logging.getLogger(LOGGER_NAMESPACE)
    return target.getEffectiveLevel() <= logging.INFO


class LoggingStream(io.TextIOBase):
    """Text stream forwarding complete lines to a logger."""

    def __init__(self, logger_obj: logging.Logger, level: int = logging.INFO) -> None:
        super().__init__()
        self._logger = logger_obj
        self._level = level
        self._buffer = ""

    def writable(self) -> bool:
        return True

    def write(self, text: str) -> int:
        self._buffer += text
        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            self._emit(line)
        return len(text)

    def flush(self) -> None:
        if self._buffer:
            self._emit(self._buffer)
            self._buffer = ""

    def _emit(self, line: str) -> None:
        line = line.rstrip()
        if line:
            self._logger.log(self._level, "%s", line)


@contextmanager
def capture_console(
    logger_obj: logging.Logger,
    *,
    verbose: bool | None = None,
    level: int = logging.INFO,
) -> Iterator[None]:
    """Redirect stdout and stderr to ``logger_obj`` unless verbose output is enabled."""
    if verbose is None:
        verbose = verbose_logging(logger_obj)
    if verbose:
        yield
        return

    stream = LoggingStream(logger_obj, level)
    try:
        with redirect_stdout(stream), redirect_stderr(stream):
            yield
    finally:
        stream.flush()


__all__ = ["LOGGER_NAMESPACE", "LoggingStream", "capture_console", "verbose_logging"]
