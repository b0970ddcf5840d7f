from __future__ import annotations

import logging
from typing import Protocol

DIAGNOSTICS_LOGGER_NAME = "autowire"


class DiagnosticSink(Protocol):
    """Receive errors that autowire reports instead of raising.

    Ambiguous instance lookups, invalid convenience registrations, listener
    failures, teardown failures, and unhandled wiring failures end up here.
    """

    def __call__(self, level: int, message: str, error: BaseException | None = None) -> None: ...


class LoggingDiagnosticSink:
    """Forward diagnostics to a stdlib ``logging`` logger.

    Records at ``ERROR`` or above carry the reported exception as ``exc_info``
    so that handlers render the traceback and chained causes.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(DIAGNOSTICS_LOGGER_NAME)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def __call__(self, level: int, message: str, error: BaseException | None = None) -> None:
        exc_info = error if error is not None and level >= logging.ERROR else None
        self._logger.log(level, message, exc_info=exc_info)

    def __repr__(self) -> str:
        return f"LoggingDiagnosticSink({self._logger.name!r})"


__all__ = ["DIAGNOSTICS_LOGGER_NAME", "DiagnosticSink", "LoggingDiagnosticSink"]
