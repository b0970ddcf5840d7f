from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from autowire._internal.instances import InstanceStore
from autowire.capabilities import Cleanable
from autowire.diagnostics import DiagnosticSink
from autowire.exceptions import AutoWireCleanupError, AutoWireCleanupFailedError

logger = logging.getLogger(__name__)


class TeardownSequencer:
    """Release stored instances in strict reverse construction order.

    Each record gets its ``cleanup()`` capability called first, then the
    release function of the recipe that built it. Failures never interrupt
    the pass; they are aggregated into one ``AutoWireCleanupError`` that is
    reported to the diagnostic sink once the store is empty.
    """

    def __init__(self, store: InstanceStore, diagnostic_sink: DiagnosticSink) -> None:
        self._store = store
        self._diagnostic_sink = diagnostic_sink

    def run(self) -> AutoWireCleanupError | None:
        """Drain the store and return the aggregated failure, if any."""
        failures: list[AutoWireCleanupFailedError] = []

        def attempt(instance: Any, step: Callable[[], Any]) -> None:
            try:
                step()
            except Exception as error:
                failure = AutoWireCleanupFailedError(instance, error)
                failure.__cause__ = error
                failures.append(failure)

        for record in self._store.drain():
            instance = record.value
            logger.debug("Tearing down %s", type(instance).__qualname__)
            if isinstance(instance, Cleanable):
                attempt(instance, instance.cleanup)
            recipe = record.produced_by
            if recipe is not None and recipe.release is not None:
                release = recipe.release
                attempt(instance, lambda: release(instance))

        if not failures:
            return None

        aggregate = AutoWireCleanupError(failures)
        self._diagnostic_sink(logging.ERROR, str(aggregate), aggregate)
        return aggregate


__all__ = ["TeardownSequencer"]
