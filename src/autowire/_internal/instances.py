from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from autowire._internal.recipes import Recipe, UserDependency
from autowire._internal.type_checks import is_instance_of, is_runtime_class
from autowire.diagnostics import DiagnosticSink
from autowire.exceptions import AutoWireAmbiguousInstanceError


@dataclass(frozen=True, slots=True)
class InstanceRecord:
    """A stored singleton and the recipe that produced it.

    ``produced_by`` is ``None`` for instances supplied by the caller.
    """

    value: Any
    produced_by: Recipe | None = None

    def matches(self, contract: UserDependency) -> bool:
        """Return whether this record satisfies ``contract``.

        Class contracts are matched against the instance's own type, never its
        registration key. Other tokens match the key of the producing recipe.

        Args:
            contract: Requested dependency key.

        """
        if is_runtime_class(contract):
            return is_instance_of(self.value, contract)
        return self.produced_by is not None and self.produced_by.provides == contract


class InstanceStore:
    """Ordered, append-only record of every live singleton.

    Records are only removed by draining, from the most recently appended to
    the earliest.
    """

    def __init__(self, diagnostic_sink: DiagnosticSink) -> None:
        self._records: list[InstanceRecord] = []
        self._diagnostic_sink = diagnostic_sink

    def append(self, record: InstanceRecord) -> None:
        self._records.append(record)

    def find_instance(self, contract: UserDependency) -> Any | None:
        """Return the unique stored instance satisfying ``contract``.

        Returns ``None`` when nothing matches. When several instances match, an
        ``AutoWireAmbiguousInstanceError`` is reported to the diagnostic sink
        and ``None`` is returned as well.

        Args:
            contract: Requested dependency key.

        """
        matches = [record.value for record in self._records if record.matches(contract)]
        if not matches:
            return None
        if len(matches) > 1:
            error = AutoWireAmbiguousInstanceError(contract, matches)
            self._diagnostic_sink(logging.ERROR, str(error), error)
            return None
        return matches[0]

    def snapshot(self) -> list[InstanceRecord]:
        """Return the stored records in construction order."""
        return list(self._records)

    def drain(self) -> Iterator[InstanceRecord]:
        """Remove and yield records from the most recent to the earliest."""
        while self._records:
            yield self._records.pop()

    def count(self) -> int:
        return len(self._records)

    def __len__(self) -> int:
        return len(self._records)


__all__ = ["InstanceRecord", "InstanceStore"]
