from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Initializable(Protocol):
    """Optional capability of a wired instance that runs after wiring.

    ``Wirer.wire`` calls ``initialize`` on every stored instance exposing it,
    in construction order, once all resolution and listener dispatch is done.
    A dependency is therefore always initialized before its dependents.
    """

    def initialize(self) -> None: ...


@runtime_checkable
class Cleanable(Protocol):
    """Optional capability of a wired instance that releases its resources.

    ``Wirer.cleanup`` calls ``cleanup`` in strict reverse construction order,
    so dependents are released before the instances they depend on.
    """

    def cleanup(self) -> None: ...


__all__ = ["Cleanable", "Initializable"]
