from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias

from autowire._internal.recipes import UserDependency
from autowire._internal.type_checks import is_instance_of

ListenerCallback: TypeAlias = Callable[[Any, Sequence[Any]], Any]
"""Callable receiving a new instance and its listener's resolved dependencies."""


@dataclass(frozen=True, slots=True)
class InstantiationListener:
    """Hook fired once for every new instance satisfying ``target``."""

    target: UserDependency
    callback: ListenerCallback
    dependencies: tuple[UserDependency, ...] = ()


class ListenerRegistry:
    """Keep instantiation listeners in registration order."""

    def __init__(self) -> None:
        self._listeners: list[InstantiationListener] = []

    def add(self, listener: InstantiationListener) -> None:
        self._listeners.append(listener)

    def matching(self, instance: object) -> Iterator[InstantiationListener]:
        """Yield listeners whose target the instance's own type satisfies.

        Args:
            instance: Newly built or externally supplied instance.

        """
        for listener in list(self._listeners):
            if is_instance_of(instance, listener.target):
                yield listener

    def __len__(self) -> int:
        return len(self._listeners)


__all__ = ["InstantiationListener", "ListenerCallback", "ListenerRegistry"]
