from __future__ import annotations

import inspect
import types
from typing import Any, TypeGuard


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def is_protocol_class(candidate: object) -> bool:
    """Return true when candidate is a ``typing.Protocol`` subclass."""
    return is_runtime_class(candidate) and bool(getattr(candidate, "_is_protocol", False))


def is_concrete_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate can be instantiated directly.

    Abstract base classes and protocols are contracts only; they never qualify.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return (
        is_runtime_class(candidate)
        and not inspect.isabstract(candidate)
        and not is_protocol_class(candidate)
    )


def satisfies(key: Any, contract: Any) -> bool:
    """Return whether a registered key can be used where ``contract`` is requested.

    Identical keys always satisfy each other. Two classes satisfy when ``key`` is
    a subclass of ``contract``; runtime-checkable protocols are checked
    structurally. Non-class tokens only satisfy themselves.

    Args:
        key: Registered dependency key.
        contract: Requested dependency key.

    """
    if key == contract:
        return True
    if not (is_runtime_class(key) and is_runtime_class(contract)):
        return False
    try:
        return issubclass(key, contract)
    except TypeError:
        # Non runtime-checkable protocols refuse issubclass checks.
        return contract in key.__mro__


def is_instance_of(value: object, contract: Any) -> bool:
    """Return whether ``value`` itself satisfies a class contract.

    Args:
        value: Instance to check.
        contract: Requested dependency key.

    """
    if not is_runtime_class(contract):
        return False
    try:
        return isinstance(value, contract)
    except TypeError:
        return contract in type(value).__mro__


__all__ = [
    "is_concrete_class",
    "is_instance_of",
    "is_protocol_class",
    "is_runtime_class",
    "satisfies",
]
