from __future__ import annotations

from collections.abc import Sequence
from typing import Any


def describe_dependency(dependency: Any) -> str:
    """Return a short human-readable name for a dependency key."""
    if isinstance(dependency, type):
        return dependency.__qualname__
    return repr(dependency)


def _describe_chain(chain: Sequence[Any]) -> str:
    return " -> ".join(describe_dependency(dependency) for dependency in chain)


class AutoWireError(Exception):
    """Represent a base class for all autowire-specific failures.

    Catch this type when you want to handle any autowire error path without
    matching each concrete exception class individually.
    """


class AutoWireInvalidRecipeError(AutoWireError):
    """Signal a registration that cannot be turned into a construction recipe.

    Returned (and reported to the diagnostic sink) by ``Wirer.add_concrete``
    when the candidate is not an instantiable class or its constructor has
    required parameters without usable type annotations. Raised by
    ``Wirer.add_factory`` when the factory or release function is not callable.
    """


class AutoWireWiringStateError(AutoWireError):
    """Signal a ``wire`` call on a session that is not idle.

    A session wires at most once. Call ``Wirer.cleanup`` to return it to the
    idle state before wiring again.
    """


class AutoWireResolutionError(AutoWireError):
    """Base class for failures raised while resolving a dependency.

    Attributes:
        dependency: The dependency key the failure is about.
        chain: Dependency keys on the resolution path when the failure happened,
            outermost first.

    """

    def __init__(self, message: str, *, dependency: Any, chain: Sequence[Any] = ()) -> None:
        self.dependency = dependency
        self.chain = tuple(chain)
        if self.chain:
            message = f"{message} (resolution path: {_describe_chain(self.chain)})"
        super().__init__(message)


class AutoWireUnknownDependencyError(AutoWireResolutionError):
    """Signal that no registered recipe satisfies a requested dependency.

    Typical fixes include registering the dependency explicitly with
    ``add_concrete``/``add_factory``, supplying an instance with
    ``add_instance``, or, for a class requested directly through
    ``Wirer.resolve``, enabling autoregistration.
    """

    def __init__(self, dependency: Any, *, chain: Sequence[Any] = ()) -> None:
        super().__init__(
            f"Unknown dependency {describe_dependency(dependency)}: no registered recipe satisfies it.",
            dependency=dependency,
            chain=chain,
        )


class AutoWireAmbiguousRecipeError(AutoWireResolutionError):
    """Signal that more than one registered recipe satisfies a dependency.

    Ambiguity is never resolved by registration order. Request a more specific
    key or drop one of the competing registrations.
    """

    def __init__(
        self,
        dependency: Any,
        candidates: Sequence[Any],
        *,
        chain: Sequence[Any] = (),
    ) -> None:
        self.candidates = tuple(candidates)
        names = ", ".join(describe_dependency(candidate) for candidate in self.candidates)
        super().__init__(
            f"Ambiguous recipe for {describe_dependency(dependency)}: satisfied by {names}.",
            dependency=dependency,
            chain=chain,
        )


class AutoWireAmbiguousInstanceError(AutoWireResolutionError):
    """Signal that more than one stored instance satisfies a dependency.

    This error is reported to the diagnostic sink rather than raised: the
    instance lookup behaves as if nothing was found.
    """

    def __init__(self, dependency: Any, instances: Sequence[Any]) -> None:
        self.instances = tuple(instances)
        types = ", ".join(type(instance).__qualname__ for instance in self.instances)
        super().__init__(
            f"Found multiple instances satisfying {describe_dependency(dependency)} ({types}).",
            dependency=dependency,
        )


class AutoWireCircularDependencyError(AutoWireResolutionError):
    """Signal that a dependency requires itself within one resolution branch.

    Attributes:
        parent: The dependency that requested ``dependency`` the second time,
            or ``None`` for a top-level request.

    """

    def __init__(
        self,
        dependency: Any,
        parent: Any,
        *,
        chain: Sequence[Any] = (),
        message: str | None = None,
    ) -> None:
        self.parent = parent
        if message is None:
            message = (
                f"Circular dependency detected: {describe_dependency(dependency)} "
                f"requested again by {describe_dependency(parent)}."
            )
        super().__init__(message, dependency=dependency, chain=chain)


class AutoWireResolutionDepthError(AutoWireCircularDependencyError):
    """Signal that a resolution branch grew deeper than the configured limit.

    Runaway recursion is treated like a cycle. Raise
    ``AutoWireSettings.max_resolution_depth`` for legitimately deep graphs.
    """

    def __init__(self, dependency: Any, parent: Any, *, limit: int, chain: Sequence[Any] = ()) -> None:
        self.limit = limit
        super().__init__(
            dependency,
            parent,
            chain=chain,
            message=f"Resolution of {describe_dependency(dependency)} exceeded the maximum depth of {limit}.",
        )


class AutoWireConstructionFailedError(AutoWireResolutionError):
    """Signal that a recipe factory raised while building a dependency.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, dependency: Any, error: BaseException, *, chain: Sequence[Any] = ()) -> None:
        super().__init__(
            f"Construction of {describe_dependency(dependency)} failed: {error!r}",
            dependency=dependency,
            chain=chain,
        )


class AutoWireListenerFailedError(AutoWireError):
    """Signal that an instantiation listener callback raised.

    Listener failures are reported to the diagnostic sink and never abort
    listener dispatch or wiring.
    """

    def __init__(self, target: Any, instance: Any, error: BaseException) -> None:
        self.target = target
        self.instance = instance
        super().__init__(
            f"Instantiation listener for {describe_dependency(target)} failed on "
            f"{type(instance).__qualname__}: {error!r}",
        )


class AutoWireCleanupFailedError(AutoWireError):
    """Signal that releasing a single stored instance raised during teardown."""

    def __init__(self, instance: Any, error: BaseException) -> None:
        self.instance = instance
        super().__init__(f"Cleanup of {type(instance).__qualname__} failed: {error!r}")


class AutoWireCleanupError(AutoWireError):
    """Aggregate every failure collected during one teardown pass.

    Attributes:
        errors: All collected ``AutoWireCleanupFailedError`` values in teardown
            order.
        primary: The first collected failure; also set as ``__cause__``.

    """

    def __init__(self, errors: Sequence[AutoWireCleanupFailedError]) -> None:
        self.errors = tuple(errors)
        self.primary = self.errors[0]
        message = f"Teardown finished with {len(self.errors)} failure(s); first: {self.primary}"
        super().__init__(message)
        self.__cause__ = self.primary
        for auxiliary in self.errors[1:]:
            self.add_note(f"also failed: {auxiliary}")


__all__ = [
    "AutoWireAmbiguousInstanceError",
    "AutoWireAmbiguousRecipeError",
    "AutoWireCircularDependencyError",
    "AutoWireCleanupError",
    "AutoWireCleanupFailedError",
    "AutoWireConstructionFailedError",
    "AutoWireError",
    "AutoWireInvalidRecipeError",
    "AutoWireListenerFailedError",
    "AutoWireResolutionDepthError",
    "AutoWireResolutionError",
    "AutoWireUnknownDependencyError",
    "AutoWireWiringStateError",
    "describe_dependency",
]
