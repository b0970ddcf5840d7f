from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from contextvars import ContextVar
from typing import Any

from autowire._internal.instances import InstanceRecord, InstanceStore
from autowire._internal.listeners import ListenerRegistry
from autowire._internal.recipes import Recipe, RecipeExtractor, RecipeRegistry, UserDependency
from autowire._internal.type_checks import is_concrete_class
from autowire.diagnostics import DiagnosticSink
from autowire.exceptions import (
    AutoWireCircularDependencyError,
    AutoWireConstructionFailedError,
    AutoWireError,
    AutoWireInvalidRecipeError,
    AutoWireListenerFailedError,
    AutoWireResolutionDepthError,
    AutoWireUnknownDependencyError,
    describe_dependency,
)

logger = logging.getLogger(__name__)

ResolutionStack = tuple[UserDependency, ...]

# Resolution tracking for threads and async tasks alike.
# Entries are (resolver id, dependency) pairs so that a session resolving from
# inside another session's factory keeps its own branch.
_resolution_stack: ContextVar[tuple[tuple[int, UserDependency], ...]] = ContextVar(
    "autowire_resolution_stack",
    default=(),
)


class Resolver:
    """Build dependencies from recipes, caching singletons in the instance store.

    The resolution stack lives in a module-level ``ContextVar``, so every
    thread (and every asyncio task) detects cycles along its own branch.
    Stack entries are immutable tuples and are reset on every exit path.
    """

    def __init__(
        self,
        *,
        registry: RecipeRegistry,
        store: InstanceStore,
        listeners: ListenerRegistry,
        extractor: RecipeExtractor,
        diagnostic_sink: DiagnosticSink,
        lock: AbstractContextManager[Any],
        max_depth: int,
    ) -> None:
        self._registry = registry
        self._store = store
        self._listeners = listeners
        self._extractor = extractor
        self._diagnostic_sink = diagnostic_sink
        self._lock = lock
        self._max_depth = max_depth

    def resolve(
        self,
        contract: UserDependency,
        *,
        singleton: bool = True,
        autoregister: bool = False,
    ) -> Any:
        """Return a cached instance of ``contract`` or build a new one.

        Parameters are always resolved as singletons, whatever ``singleton`` is
        for the requested dependency itself, and are never autoregistered.

        Args:
            contract: Requested dependency key.
            singleton: Reuse and cache the instance in the store. When false, a
                fresh instance is built and not stored.
            autoregister: Register ``contract`` through its own constructor
                when no recipe satisfies it and it is a concrete class.

        Raises:
            AutoWireCircularDependencyError: If ``contract`` is already being
                resolved on this branch or the branch is too deep.
            AutoWireUnknownDependencyError: If no recipe satisfies ``contract``.
            AutoWireAmbiguousRecipeError: If several recipes satisfy ``contract``.
            AutoWireConstructionFailedError: If the recipe factory raised.

        """
        with self._lock:
            if singleton:
                existing = self._store.find_instance(contract)
                if existing is not None:
                    return existing

            stack = self._current_stack()
            chain = (*stack, contract)
            if contract in stack:
                raise AutoWireCircularDependencyError(contract, stack[-1], chain=chain)
            if len(stack) >= self._max_depth:
                raise AutoWireResolutionDepthError(
                    contract,
                    stack[-1] if stack else None,
                    limit=self._max_depth,
                    chain=chain,
                )

            token = _resolution_stack.set((*_resolution_stack.get(), (id(self), contract)))
            try:
                recipe = self._find_recipe(contract, chain, autoregister=autoregister)
                arguments = [
                    self.resolve(parameter_type, singleton=True)
                    for parameter_type in recipe.parameter_types
                ]
                instance = self._construct(contract, recipe, arguments, chain)
                self.dispatch_listeners(instance)
                if singleton:
                    self._store.append(InstanceRecord(instance, recipe))
                return instance
            finally:
                _resolution_stack.reset(token)

    def dispatch_listeners(self, instance: object) -> None:
        """Fire every matching instantiation listener for ``instance``.

        Listener dependencies are resolved as singletons; failures to resolve
        them propagate. Callback failures are reported and dispatch continues.

        Args:
            instance: Newly built or externally supplied instance.

        """
        with self._lock:
            for listener in self._listeners.matching(instance):
                dependencies = [
                    self.resolve(dependency, singleton=True) for dependency in listener.dependencies
                ]
                try:
                    listener.callback(instance, dependencies)
                except Exception as error:
                    failure = AutoWireListenerFailedError(listener.target, instance, error)
                    failure.__cause__ = error
                    self._diagnostic_sink(logging.ERROR, str(failure), failure)

    def _current_stack(self) -> ResolutionStack:
        owner = id(self)
        return tuple(
            dependency
            for entry_owner, dependency in _resolution_stack.get()
            if entry_owner == owner
        )

    def _find_recipe(
        self,
        contract: UserDependency,
        chain: ResolutionStack,
        *,
        autoregister: bool,
    ) -> Recipe:
        recipe = self._registry.find(contract, chain=chain)
        if recipe is not None:
            return recipe
        if not (autoregister and is_concrete_class(contract)):
            raise AutoWireUnknownDependencyError(contract, chain=chain)

        try:
            recipe = self._extractor.from_concrete_type(contract)
        except AutoWireInvalidRecipeError as error:
            raise AutoWireUnknownDependencyError(contract, chain=chain) from error
        logger.debug("Autoregistered %s", describe_dependency(contract))
        self._registry.add(recipe)
        return recipe

    def _construct(
        self,
        contract: UserDependency,
        recipe: Recipe,
        arguments: list[Any],
        chain: ResolutionStack,
    ) -> Any:
        try:
            instance = recipe.factory(*arguments)
        except AutoWireError:
            raise
        except Exception as error:
            raise AutoWireConstructionFailedError(contract, error, chain=chain) from error

        if instance is None:
            error = TypeError(f"recipe for {describe_dependency(recipe.provides)} returned None")
            raise AutoWireConstructionFailedError(contract, error, chain=chain) from error

        logger.debug(
            "Constructed %s for %s",
            type(instance).__qualname__,
            describe_dependency(contract),
        )
        return instance


__all__ = ["ResolutionStack", "Resolver"]
