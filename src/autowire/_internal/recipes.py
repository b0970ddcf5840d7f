from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from inspect import Parameter
from typing import Any, TypeAlias, get_type_hints

from autowire._internal.integrations.pydantic_settings import is_pydantic_settings_subclass
from autowire._internal.type_checks import (
    is_concrete_class,
    is_protocol_class,
    is_runtime_class,
    satisfies,
)
from autowire.exceptions import AutoWireAmbiguousRecipeError, AutoWireInvalidRecipeError

logger = logging.getLogger(__name__)

UserDependency: TypeAlias = Any
"""A dependency key registered or requested from the user's code."""

RecipeFactory: TypeAlias = Callable[..., Any]
"""Callable producing a dependency from its resolved parameters, in declared order."""

ReleaseFunction: TypeAlias = Callable[[Any], Any]
"""Callable releasing resources held by a produced dependency during teardown."""

_MISSING_ANNOTATION: Any = object()


@dataclass(frozen=True, slots=True, kw_only=True)
class Recipe:
    """Describe how a single dependency key is constructed.

    The factory receives one positional argument per entry of
    ``parameter_types``, in the same order. Stored instances keep a reference
    to the recipe that built them so teardown can find the release function.
    """

    provides: UserDependency
    """The dependency key this recipe is registered under."""
    parameter_types: tuple[UserDependency, ...] = ()
    """Dependency keys resolved and passed to ``factory``, in order."""
    factory: RecipeFactory
    """Callable building the dependency."""
    release: ReleaseFunction | None = None
    """Optional callable invoked with the built value during teardown."""


@dataclass(frozen=True, slots=True)
class _BoundParameter:
    name: str
    kind: Any


@dataclass(frozen=True, slots=True)
class SignatureFactory:
    """Call a target with positional recipe arguments mapped onto its signature.

    Positional-only parameters are passed positionally, every other parameter
    by keyword, so keyword-only constructor parameters are supported.
    """

    target: Callable[..., Any]
    parameters: tuple[_BoundParameter, ...] = field(default=())

    def __call__(self, *arguments: Any) -> Any:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for parameter, value in zip(self.parameters, arguments, strict=True):
            if parameter.kind is Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[parameter.name] = value
        return self.target(*args, **kwargs)

    def __repr__(self) -> str:
        return f"SignatureFactory({_provider_name(self.target)})"


class RecipeExtractor:
    """Derive recipes from user-defined classes and factories."""

    def from_concrete_type(self, concrete_type: Any) -> Recipe:
        """Build a recipe that instantiates ``concrete_type`` through its constructor.

        Pydantic settings classes are built without arguments.

        Args:
            concrete_type: Class to instantiate.

        Raises:
            AutoWireInvalidRecipeError: If the candidate is not an instantiable
                class or a required constructor parameter has no usable annotation.

        """
        if not is_runtime_class(concrete_type):
            msg = f"Cannot auto-wire {concrete_type!r}: only classes can be registered by type."
            raise AutoWireInvalidRecipeError(msg)
        if is_protocol_class(concrete_type) or not is_concrete_class(concrete_type):
            msg = (
                f"Cannot auto-wire {concrete_type.__qualname__}: abstract classes and protocols "
                "have no constructor to call. Register a concrete implementation or a factory."
            )
            raise AutoWireInvalidRecipeError(msg)

        if is_pydantic_settings_subclass(concrete_type):
            # Settings load themselves from the environment; their fields are not dependencies.
            return Recipe(provides=concrete_type, factory=concrete_type)

        factory = self.bind(concrete_type)
        return Recipe(
            provides=concrete_type,
            parameter_types=self.infer_parameter_types(concrete_type),
            factory=factory,
        )

    def bind(self, provider: Callable[..., Any]) -> SignatureFactory:
        """Wrap ``provider`` so it can be called with inferred positional arguments.

        Args:
            provider: Class or callable whose signature is inspected.

        """
        return SignatureFactory(
            target=provider,
            parameters=tuple(
                _BoundParameter(name=parameter.name, kind=parameter.kind)
                for parameter in self._required_parameters(provider)
            ),
        )

    def infer_parameter_types(self, provider: Callable[..., Any]) -> tuple[UserDependency, ...]:
        """Infer ordered dependency keys from the required parameters of ``provider``.

        Parameters with defaults and variadic parameters are left to Python.

        Args:
            provider: Class or callable whose signature is inspected.

        Raises:
            AutoWireInvalidRecipeError: If a required parameter has no usable
                annotation.

        """
        provider_name = _provider_name(provider)
        annotations, annotation_error = self._resolved_type_hints(provider)
        parameter_types: list[UserDependency] = []

        for parameter in self._required_parameters(provider):
            annotation = annotations.get(parameter.name, _MISSING_ANNOTATION)
            if annotation is _MISSING_ANNOTATION:
                raw_annotation = parameter.annotation
                if raw_annotation is not Parameter.empty and not isinstance(raw_annotation, str):
                    annotation = raw_annotation
            if annotation is _MISSING_ANNOTATION:
                error_message = (
                    f"Unable to infer dependency for required parameter '{parameter.name}' "
                    f"in '{provider_name}'. Add a type annotation or pass explicit dependencies."
                )
                if annotation_error is None:
                    raise AutoWireInvalidRecipeError(error_message)
                msg = f"{error_message} Original annotation error: {annotation_error}"
                raise AutoWireInvalidRecipeError(msg) from annotation_error
            parameter_types.append(annotation)

        return tuple(parameter_types)

    def _required_parameters(self, provider: Callable[..., Any]) -> list[Parameter]:
        try:
            signature = inspect.signature(provider)
        except (TypeError, ValueError) as error:
            msg = f"Cannot inspect the signature of '{_provider_name(provider)}': {error}"
            raise AutoWireInvalidRecipeError(msg) from error
        return [
            parameter
            for parameter in signature.parameters.values()
            if parameter.default is Parameter.empty
            and parameter.kind not in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD)
        ]

    def _resolved_type_hints(
        self,
        provider: Callable[..., Any],
    ) -> tuple[dict[str, Any], Exception | None]:
        target = provider.__init__ if inspect.isclass(provider) else provider
        try:
            return get_type_hints(target, include_extras=True), None
        except (AttributeError, NameError, TypeError) as error:
            return {}, error


class RecipeRegistry:
    """Store recipes indexed by the dependency key they are registered under.

    Registration keys are unique: adding a recipe for an existing key replaces
    the previous one. Lookups match by assignability, and more than one
    distinct matching key is always an error.
    """

    def __init__(self) -> None:
        self._recipes: dict[UserDependency, Recipe] = {}

    def add(self, recipe: Recipe) -> None:
        """Add or replace the recipe for ``recipe.provides``.

        Args:
            recipe: Recipe to register.

        """
        if recipe.provides in self._recipes:
            logger.debug("Replacing recipe for %r", recipe.provides)
        self._recipes[recipe.provides] = recipe

    def get(self, key: UserDependency) -> Recipe | None:
        """Return the recipe registered under exactly ``key``, if any."""
        return self._recipes.get(key)

    def find(self, contract: UserDependency, *, chain: Sequence[Any] = ()) -> Recipe | None:
        """Return the recipe of the unique key satisfying ``contract``.

        Args:
            contract: Requested dependency key.
            chain: Resolution path attached to an ambiguity error.

        Raises:
            AutoWireAmbiguousRecipeError: If more than one registered key
                satisfies ``contract``.

        """
        candidates = [key for key in self._recipes if satisfies(key, contract)]
        if not candidates:
            return None
        if len(candidates) > 1:
            raise AutoWireAmbiguousRecipeError(contract, candidates, chain=chain)
        return self._recipes[candidates[0]]

    def keys(self) -> list[UserDependency]:
        """Return a snapshot of the registered keys in registration order."""
        return list(self._recipes)

    def clear(self) -> None:
        self._recipes.clear()

    def __len__(self) -> int:
        return len(self._recipes)


def _provider_name(provider: Callable[..., Any]) -> str:
    return getattr(provider, "__qualname__", repr(provider))


__all__ = [
    "Recipe",
    "RecipeExtractor",
    "RecipeFactory",
    "RecipeRegistry",
    "ReleaseFunction",
    "SignatureFactory",
    "UserDependency",
]
