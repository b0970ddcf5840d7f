from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from contextlib import AbstractContextManager, nullcontext
from enum import Enum
from types import TracebackType
from typing import Any, TypeVar, get_type_hints, overload

from autowire._internal.instances import InstanceRecord, InstanceStore
from autowire._internal.listeners import InstantiationListener, ListenerCallback, ListenerRegistry
from autowire._internal.recipes import (
    Recipe,
    RecipeExtractor,
    RecipeFactory,
    RecipeRegistry,
    ReleaseFunction,
    UserDependency,
)
from autowire._internal.resolver import Resolver
from autowire._internal.teardown import TeardownSequencer
from autowire.capabilities import Initializable
from autowire.diagnostics import DiagnosticSink, LoggingDiagnosticSink
from autowire.exceptions import (
    AutoWireInvalidRecipeError,
    AutoWireWiringStateError,
    describe_dependency,
)
from autowire.lock_mode import LockMode
from autowire.settings import AutoWireSettings

T = TypeVar("T")

ExceptionHandler = Callable[[BaseException], Any]

logger = logging.getLogger(__name__)


class WiringState(Enum):
    """Lifecycle of a wiring session.

    ``DONE`` and ``FAILED`` are terminal until ``Wirer.cleanup`` returns the
    session to ``IDLE``.
    """

    IDLE = "idle"
    RESOLVING = "resolving"
    LISTENING = "listening"
    INITIALIZING = "initializing"
    DONE = "done"
    FAILED = "failed"


class Wirer:
    """Compose an application's singletons from declarative registrations.

    Register recipes with ``add_concrete`` and ``add_factory``, hand over
    externally owned objects with ``add_instance``, attach post-construction
    hooks with ``add_listener``, then call ``wire`` once to build every
    registered dependency, fire listeners and initialize the result.
    ``cleanup`` tears everything down again in reverse construction order.

    Dependencies are matched by assignability: a request for ``Logger`` is
    satisfied by a recipe registered under any ``Logger`` subclass, and by any
    stored ``Logger`` instance. More than one candidate is always an error.

    A session owns its registry and instance store. Create one per
    composition root and pass it to the code that needs it.
    """

    def __init__(
        self,
        settings: AutoWireSettings | None = None,
        *,
        diagnostic_sink: DiagnosticSink | None = None,
    ) -> None:
        """Initialize an idle session.

        Args:
            settings: Session configuration. Loaded from ``AUTOWIRE_*``
                environment variables when omitted.
            diagnostic_sink: Receiver for errors that are reported instead of
                raised. Defaults to a sink logging to the ``autowire`` logger.

        """
        self._settings = settings if settings is not None else AutoWireSettings()
        self._diagnostic_sink: DiagnosticSink = diagnostic_sink or LoggingDiagnosticSink()
        self._lock: AbstractContextManager[Any] = (
            threading.RLock() if self._settings.lock_mode is LockMode.THREAD else nullcontext()
        )

        self._registry = RecipeRegistry()
        self._store = InstanceStore(self._diagnostic_sink)
        self._listeners = ListenerRegistry()
        self._extractor = RecipeExtractor()
        self._resolver = Resolver(
            registry=self._registry,
            store=self._store,
            listeners=self._listeners,
            extractor=self._extractor,
            diagnostic_sink=self._diagnostic_sink,
            lock=self._lock,
            max_depth=self._settings.max_resolution_depth,
        )
        self._teardown = TeardownSequencer(self._store, self._diagnostic_sink)

        self._run_listeners_on: list[Any] = []
        self._exception_handler: ExceptionHandler | None = None
        self._state = WiringState.IDLE

    @property
    def settings(self) -> AutoWireSettings:
        return self._settings

    @property
    def state(self) -> WiringState:
        """Current lifecycle state of the session."""
        return self._state

    # region Registration

    def add_concrete(self, concrete_type: type[Any]) -> AutoWireInvalidRecipeError | None:
        """Register a class built through its own constructor.

        Constructor parameters without defaults become the recipe's
        dependencies, in declaration order, using their type annotations as
        dependency keys.

        Args:
            concrete_type: Instantiable class to register under its own type.

        Returns:
            ``None`` on success. When the class cannot be auto-wired (abstract,
            a protocol, not a class, or a required parameter lacks a usable
            annotation) the error is reported to the diagnostic sink and
            returned; the registry is left unchanged.

        Examples:
            .. code-block:: python

                class Service:
                    def __init__(self, logger: Logger) -> None:
                        self.logger = logger


                wirer.add_concrete(Service)

        """
        try:
            recipe = self._extractor.from_concrete_type(concrete_type)
        except AutoWireInvalidRecipeError as error:
            self._diagnostic_sink(logging.ERROR, str(error), error)
            return error

        with self._lock:
            self._registry.add(recipe)
        logger.debug("Registered concrete type %s", describe_dependency(concrete_type))
        return None

    def add_factory(
        self,
        factory: RecipeFactory,
        *,
        provides: UserDependency | None = None,
        dependencies: Sequence[UserDependency] | None = None,
        release: ReleaseFunction | None = None,
    ) -> None:
        """Register a factory producing a dependency.

        Args:
            factory: Callable building the dependency. With explicit
                ``dependencies`` it is called positionally with the resolved
                values in the same order; otherwise its required parameters are
                inspected and filled by type annotation.
            provides: Dependency key the factory is registered under. Inferred
                from the factory's return annotation when omitted.
            dependencies: Ordered dependency keys passed to the factory.
            release: Optional callable receiving the built value during
                teardown, after its ``cleanup()`` capability if it has one.

        Raises:
            AutoWireInvalidRecipeError: If ``factory`` or ``release`` is not
                callable, or ``provides``/``dependencies`` cannot be inferred.

        Examples:
            .. code-block:: python

                wirer.add_factory(
                    lambda settings: Engine(settings.url),
                    provides=Engine,
                    dependencies=[Settings],
                    release=Engine.dispose,
                )

        """
        if not callable(factory):
            msg = f"Factory {factory!r} for {describe_dependency(provides)} is not callable."
            raise AutoWireInvalidRecipeError(msg)
        if release is not None and not callable(release):
            msg = f"Release function {release!r} is not callable."
            raise AutoWireInvalidRecipeError(msg)

        if provides is None:
            provides = self._infer_provides(factory)

        if dependencies is None:
            recipe = Recipe(
                provides=provides,
                parameter_types=self._extractor.infer_parameter_types(factory),
                factory=self._extractor.bind(factory),
                release=release,
            )
        else:
            recipe = Recipe(
                provides=provides,
                parameter_types=tuple(dependencies),
                factory=factory,
                release=release,
            )

        with self._lock:
            self._registry.add(recipe)
        logger.debug("Registered factory for %s", describe_dependency(provides))

    def add_instance(self, instance: Any, *, run_listeners: bool = False) -> None:
        """Hand an externally owned object to the session.

        The instance is stored as a singleton without a recipe: it can satisfy
        dependencies, gets ``initialize()``/``cleanup()`` called if it has them,
        but has no release function.

        Args:
            instance: Object to store.
            run_listeners: Dispatch instantiation listeners for the instance
                during ``wire``.

        """
        with self._lock:
            self._store.append(InstanceRecord(instance))
            if run_listeners:
                self._run_listeners_on.append(instance)

    def add_listener(
        self,
        target: UserDependency,
        callback: ListenerCallback,
        *,
        dependencies: Sequence[UserDependency] = (),
    ) -> None:
        """Register a hook fired once for every new instance of ``target``.

        Args:
            target: Class the new instance must be an instance of.
            callback: Called with the instance and the resolved ``dependencies``
                as a list. Exceptions it raises are reported, not propagated.
            dependencies: Dependency keys resolved as singletons for the
                callback.

        """
        with self._lock:
            self._listeners.add(
                InstantiationListener(
                    target=target,
                    callback=callback,
                    dependencies=tuple(dependencies),
                ),
            )

    def on_exception(self, handler: ExceptionHandler | None) -> None:
        """Set the receiver of the error that aborts ``wire``.

        Without a handler the error is reported to the diagnostic sink. An
        exception raised by the handler itself is reported there as well.

        Args:
            handler: Callable receiving the error, or ``None`` to unset it.

        """
        self._exception_handler = handler

    def _infer_provides(self, factory: RecipeFactory) -> UserDependency:
        if isinstance(factory, type):
            return factory
        try:
            provides = get_type_hints(factory).get("return")
        except (AttributeError, NameError, TypeError) as error:
            msg = (
                f"Unable to infer the provided type of factory {factory!r}: {error}. "
                "Pass provides= explicitly."
            )
            raise AutoWireInvalidRecipeError(msg) from error
        if provides is None or provides is type(None):
            msg = (
                f"Factory {factory!r} has no return annotation. "
                "Annotate it or pass provides= explicitly."
            )
            raise AutoWireInvalidRecipeError(msg)
        return provides

    # endregion Registration

    # region Wiring and Resolution

    def wire(self, on_success: Callable[[Wirer], Any] | None = None) -> WiringState:
        """Build every registered dependency, fire listeners, then initialize.

        The first error in any phase abandons the rest of the session: it is
        passed to the exception handler (or the diagnostic sink) and the
        session ends in ``FAILED`` with whatever was built so far still stored.
        Errors are never raised from this method.

        Args:
            on_success: Called with the session once everything is initialized.

        Returns:
            The terminal state, ``DONE`` or ``FAILED``.

        Raises:
            AutoWireWiringStateError: If the session is not ``IDLE``.

        """
        with self._lock:
            if self._state is not WiringState.IDLE:
                msg = f"Cannot wire a session in state {self._state.value!r}; call cleanup() first."
                raise AutoWireWiringStateError(msg)

            try:
                self._transition(WiringState.RESOLVING)
                for key in self._registry.keys():
                    self._resolver.resolve(key, singleton=True)

                self._transition(WiringState.LISTENING)
                for instance in list(self._run_listeners_on):
                    self._resolver.dispatch_listeners(instance)

                self._transition(WiringState.INITIALIZING)
                for record in self._store.snapshot():
                    if isinstance(record.value, Initializable):
                        record.value.initialize()

                self._transition(WiringState.DONE)
                if on_success is not None:
                    on_success(self)
            except Exception as error:
                self._fail(error)

            return self._state

    def _transition(self, state: WiringState) -> None:
        logger.debug("Wiring session %s -> %s", self._state.value, state.value)
        self._state = state

    def _fail(self, error: Exception) -> None:
        phase = self._state
        self._transition(WiringState.FAILED)
        if self._exception_handler is not None:
            try:
                self._exception_handler(error)
            except Exception as handler_error:
                self._diagnostic_sink(
                    logging.ERROR,
                    f"Exception handler failed while handling {error!r}: {handler_error}",
                    handler_error,
                )
            return
        self._diagnostic_sink(
            logging.ERROR,
            f"Wiring failed while {phase.value}: {error}",
            error,
        )

    @overload
    def resolve(self, contract: type[T], *, singleton: bool = True) -> T: ...

    @overload
    def resolve(self, contract: Any, *, singleton: bool = True) -> Any: ...

    def resolve(self, contract: Any, *, singleton: bool = True) -> Any:
        """Return the instance satisfying ``contract``, building it if needed.

        Args:
            contract: Requested dependency key.
            singleton: Reuse a stored instance and store a newly built one.
                When false a fresh instance is built on every call and is not
                stored; its own dependencies are still shared singletons.

        With ``AutoWireSettings.autoregister_concrete_types`` enabled, an
        unregistered concrete ``contract`` is registered through its own
        constructor first. Its dependencies must still be registered.

        Raises:
            AutoWireResolutionError: If the dependency cannot be built. See
                the concrete subclasses for the individual failure modes.

        """
        return self._resolver.resolve(
            contract,
            singleton=singleton,
            autoregister=self._settings.autoregister_concrete_types,
        )

    @overload
    def find_instance(self, contract: type[T]) -> T | None: ...

    @overload
    def find_instance(self, contract: Any) -> Any | None: ...

    def find_instance(self, contract: Any) -> Any | None:
        """Return the unique stored instance satisfying ``contract``, or ``None``.

        Args:
            contract: Requested dependency key.

        """
        with self._lock:
            return self._store.find_instance(contract)

    def count(self) -> int:
        """Return the number of live stored instances."""
        with self._lock:
            return self._store.count()

    # endregion Wiring and Resolution

    # region Teardown

    def cleanup(self) -> None:
        """Tear down every stored instance, newest first, and reset the session.

        Per instance, ``cleanup()`` runs first if present, then the release
        function of the recipe that built it. Failures are collected and
        reported to the diagnostic sink as one ``AutoWireCleanupError``; this
        method never raises. Recipes and pending listener targets are
        forgotten afterwards; listeners stay registered.
        """
        with self._lock:
            self._teardown.run()
            self._registry.clear()
            self._run_listeners_on.clear()
            self._transition(WiringState.IDLE)

    def __enter__(self) -> Wirer:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.cleanup()

    # endregion Teardown

    def __repr__(self) -> str:
        return (
            f"Wirer(state={self._state.value!r}, recipes={len(self._registry)}, "
            f"instances={len(self._store)})"
        )


__all__ = ["ExceptionHandler", "Wirer", "WiringState"]
