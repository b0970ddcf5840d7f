from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from autowire.container import Wirer, WiringState
from autowire.exceptions import AutoWireError

try:
    from fastapi import FastAPI, Request
except ModuleNotFoundError as exc:  # pragma: no cover - exercised in optional import scenarios
    message = "FastAPI integration requires fastapi. Install with 'autowire[fastapi]'."
    raise ModuleNotFoundError(message) from exc

T = TypeVar("T")

_WIRER_STATE_ATTR = "autowire_wirer"


def setup_autowire(app: FastAPI, wirer: Wirer, *, fail_startup: bool = True) -> None:
    """Tie a wiring session to the FastAPI application lifespan.

    ``wirer.wire()`` runs on startup, before any existing lifespan of the app,
    and ``wirer.cleanup()`` runs on shutdown after it.

    Args:
        app: Application to configure.
        wirer: Session composing the application's singletons.
        fail_startup: Abort startup when wiring ends in ``FAILED``. The wiring
            error itself has already been delivered to the session's exception
            handler or diagnostic sink.

    """
    app.state.autowire_wirer = wirer
    inner_lifespan = app.router.lifespan_context

    @asynccontextmanager
    async def _autowire_lifespan(lifespan_app: Any) -> AsyncIterator[Any]:
        if wirer.wire() is WiringState.FAILED and fail_startup:
            wirer.cleanup()
            message = "Application wiring failed; see the reported error for details."
            raise AutoWireError(message)
        try:
            async with inner_lifespan(lifespan_app) as lifespan_state:
                yield lifespan_state
        finally:
            wirer.cleanup()

    app.router.lifespan_context = _autowire_lifespan


def get_wirer(request: Request) -> Wirer:
    """Return the session configured by ``setup_autowire`` for ``request``'s app."""
    wirer = getattr(request.app.state, _WIRER_STATE_ATTR, None)
    if wirer is None:
        message = "No wiring session is configured; call setup_autowire(app, wirer) first."
        raise RuntimeError(message)
    return wirer


def provide(contract: type[T]) -> Callable[[Request], T]:
    """Build a FastAPI dependency returning the wired singleton for ``contract``.

    Examples:
        .. code-block:: python

            @app.get("/users")
            async def users(service: UserService = Depends(provide(UserService))) -> list[str]:
                return service.names()

    """

    def _dependency(request: Request) -> T:
        return get_wirer(request).resolve(contract)

    _dependency.__name__ = f"provide_{getattr(contract, '__name__', 'dependency')}"
    return _dependency


__all__ = ["get_wirer", "provide", "setup_autowire"]
