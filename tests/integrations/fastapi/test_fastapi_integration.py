from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from autowire import AutoWireError, AutoWireSettings, Wirer, WiringState
from autowire.integrations.fastapi import get_wirer, provide, setup_autowire


class Journal:
    def __init__(self) -> None:
        self.entries: list[str] = []


class Service:
    def __init__(self, journal: Journal) -> None:
        self.journal = journal
        self.value = "ok"

    def initialize(self) -> None:
        self.journal.entries.append("initialize")

    def cleanup(self) -> None:
        self.journal.entries.append("cleanup")


class Missing:
    pass


class NeedsMissing:
    def __init__(self, missing: Missing) -> None:
        self.missing = missing


def _strict_wirer() -> Wirer:
    return Wirer(AutoWireSettings(autoregister_concrete_types=False))


def test_setup_autowire_wires_on_startup_and_cleans_up_on_shutdown() -> None:
    app = FastAPI()
    journal = Journal()
    wirer = _strict_wirer()
    wirer.add_instance(journal)
    wirer.add_concrete(Service)
    setup_autowire(app, wirer)

    @app.get("/hello")
    async def hello(service: Service = Depends(provide(Service))) -> dict[str, str]:
        return {"value": service.value}

    with TestClient(app) as client:
        assert wirer.state is WiringState.DONE
        response = client.get("/hello")

        assert response.status_code == 200
        assert response.json() == {"value": "ok"}

    assert journal.entries == ["initialize", "cleanup"]
    assert wirer.state is WiringState.IDLE
    assert wirer.count() == 0


def test_get_wirer_returns_configured_session() -> None:
    app = FastAPI()
    wirer = _strict_wirer()
    setup_autowire(app, wirer)

    @app.get("/count")
    async def count(request: Request) -> dict[str, int]:
        return {"count": get_wirer(request).count()}

    with TestClient(app) as client:
        assert client.get("/count").json() == {"count": 0}


def test_get_wirer_without_setup_raises() -> None:
    app = FastAPI()

    @app.get("/count")
    async def count(request: Request) -> dict[str, int]:
        return {"count": get_wirer(request).count()}

    client = TestClient(app, raise_server_exceptions=True)

    with pytest.raises(RuntimeError, match="setup_autowire"):
        client.get("/count")


def test_failed_wiring_aborts_startup() -> None:
    app = FastAPI()
    errors: list[BaseException] = []
    wirer = _strict_wirer()
    wirer.on_exception(errors.append)
    wirer.add_concrete(NeedsMissing)
    setup_autowire(app, wirer)

    with pytest.raises(AutoWireError, match="wiring failed"), TestClient(app):
        pass

    assert len(errors) == 1
    assert wirer.state is WiringState.IDLE


def test_failed_wiring_can_be_tolerated() -> None:
    app = FastAPI()
    wirer = _strict_wirer()
    wirer.on_exception(lambda error: None)
    wirer.add_concrete(NeedsMissing)
    setup_autowire(app, wirer, fail_startup=False)

    with TestClient(app):
        assert wirer.state is WiringState.FAILED

    assert wirer.state is WiringState.IDLE


def test_existing_lifespan_runs_inside_wiring() -> None:
    journal = Journal()
    observed: list[WiringState] = []
    wirer = _strict_wirer()
    wirer.add_instance(journal)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        observed.append(wirer.state)
        yield
        observed.append(wirer.state)

    app = FastAPI(lifespan=lifespan)
    setup_autowire(app, wirer)

    with TestClient(app):
        pass

    assert observed == [WiringState.DONE, WiringState.DONE]
