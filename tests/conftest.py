"""Shared pytest fixtures for autowire tests."""

import logging

import pytest

from autowire.container import Wirer
from autowire.lock_mode import LockMode
from autowire.settings import AutoWireSettings


class RecordingSink:
    """Diagnostic sink keeping every reported entry in memory."""

    def __init__(self) -> None:
        self.entries: list[tuple[int, str, BaseException | None]] = []

    def __call__(self, level: int, message: str, error: BaseException | None = None) -> None:
        self.entries.append((level, message, error))

    @property
    def errors(self) -> list[BaseException]:
        return [
            error
            for level, _, error in self.entries
            if level >= logging.ERROR and error is not None
        ]


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def wirer(sink: RecordingSink) -> Wirer:
    """Session with default settings."""
    return Wirer(AutoWireSettings(), diagnostic_sink=sink)


@pytest.fixture()
def autoregister_wirer(sink: RecordingSink) -> Wirer:
    """Session registering unknown concrete classes requested through resolve()."""
    return Wirer(AutoWireSettings(autoregister_concrete_types=True), diagnostic_sink=sink)


@pytest.fixture()
def strict_wirer(sink: RecordingSink) -> Wirer:
    """Session where every dependency must be registered explicitly."""
    return Wirer(AutoWireSettings(autoregister_concrete_types=False), diagnostic_sink=sink)


@pytest.fixture()
def unlocked_wirer(sink: RecordingSink) -> Wirer:
    """Session without locking."""
    return Wirer(
        AutoWireSettings(lock_mode=LockMode.NONE, autoregister_concrete_types=False),
        diagnostic_sink=sink,
    )
