from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from autowire.lock_mode import LockMode

DEFAULT_MAX_RESOLUTION_DEPTH = 128


class AutoWireSettings(BaseSettings):
    """Configure a wiring session.

    Values are read from ``AUTOWIRE_*`` environment variables when a field is
    not passed explicitly, for example ``AUTOWIRE_LOCK_MODE=none``.
    """

    model_config = SettingsConfigDict(env_prefix="AUTOWIRE_", frozen=True)

    lock_mode: LockMode = LockMode.THREAD
    """Locking strategy guarding the registry, store and listeners."""

    max_resolution_depth: int = Field(default=DEFAULT_MAX_RESOLUTION_DEPTH, ge=1)
    """Deepest allowed resolution branch before it is reported as a cycle."""

    autoregister_concrete_types: bool = False
    """Let ``Wirer.resolve`` register an unknown concrete class it is asked for.

    Only the requested class itself is registered; its dependencies must be
    known already.
    """


__all__ = ["DEFAULT_MAX_RESOLUTION_DEPTH", "AutoWireSettings"]
