from __future__ import annotations

from enum import Enum


class LockMode(Enum):
    """Select locking behavior for a wiring session.

    Use ``THREAD`` when instances may be requested from several threads while
    the session is live. Use ``NONE`` for strictly single-threaded composition
    roots where the lock overhead is not wanted.
    """

    THREAD = "thread"
    """Guard registry, instance store and listeners with one ``threading.RLock``."""

    NONE = "none"
    """Disable locking; the session must only be used from one thread."""
