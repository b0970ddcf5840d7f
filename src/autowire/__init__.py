from autowire.capabilities import Cleanable, Initializable
from autowire.container import Wirer, WiringState
from autowire.diagnostics import DiagnosticSink, LoggingDiagnosticSink
from autowire.exceptions import (
    AutoWireAmbiguousInstanceError,
    AutoWireAmbiguousRecipeError,
    AutoWireCircularDependencyError,
    AutoWireCleanupError,
    AutoWireCleanupFailedError,
    AutoWireConstructionFailedError,
    AutoWireError,
    AutoWireInvalidRecipeError,
    AutoWireListenerFailedError,
    AutoWireResolutionDepthError,
    AutoWireResolutionError,
    AutoWireUnknownDependencyError,
    AutoWireWiringStateError,
)
from autowire.lock_mode import LockMode
from autowire.settings import AutoWireSettings

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
    "AutoWireSettings",
    "AutoWireUnknownDependencyError",
    "AutoWireWiringStateError",
    "Cleanable",
    "DiagnosticSink",
    "Initializable",
    "LockMode",
    "LoggingDiagnosticSink",
    "Wirer",
    "WiringState",
]
