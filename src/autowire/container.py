from autowire._internal.container import ExceptionHandler, Wirer, WiringState

__all__ = ["ExceptionHandler", "Wirer", "WiringState"]
