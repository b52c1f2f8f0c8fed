from . import telemetry

__all__ = ["telemetry"]
