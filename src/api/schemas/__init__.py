from .telemetry import HealthResponse, LatencyStats, RenderStats, ConnectionStats, TelemetryResponse

__all__ = ["HealthResponse", "LatencyStats", "RenderStats", "ConnectionStats", "TelemetryResponse"]
