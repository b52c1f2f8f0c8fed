"""
Telemetry schemas - Pydantic models for the health and telemetry endpoints.
"""

from pydantic import BaseModel, Field
from typing import Optional


class HealthResponse(BaseModel):
    """Liveness probe answer."""
    status: str = Field(description="Always 'healthy' while the server answers")
    service: str
    version: str


class LatencyStats(BaseModel):
    """Strip push latency over the last `capacity` renders, in milliseconds."""
    min_ms: Optional[float] = Field(None, description="Smallest sample ever recorded")
    max_ms: Optional[float] = Field(None, description="Largest sample ever recorded")
    avg_ms: Optional[float] = Field(None, description="Average over the filled ring buffer slots")
    samples: int = Field(description="Filled slots")
    capacity: int


class RenderStats(BaseModel):
    fps_target: float
    fps_actual: float
    frames_rendered: int
    messages_received: int
    dropped_messages: int = Field(description="Messages overwritten in the mailbox before being rendered")
    current_client: Optional[int] = Field(None, description="Connection id of the frame on the strip")
    latency: LatencyStats


class ConnectionStats(BaseModel):
    open_connections: int
    total_accepted: int


class TelemetryResponse(BaseModel):
    """Snapshot of the ingestion-to-render pipeline."""
    connections: ConnectionStats
    render: Optional[RenderStats] = Field(None, description="Missing when no render loop is attached")
    framing: str = Field(description="Payload framing mode (canonical / legacy)")
    tasks: str = Field(description="TaskRegistry summary")

    class Config:
        json_schema_extra = {
            "example": {
                "connections": {"open_connections": 1, "total_accepted": 4},
                "render": {
                    "fps_target": 50.0,
                    "fps_actual": 49.8,
                    "frames_rendered": 1520,
                    "messages_received": 1498,
                    "dropped_messages": 3,
                    "current_client": 3,
                    "latency": {"min_ms": 6.1, "max_ms": 9.7, "avg_ms": 6.4, "samples": 32, "capacity": 32},
                },
                "framing": "canonical",
                "tasks": "Tasks: total=3, running=3, failed=0, cancelled=0",
            }
        }
