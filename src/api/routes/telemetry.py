"""
Telemetry endpoints - render metrics, latency stats and connection counters
"""

from fastapi import APIRouter, Depends

from api.dependencies import PipelineContext, get_pipeline
from api.schemas.telemetry import TelemetryResponse
from lifecycle.task_registry import TaskRegistry
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)

router = APIRouter(prefix="/telemetry", tags=["Telemetry"])


@router.get("", response_model=TelemetryResponse)
async def get_telemetry(pipeline: PipelineContext = Depends(get_pipeline)) -> TelemetryResponse:
    """
    Get a snapshot of the pipeline.

    Returns:
        - connections: open / total accepted connections
        - render: fps, frame counters and latency stats (None without a render loop)
        - framing: canonical or legacy payload mode
        - tasks: TaskRegistry summary line
    """
    render = pipeline.render_loop.get_metrics() if pipeline.render_loop else None
    return TelemetryResponse(
        connections=pipeline.registry.as_dict(),
        render=render,
        framing=pipeline.codec.mode.value,
        tasks=TaskRegistry.instance().summary(),
    )
