from fastapi import APIRouter, Depends

from api.src.services.engine import get_pipeline_executor
from controller.src.services.executor import PipelineExecutor

router = APIRouter(tags=["health"])

@router.get("/health")
async def health_check():
    return {"status": "healthy", "service": "laneci-api"}

@router.get("/health/runs")
async def runs_health_check(
    executor: PipelineExecutor = Depends(get_pipeline_executor),
):
    """Report how many runs the engine is tracking and how many are active."""
    runs = executor.get_all_runs()
    active = [run for run in runs if not run.status.is_terminal]

    return {
        "status": "healthy",
        "tracked_runs": len(runs),
        "active_runs": len(active),
    }
