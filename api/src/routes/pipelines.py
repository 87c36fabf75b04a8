from fastapi import APIRouter, Depends, HTTPException
from typing import List, Optional
from collections import Counter
import logging

from api.src.models.run import (
    CancelResponse,
    RunCreateRequest,
    RunCreatedResponse,
    RunLogsResponse,
    StepLogs,
)
from api.src.services.engine import get_pipeline_executor
from controller.src.models.run import PipelineRun, RunStatus
from controller.src.services.executor import PipelineExecutor
from controller.src.services.pipeline_parser import (
    PipelineConfigError,
    load_pipeline_config,
    parse_pipeline_config,
    parse_pipeline_dict,
)
from controller.src.services.scheduler import SchedulingError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pipelines", tags=["pipelines"])

@router.post("/runs", response_model=RunCreatedResponse, status_code=202)
async def create_run(
    request: RunCreateRequest,
    executor: PipelineExecutor = Depends(get_pipeline_executor),
):
    """Validate a pipeline and start running it."""
    try:
        if request.config is not None:
            definition = parse_pipeline_dict(request.config)
        elif request.config_yaml is not None:
            definition = parse_pipeline_config(request.config_yaml)
        else:
            definition = load_pipeline_config(request.workspace_path)
            if definition is None:
                raise HTTPException(
                    status_code=404,
                    detail=f"No pipeline configuration found in {request.workspace_path}",
                )

        run_id = await executor.execute_pipeline(
            definition,
            request.workspace_path,
            request.trigger,
        )
    except (PipelineConfigError, SchedulingError) as e:
        logger.warning(f"Rejected pipeline run: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return RunCreatedResponse(run_id=run_id, status=RunStatus.PENDING)

@router.get("/runs", response_model=List[PipelineRun])
async def list_runs(
    limit: int = 20,
    offset: int = 0,
    status: Optional[RunStatus] = None,
    executor: PipelineExecutor = Depends(get_pipeline_executor),
):
    """List pipeline runs, newest first."""
    runs = list(reversed(executor.get_all_runs()))

    if status:
        runs = [run for run in runs if run.status == status]

    return runs[offset:offset + limit]

@router.get("/runs/{run_id}", response_model=PipelineRun)
async def get_run(
    run_id: str,
    executor: PipelineExecutor = Depends(get_pipeline_executor),
):
    """Get a specific pipeline run."""
    run = executor.get_run(run_id)

    if not run:
        raise HTTPException(status_code=404, detail="Pipeline run not found")

    return run

@router.get("/runs/{run_id}/logs", response_model=RunLogsResponse)
async def get_run_logs(
    run_id: str,
    executor: PipelineExecutor = Depends(get_pipeline_executor),
):
    """Get the run log and the output of every step."""
    run = executor.get_run(run_id)

    if not run:
        raise HTTPException(status_code=404, detail="Pipeline run not found")

    return RunLogsResponse(
        run_id=run.id,
        status=run.status,
        logs=run.logs,
        steps=[
            StepLogs(
                name=step.name,
                status=step.status,
                output=step.output,
                error=step.error,
            )
            for step in run.steps
        ],
    )

@router.post("/runs/{run_id}/cancel", response_model=CancelResponse)
async def cancel_run(
    run_id: str,
    executor: PipelineExecutor = Depends(get_pipeline_executor),
):
    """Cancel a run that has not finished yet."""
    run = executor.get_run(run_id)

    if not run:
        raise HTTPException(status_code=404, detail="Pipeline run not found")

    if not executor.cancel_run(run_id):
        raise HTTPException(
            status_code=409,
            detail=f"Pipeline run already {executor.get_run(run_id).status.value}",
        )

    return CancelResponse(run_id=run_id, cancelled=True)

@router.get("/stats")
async def get_pipeline_stats(
    executor: PipelineExecutor = Depends(get_pipeline_executor),
):
    """Get pipeline statistics."""
    status_counts = Counter(run.status.value for run in executor.get_all_runs())

    return {
        "runs": dict(status_counts),
        "total_runs": sum(status_counts.values()),
    }
