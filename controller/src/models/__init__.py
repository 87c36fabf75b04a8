from controller.src.models.pipeline import (
    PipelineTriggers,
    StepDefinition,
    PipelineDefinition,
)
from controller.src.models.run import (
    RunStatus,
    StepStatus,
    LogLevel,
    Trigger,
    LogEntry,
    StepRun,
    PipelineRun,
)

__all__ = [
    "PipelineTriggers",
    "StepDefinition",
    "PipelineDefinition",
    "RunStatus",
    "StepStatus",
    "LogLevel",
    "Trigger",
    "LogEntry",
    "StepRun",
    "PipelineRun",
]
