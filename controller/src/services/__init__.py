from controller.src.services.container import (
    ContainerError,
    ContainerPullError,
    ContainerRuntimeError,
    ContainerTimeoutError,
    ContainerResult,
    ContainerRunner,
    ExecutionOptions,
)
from controller.src.services.executor import PipelineExecutor
from controller.src.services.pipeline_parser import (
    PipelineConfigError,
    MissingDependencyError,
    CircularDependencyError,
    parse_pipeline_config,
    parse_pipeline_dict,
    validate_definition,
    find_config_file,
    load_pipeline_config,
)
from controller.src.services.run_store import InMemoryRunStore, RunStore
from controller.src.services.scheduler import SchedulingError, schedule
from controller.src.services.status_reporter import StatusReporter

__all__ = [
    "ContainerError",
    "ContainerPullError",
    "ContainerRuntimeError",
    "ContainerTimeoutError",
    "ContainerResult",
    "ContainerRunner",
    "ExecutionOptions",
    "PipelineExecutor",
    "PipelineConfigError",
    "MissingDependencyError",
    "CircularDependencyError",
    "parse_pipeline_config",
    "parse_pipeline_dict",
    "validate_definition",
    "find_config_file",
    "load_pipeline_config",
    "InMemoryRunStore",
    "RunStore",
    "SchedulingError",
    "schedule",
    "StatusReporter",
]
