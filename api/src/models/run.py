from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any

from controller.src.models.run import LogEntry, RunStatus, StepStatus, Trigger

class RunCreateRequest(BaseModel):
    workspace_path: str
    config: Optional[Dict[str, Any]] = None
    config_yaml: Optional[str] = None
    trigger: Trigger = Field(default_factory=Trigger)

class RunCreatedResponse(BaseModel):
    run_id: str
    status: RunStatus

class CancelResponse(BaseModel):
    run_id: str
    cancelled: bool

class StepLogs(BaseModel):
    name: str
    status: StepStatus
    output: str
    error: Optional[str] = None

class RunLogsResponse(BaseModel):
    run_id: str
    status: RunStatus
    logs: List[LogEntry] = []
    steps: List[StepLogs] = []
