"""
Run state models.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import datetime
from enum import Enum

class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED)

class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"

class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

class Trigger(BaseModel):
    type: str = "manual"
    payload: Any = None

class LogEntry(BaseModel):
    timestamp: datetime
    level: LogLevel
    step: Optional[str] = None
    message: str
    data: Optional[Dict[str, Any]] = None

class StepRun(BaseModel):
    name: str
    status: StepStatus = StepStatus.PENDING
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    output: str = ""
    error: Optional[str] = None
    exit_code: Optional[int] = None

class PipelineRun(BaseModel):
    id: str
    pipeline_name: str
    status: RunStatus = RunStatus.PENDING
    start_time: datetime
    end_time: Optional[datetime] = None
    steps: List[StepRun] = []
    logs: List[LogEntry] = []
    trigger: Trigger = Field(default_factory=Trigger)

    def get_step(self, name: str) -> Optional[StepRun]:
        for step in self.steps:
            if step.name == name:
                return step
        return None
