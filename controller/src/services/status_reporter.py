"""
Report pipeline and step status to the run store.

All writes for a run happen under that run's lock. Status changes are only
applied when they follow the run/step state machines, so a run that reached
a terminal state never moves again.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List

from controller.src.models.run import (
    LogEntry,
    LogLevel,
    RunStatus,
    StepStatus,
)
from controller.src.services.run_store import RunStore

logger = logging.getLogger(__name__)

RUN_TRANSITIONS = {
    RunStatus.PENDING: {RunStatus.RUNNING, RunStatus.FAILED, RunStatus.CANCELLED},
    RunStatus.RUNNING: {RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED},
}

STEP_TRANSITIONS = {
    StepStatus.PENDING: {StepStatus.RUNNING, StepStatus.SKIPPED},
    StepStatus.RUNNING: {StepStatus.COMPLETED, StepStatus.FAILED},
}

_LOG_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class StatusReporter:
    def __init__(self, store: RunStore):
        self.store = store

    def update_run_status(
        self,
        run_id: str,
        status: RunStatus,
        finished_at: Optional[datetime] = None,
    ) -> bool:
        """Move a run to a new status. Returns False if the move is not allowed."""
        with self.store.locked(run_id) as run:
            if run is None:
                return False
            if status not in RUN_TRANSITIONS.get(run.status, set()):
                logger.debug(
                    f"Ignoring run {run_id} transition {run.status.value} -> {status.value}"
                )
                return False

            run.status = status
            if finished_at:
                run.end_time = finished_at
            elif status.is_terminal:
                run.end_time = utcnow()

        logger.info(f"Updated run {run_id} status to {status.value}")
        return True

    def update_step_status(
        self,
        run_id: str,
        step_name: str,
        status: StepStatus,
        error: Optional[str] = None,
        exit_code: Optional[int] = None,
        started_at: Optional[datetime] = None,
        finished_at: Optional[datetime] = None,
    ) -> bool:
        """
        Move a step to a new status.
        Steps of a run that already reached a terminal state are not started.
        """
        with self.store.locked(run_id) as run:
            step = run.get_step(step_name) if run else None
            if step is None:
                return False
            if status == StepStatus.RUNNING and run.status.is_terminal:
                return False
            if status not in STEP_TRANSITIONS.get(step.status, set()):
                return False

            step.status = status
            if error is not None:
                step.error = error
            if exit_code is not None:
                step.exit_code = exit_code
            if started_at:
                step.start_time = started_at
            if finished_at:
                step.end_time = finished_at

        logger.debug(f"Updated step {step_name} of run {run_id} to {status.value}")
        return True

    def append_output(self, run_id: str, step_name: str, output: str):
        if not output:
            return
        with self.store.locked(run_id) as run:
            step = run.get_step(step_name) if run else None
            if step is not None:
                step.output += output

    def skip_pending_steps(self, run_id: str) -> List[str]:
        """Mark every still-pending step as skipped. Returns their names."""
        skipped = []
        with self.store.locked(run_id) as run:
            if run is None:
                return skipped
            for step in run.steps:
                if step.status == StepStatus.PENDING:
                    step.status = StepStatus.SKIPPED
                    skipped.append(step.name)
        return skipped

    def get_status(self, run_id: str) -> Optional[RunStatus]:
        with self.store.locked(run_id) as run:
            return run.status if run else None

    def failed_steps(self, run_id: str) -> List[str]:
        with self.store.locked(run_id) as run:
            if run is None:
                return []
            return [s.name for s in run.steps if s.status == StepStatus.FAILED]

    def add_log(
        self,
        run_id: str,
        level: LogLevel,
        message: str,
        step: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        """Append a log entry to the run and mirror it to the process log."""
        with self.store.locked(run_id) as run:
            if run is None:
                return
            timestamp = utcnow()
            if run.logs and run.logs[-1].timestamp > timestamp:
                timestamp = run.logs[-1].timestamp
            run.logs.append(
                LogEntry(
                    timestamp=timestamp,
                    level=level,
                    step=step,
                    message=message,
                    data=data,
                )
            )

        logger.log(_LOG_LEVELS[level], f"[{run_id}] {message}")
