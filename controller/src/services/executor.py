"""
Pipeline executor - runs pipeline steps group by group in containers.
"""

import asyncio
import logging
import uuid
from typing import Dict, Any, List, Optional, Union

from controller.src.config import get_settings
from controller.src.models.pipeline import PipelineDefinition, StepDefinition
from controller.src.models.run import (
    LogLevel,
    PipelineRun,
    RunStatus,
    StepRun,
    StepStatus,
    Trigger,
)
from controller.src.services.container import (
    ContainerError,
    ContainerPullError,
    ContainerResult,
    ContainerRunner,
    ContainerTimeoutError,
    ExecutionOptions,
)
from controller.src.services.pipeline_parser import validate_definition
from controller.src.services.run_store import InMemoryRunStore, RunStore
from controller.src.services.scheduler import schedule
from controller.src.services.status_reporter import StatusReporter, utcnow

logger = logging.getLogger(__name__)

SHELL = ["/bin/sh", "-c"]

class PipelineExecutor:
    """
    Owns every pipeline run it starts.

    Runs execute as asyncio tasks. Each dependency group is dispatched with
    all of its steps in parallel, and the next group starts only once every
    step of the current one has finished. A failed step stops the run at the
    group boundary and the steps that never started are marked skipped.
    """

    def __init__(
        self,
        runner: ContainerRunner,
        store: Optional[RunStore] = None,
        default_timeout_ms: Optional[int] = None,
    ):
        self.runner = runner
        self.store = store or InMemoryRunStore()
        self.reporter = StatusReporter(self.store)
        self.default_timeout_ms = default_timeout_ms or get_settings().default_step_timeout_ms
        self._tasks: Dict[str, asyncio.Task] = {}

    async def execute_pipeline(
        self,
        definition: PipelineDefinition,
        workspace_path: str,
        trigger: Union[Trigger, Dict[str, Any], None] = None,
    ) -> str:
        """
        Start a pipeline run and return its id without waiting for it.

        Raises PipelineConfigError or SchedulingError before any run state
        is created.
        """
        definition = validate_definition(definition)
        groups = schedule(definition.steps)

        if trigger is None:
            trigger = Trigger()
        elif not isinstance(trigger, Trigger):
            trigger = Trigger.model_validate(trigger)

        run_id = str(uuid.uuid4())
        self.store.add(
            PipelineRun(
                id=run_id,
                pipeline_name=definition.name,
                start_time=utcnow(),
                steps=[StepRun(name=step.name) for step in definition.steps],
                trigger=trigger,
            )
        )
        self.reporter.add_log(
            run_id,
            LogLevel.INFO,
            f"Pipeline '{definition.name}' started",
            data={"trigger": trigger.type},
        )

        task = asyncio.create_task(
            self._run_pipeline(run_id, definition, groups, workspace_path)
        )
        self._tasks[run_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(run_id, None))

        return run_id

    def get_run(self, run_id: str) -> Optional[PipelineRun]:
        return self.store.get(run_id)

    def get_all_runs(self) -> List[PipelineRun]:
        return self.store.list()

    def cancel_run(self, run_id: str) -> bool:
        """
        Cancel a run that has not reached a terminal state.

        Pending steps are skipped and the run's task is cancelled, which
        interrupts in-flight commands.
        """
        if not self.reporter.update_run_status(run_id, RunStatus.CANCELLED):
            return False

        self.reporter.add_log(run_id, LogLevel.INFO, "Pipeline cancelled by user")
        self.reporter.skip_pending_steps(run_id)

        task = self._tasks.get(run_id)
        if task is not None and not task.done():
            task.get_loop().call_soon_threadsafe(task.cancel)

        return True

    async def wait_for_run(
        self,
        run_id: str,
        timeout: Optional[float] = None,
    ) -> Optional[PipelineRun]:
        """Wait for a run's task to finish and return the final snapshot."""
        task = self._tasks.get(run_id)
        if task is not None:
            await asyncio.wait({task}, timeout=timeout)
        return self.get_run(run_id)

    async def shutdown(self):
        """Cancel every run still in progress and wait for the tasks to unwind."""
        tasks = list(self._tasks.items())
        for run_id, _ in tasks:
            self.cancel_run(run_id)
        if tasks:
            await asyncio.wait({task for _, task in tasks})

    async def _run_pipeline(
        self,
        run_id: str,
        definition: PipelineDefinition,
        groups: List[List[StepDefinition]],
        workspace_path: str,
    ):
        try:
            if not self.reporter.update_run_status(run_id, RunStatus.RUNNING):
                return
            self.reporter.add_log(run_id, LogLevel.INFO, "Pipeline execution started")

            for index, group in enumerate(groups, start=1):
                if self.reporter.get_status(run_id) != RunStatus.RUNNING:
                    return

                names = ", ".join(step.name for step in group)
                self.reporter.add_log(
                    run_id,
                    LogLevel.DEBUG,
                    f"Dispatching group {index}/{len(groups)}: {names}",
                )

                results = await asyncio.gather(*(
                    self._execute_step(run_id, step, definition, workspace_path)
                    for step in group
                ))

                if not all(results):
                    self._skip_remaining(run_id)
                    break

            self._finish(run_id)

        except asyncio.CancelledError:
            self.reporter.add_log(run_id, LogLevel.WARN, "Pipeline execution interrupted")
            raise
        except Exception as e:
            logger.exception(f"Pipeline run {run_id} failed with exception")
            self.reporter.skip_pending_steps(run_id)
            self.reporter.update_run_status(run_id, RunStatus.FAILED)
            self.reporter.add_log(run_id, LogLevel.ERROR, f"Pipeline execution error: {e}")

    def _finish(self, run_id: str):
        failed = self.reporter.failed_steps(run_id)

        if failed:
            if self.reporter.update_run_status(run_id, RunStatus.FAILED):
                self.reporter.add_log(
                    run_id,
                    LogLevel.ERROR,
                    f"Pipeline failed: {len(failed)} step(s) failed",
                    data={"failed_steps": failed},
                )
        elif self.reporter.update_run_status(run_id, RunStatus.COMPLETED):
            self.reporter.add_log(run_id, LogLevel.INFO, "Pipeline completed successfully")

    def _skip_remaining(self, run_id: str):
        for name in self.reporter.skip_pending_steps(run_id):
            self.reporter.add_log(
                run_id,
                LogLevel.WARN,
                f"Step '{name}' skipped: an earlier step failed",
                step=name,
            )

    async def _execute_step(
        self,
        run_id: str,
        step: StepDefinition,
        definition: PipelineDefinition,
        workspace_path: str,
    ) -> bool:
        """
        Run a step's commands in sequence.
        Returns True if every command succeeded.
        """
        if not self.reporter.update_step_status(
            run_id, step.name, StepStatus.RUNNING, started_at=utcnow()
        ):
            return False
        self.reporter.add_log(run_id, LogLevel.INFO, f"Step '{step.name}' started", step=step.name)

        options = ExecutionOptions(
            working_dir=step.working_dir or workspace_path,
            environment={**definition.environment, **step.environment},
            timeout_ms=effective_timeout(step, definition, self.default_timeout_ms),
        )

        exit_code = None
        for command in step.commands:
            self.reporter.add_log(
                run_id, LogLevel.DEBUG, f"Running command: {command}", step=step.name
            )
            try:
                result = await self._run_command(step.image, command, options)
            except asyncio.CancelledError:
                self._fail_step(run_id, step.name, "Cancelled", "cancelled")
                raise
            except ContainerError as e:
                self.reporter.append_output(run_id, step.name, e.output)
                self._fail_step(
                    run_id,
                    step.name,
                    describe_failure(step.image, command, e),
                    failure_type(e),
                    getattr(e, "exit_code", None),
                )
                return False
            except Exception as e:
                logger.exception(f"Step {step.name} of run {run_id} failed with exception")
                self._fail_step(run_id, step.name, str(e) or e.__class__.__name__, "internal")
                return False

            self.reporter.append_output(run_id, step.name, result.output)
            exit_code = result.exit_code

        self.reporter.update_step_status(
            run_id,
            step.name,
            StepStatus.COMPLETED,
            exit_code=exit_code,
            finished_at=utcnow(),
        )
        self.reporter.add_log(
            run_id, LogLevel.INFO, f"Step '{step.name}' completed successfully", step=step.name
        )
        return True

    async def _run_command(
        self,
        image: str,
        command: str,
        options: ExecutionOptions,
    ) -> ContainerResult:
        try:
            return await asyncio.wait_for(
                self.runner.run(image, SHELL + [command], options),
                timeout=options.timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            raise ContainerTimeoutError(options.timeout_ms)

    def _fail_step(
        self,
        run_id: str,
        step_name: str,
        error: str,
        error_type: str,
        exit_code: Optional[int] = None,
    ):
        self.reporter.update_step_status(
            run_id,
            step_name,
            StepStatus.FAILED,
            error=error,
            exit_code=exit_code,
            finished_at=utcnow(),
        )
        self.reporter.add_log(
            run_id,
            LogLevel.ERROR,
            f"Step '{step_name}' failed: {error}",
            step=step_name,
            data={"error_type": error_type},
        )

def effective_timeout(step: StepDefinition, definition: PipelineDefinition, default_ms: int) -> int:
    if step.timeout is not None:
        return step.timeout
    if definition.timeout is not None:
        return definition.timeout
    return default_ms

def failure_type(error: ContainerError) -> str:
    if isinstance(error, ContainerTimeoutError):
        return "timeout"
    if isinstance(error, ContainerPullError):
        return "pull"
    return "runtime"

def describe_failure(image: str, command: str, error: ContainerError) -> str:
    if isinstance(error, ContainerTimeoutError):
        return f"Timeout: command '{command}' timed out after {error.timeout_ms}ms"
    if isinstance(error, ContainerPullError):
        return f"Image pull failed for '{image}': {error}"
    return f"Command '{command}' failed: {error}"
