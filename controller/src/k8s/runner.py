"""
Container runner backed by Kubernetes Jobs.

Every command becomes one Job. The runner polls the Job until it succeeds,
fails, exceeds its deadline, or its pod reports an image pull failure, then
collects the pod logs and deletes the Job. Blocking client calls run in
worker threads so concurrent steps do not stall each other.
"""

import asyncio
import logging
import time
from typing import List, Optional
from kubernetes.client.rest import ApiException

from controller.src.config import get_settings
from controller.src.k8s.client import create_job, read_job, delete_job
from controller.src.k8s.job_builder import build_job, get_job_status
from controller.src.services.container import (
    ContainerPullError,
    ContainerResult,
    ContainerRuntimeError,
    ContainerTimeoutError,
    ExecutionOptions,
)
from controller.src.services.log_collector import (
    collect_logs,
    get_exit_code,
    get_job_pod,
    get_pull_failure,
)

logger = logging.getLogger(__name__)

class KubernetesJobRunner:
    def __init__(self, poll_interval: Optional[float] = None):
        settings = get_settings()
        self.poll_interval = poll_interval or settings.job_poll_interval
        self.default_timeout_ms = settings.default_step_timeout_ms

    async def run(
        self,
        image: str,
        command: List[str],
        options: ExecutionOptions,
    ) -> ContainerResult:
        timeout_ms = options.timeout_ms or self.default_timeout_ms
        job = build_job(
            image=image,
            command=command,
            working_dir=options.working_dir,
            env_vars=options.environment,
            timeout_ms=timeout_ms,
        )
        job_name = job.metadata.name

        try:
            await asyncio.to_thread(create_job, job)
        except ApiException as e:
            raise ContainerRuntimeError(f"Failed to create job {job_name}: {e.reason}")

        try:
            status = await self.wait_for_job(job_name, timeout_ms)
            output = await asyncio.to_thread(collect_logs, job_name)

            if status == "succeeded":
                return ContainerResult(output=output, exit_code=0)

            if status == "timed_out":
                raise ContainerTimeoutError(timeout_ms, output=output)

            pod = await asyncio.to_thread(get_job_pod, job_name)
            exit_code, reason = get_exit_code(pod)
            message = f"Command exited with code {exit_code}"
            if reason and reason != "Error":
                message += f" ({reason})"
            raise ContainerRuntimeError(message, output=output, exit_code=exit_code)
        finally:
            await asyncio.to_thread(delete_job, job_name)

    async def wait_for_job(self, job_name: str, timeout_ms: int) -> str:
        """
        Wait for a job to finish.
        Returns 'succeeded', 'failed' or 'timed_out'; raises on pull failure.
        """
        start_time = time.monotonic()

        while True:
            if (time.monotonic() - start_time) * 1000 > timeout_ms:
                logger.error(f"Job {job_name} timed out after {timeout_ms}ms")
                return "timed_out"

            try:
                job = await asyncio.to_thread(read_job, job_name)
            except ApiException as e:
                logger.error(f"Error checking job status: {e}")
                await asyncio.sleep(self.poll_interval)
                continue

            status = get_job_status(job)
            if status in ("succeeded", "failed", "timed_out"):
                return status

            # An active job can still be waiting on its image
            pod = await asyncio.to_thread(get_job_pod, job_name)
            pull_failure = get_pull_failure(pod)
            if pull_failure:
                raise ContainerPullError(f"Failed to pull image: {pull_failure}")

            await asyncio.sleep(self.poll_interval)
