"""
Kubernetes Job builder for step commands.
"""

from kubernetes import client
from typing import List, Dict, Optional
import math
import uuid

from controller.src.config import get_settings

settings = get_settings()

def build_job_name(image: str) -> str:
    """Generate a unique job name."""
    # K8s names must be lowercase, alphanumeric, max 63 chars
    base = image.split("/")[-1].split(":")[0].split("@")[0].lower()
    safe_name = "".join(c if c.isalnum() else "-" for c in base).strip("-")
    safe_name = safe_name[:20] or "step"

    return f"lci-{safe_name}-{uuid.uuid4().hex[:12]}"

def timeout_seconds(timeout_ms: int) -> int:
    """Round a millisecond timeout up to whole seconds (minimum 1)."""
    return max(1, math.ceil(timeout_ms / 1000))

def build_job(
    image: str,
    command: List[str],
    working_dir: Optional[str] = None,
    env_vars: Optional[Dict[str, str]] = None,
    timeout_ms: Optional[int] = None,
    job_name: Optional[str] = None,
) -> client.V1Job:
    """
    Build a Kubernetes Job running a single command.
    """
    job_name = job_name or build_job_name(image)
    timeout_ms = timeout_ms or settings.default_step_timeout_ms

    env = [
        client.V1EnvVar(name=key, value=value)
        for key, value in (env_vars or {}).items()
    ]

    labels = {"app": "laneci"}

    container = client.V1Container(
        name="step",
        image=image,
        command=command,
        working_dir=working_dir,
        env=env or None,
    )

    pod_spec = client.V1PodSpec(
        containers=[container],
        restart_policy="Never",
    )

    template = client.V1PodTemplateSpec(
        metadata=client.V1ObjectMeta(labels=labels),
        spec=pod_spec,
    )

    job_spec = client.V1JobSpec(
        template=template,
        backoff_limit=0,  # Don't retry failed commands
        active_deadline_seconds=timeout_seconds(timeout_ms),
        ttl_seconds_after_finished=settings.job_ttl_after_finished,
    )

    return client.V1Job(
        api_version="batch/v1",
        kind="Job",
        metadata=client.V1ObjectMeta(
            name=job_name,
            namespace=settings.k8s_namespace,
            labels=labels,
        ),
        spec=job_spec,
    )

def get_job_status(job: client.V1Job) -> str:
    """
    Determine job status from Kubernetes Job object.
    Returns: 'pending', 'running', 'succeeded', 'failed', 'timed_out'
    """
    if job.status is None:
        return "pending"

    for condition in job.status.conditions or []:
        if condition.type == "Failed" and condition.status == "True":
            if condition.reason == "DeadlineExceeded":
                return "timed_out"
            return "failed"

    if job.status.succeeded and job.status.succeeded > 0:
        return "succeeded"

    if job.status.failed and job.status.failed > 0:
        return "failed"

    if job.status.active and job.status.active > 0:
        return "running"

    return "pending"
