"""
Collect logs and termination details from Kubernetes pods.
"""

import logging
from typing import Optional, Tuple
from kubernetes import client
from kubernetes.client.rest import ApiException

from controller.src.k8s.client import get_core_api
from controller.src.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

PULL_FAILURE_REASONS = {
    "ErrImagePull",
    "ImagePullBackOff",
    "InvalidImageName",
    "ErrImageNeverPull",
}

def get_job_pod(job_name: str) -> Optional[client.V1Pod]:
    """Get the pod for a job."""
    core_v1 = get_core_api()

    try:
        pods = core_v1.list_namespaced_pod(
            namespace=settings.k8s_namespace,
            label_selector=f"job-name={job_name}",
        )

        if pods.items:
            return pods.items[0]
        return None
    except ApiException as e:
        logger.error(f"Failed to get pod for job {job_name}: {e}")
        return None

def get_pull_failure(pod: Optional[client.V1Pod]) -> Optional[str]:
    """Return the waiting message if the pod is stuck pulling its image."""
    if pod is None or pod.status is None:
        return None

    for status in pod.status.container_statuses or []:
        waiting = status.state.waiting if status.state else None
        if waiting and waiting.reason in PULL_FAILURE_REASONS:
            return f"{waiting.reason}: {waiting.message or status.image}"
    return None

def get_exit_code(pod: Optional[client.V1Pod]) -> Tuple[Optional[int], Optional[str]]:
    """Return (exit code, reason) of the pod's terminated container."""
    if pod is None or pod.status is None:
        return None, None

    for status in pod.status.container_statuses or []:
        terminated = status.state.terminated if status.state else None
        if terminated:
            return terminated.exit_code, terminated.reason
    return None, None

def collect_logs(job_name: str) -> str:
    """Collect logs from a job's pod."""
    core_v1 = get_core_api()

    pod = get_job_pod(job_name)
    if pod is None:
        return ""

    pod_name = pod.metadata.name
    try:
        return core_v1.read_namespaced_pod_log(
            name=pod_name,
            namespace=settings.k8s_namespace,
            tail_lines=settings.log_tail_lines,  # Limit log lines
        ) or ""
    except ApiException as e:
        if e.status == 400:
            # Container never started
            return ""
        logger.error(f"Failed to collect logs for {pod_name}: {e}")
        return f"Error collecting logs: {e.reason}\n"
