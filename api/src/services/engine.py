"""
Process-wide pipeline executor used by the API.
"""

from functools import lru_cache

from controller.src.k8s.runner import KubernetesJobRunner
from controller.src.services.executor import PipelineExecutor

@lru_cache()
def get_pipeline_executor() -> PipelineExecutor:
    return PipelineExecutor(KubernetesJobRunner())
