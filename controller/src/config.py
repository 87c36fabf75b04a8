from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List

class Settings(BaseSettings):
    log_level: str = "INFO"

    # Kubernetes settings
    k8s_namespace: str = "laneci"
    k8s_in_cluster: bool = False  # Set True when running inside K8s

    # Job settings
    default_step_timeout_ms: int = 300000  # 5 minutes default
    job_ttl_after_finished: int = 300  # Clean up jobs after 5 min
    job_poll_interval: float = 2.0
    log_tail_lines: int = 1000

    # Pipeline files looked up in a checkout, first match wins
    config_file_names: List[str] = [
        ".laneci.yml",
        ".laneci.yaml",
        "laneci.yml",
        "laneci.yaml",
    ]

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings() -> Settings:
    return Settings()
