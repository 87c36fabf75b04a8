from api.src.services.engine import get_pipeline_executor

__all__ = ["get_pipeline_executor"]
