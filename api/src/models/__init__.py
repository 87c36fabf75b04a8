from api.src.models.run import (
    RunCreateRequest,
    RunCreatedResponse,
    CancelResponse,
    StepLogs,
    RunLogsResponse,
)

__all__ = [
    "RunCreateRequest",
    "RunCreatedResponse",
    "CancelResponse",
    "StepLogs",
    "RunLogsResponse",
]
