"""
Container executor contract shared by the run engine and its runners.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

class ContainerError(Exception):
    """Base class for failures reported by a container runner."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output

class ContainerPullError(ContainerError):
    """The image could not be pulled."""
    pass

class ContainerRuntimeError(ContainerError):
    """The command ran and failed, or the container could not be run."""

    def __init__(self, message: str, output: str = "", exit_code: Optional[int] = None):
        super().__init__(message, output)
        self.exit_code = exit_code

class ContainerTimeoutError(ContainerError):
    """The command did not finish within its timeout."""

    def __init__(self, timeout_ms: int, output: str = ""):
        super().__init__(f"Command timed out after {timeout_ms}ms", output)
        self.timeout_ms = timeout_ms

@dataclass
class ExecutionOptions:
    working_dir: Optional[str] = None
    environment: Dict[str, str] = field(default_factory=dict)
    timeout_ms: Optional[int] = None

@dataclass
class ContainerResult:
    output: str
    exit_code: Optional[int] = 0

class ContainerRunner(Protocol):
    async def run(
        self,
        image: str,
        command: List[str],
        options: ExecutionOptions,
    ) -> ContainerResult:
        """Run one command to completion, raising a ContainerError on failure."""
        ...
