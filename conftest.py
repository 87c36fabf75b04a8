"""Shared test fixtures."""

import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from controller.src.services.container import ContainerResult, ExecutionOptions

class FakeContainerRunner:
    """
    Scripted container runner.
    Commands that were not scripted succeed and echo themselves.
    """

    def __init__(self):
        self.calls: List[Tuple[str, str, ExecutionOptions]] = []
        self.argv: List[List[str]] = []
        self.events: List[Tuple[str, str]] = []
        self.active = 0
        self.max_active = 0
        self._scripts: Dict[str, Tuple[str, Optional[Exception], float]] = {}

    def script(self, command: str, output: str = "", error: Exception = None, delay: float = 0.0):
        self._scripts[command] = (output, error, delay)

    async def run(self, image, command, options):
        shell_command = command[-1]
        self.calls.append((image, shell_command, options))
        self.argv.append(list(command))
        output, error, delay = self._scripts.get(
            shell_command, (f"{shell_command}\n", None, 0.0)
        )

        self.events.append(("start", shell_command))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(delay)
        finally:
            self.active -= 1
            self.events.append(("end", shell_command))

        if error is not None:
            raise error
        return ContainerResult(output=output, exit_code=0)

    def commands(self) -> List[str]:
        return [command for _, command, _ in self.calls]

@pytest.fixture
def fake_runner():
    return FakeContainerRunner()
