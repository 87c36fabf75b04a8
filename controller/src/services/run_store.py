"""
In-memory run store. Runs live for the lifetime of the process.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Protocol

from controller.src.models.run import PipelineRun

class RunStore(Protocol):
    def add(self, run: PipelineRun) -> None: ...

    def get(self, run_id: str) -> Optional[PipelineRun]: ...

    def list(self) -> List[PipelineRun]: ...

    def locked(self, run_id: str): ...

class InMemoryRunStore:
    """
    Insertion-ordered mapping of run id to PipelineRun.

    Each run has its own lock. Writers go through `locked()`, readers get
    deep copies taken under the same lock, so a snapshot never shows a
    half-applied update.
    """

    def __init__(self):
        self._runs: Dict[str, PipelineRun] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def add(self, run: PipelineRun) -> None:
        with self._guard:
            if run.id in self._runs:
                raise ValueError(f"Run {run.id} already exists")
            self._locks[run.id] = threading.Lock()
            self._runs[run.id] = run

    def get(self, run_id: str) -> Optional[PipelineRun]:
        with self.locked(run_id) as run:
            return run.model_copy(deep=True) if run else None

    def list(self) -> List[PipelineRun]:
        with self._guard:
            run_ids = list(self._runs)
        snapshots = [self.get(run_id) for run_id in run_ids]
        return [run for run in snapshots if run is not None]

    def __contains__(self, run_id: str) -> bool:
        return run_id in self._runs

    def __len__(self) -> int:
        return len(self._runs)

    @contextmanager
    def locked(self, run_id: str) -> Iterator[Optional[PipelineRun]]:
        """Yield the live run while holding its lock, or None if unknown."""
        with self._guard:
            lock = self._locks.get(run_id)
            run = self._runs.get(run_id)

        if lock is None:
            yield None
            return

        with lock:
            yield run
