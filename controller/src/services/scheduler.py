"""
Execution scheduler - groups steps into dependency levels.
"""

import logging
from typing import List, Set

from controller.src.models.pipeline import StepDefinition

logger = logging.getLogger(__name__)

class SchedulingError(Exception):
    """Raised when steps remain but none of them can be scheduled."""
    pass

def schedule(steps: List[StepDefinition]) -> List[List[StepDefinition]]:
    """
    Build the ordered list of execution groups.

    Each group holds every not-yet-scheduled step whose dependencies were all
    scheduled in earlier groups. Steps inside a group keep declaration order
    and may run concurrently.
    """
    groups: List[List[StepDefinition]] = []
    scheduled: Set[str] = set()
    remaining = list(steps)

    while remaining:
        group = [
            step for step in remaining
            if all(dep in scheduled for dep in step.depends_on)
        ]

        if not group:
            names = ", ".join(step.name for step in remaining)
            raise SchedulingError(
                f"Circular dependency or invalid step configuration: "
                f"cannot schedule {names}"
            )

        groups.append(group)
        scheduled.update(step.name for step in group)
        remaining = [step for step in remaining if step.name not in scheduled]

    layout = [[step.name for step in group] for group in groups]
    logger.debug(f"Scheduled {len(steps)} steps into {len(groups)} groups: {layout}")
    return groups
