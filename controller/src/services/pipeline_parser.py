"""
Pipeline YAML parser, validator and dependency grapher.
"""

import logging
import os
from typing import List, Dict, Any, Optional, Set

import yaml
from pydantic import ValidationError

from controller.src.config import get_settings
from controller.src.models.pipeline import PipelineDefinition, StepDefinition

logger = logging.getLogger(__name__)

class PipelineConfigError(Exception):
    """Raised when pipeline configuration is invalid."""
    pass

class MissingDependencyError(PipelineConfigError):
    """Raised when a step depends on a step that is not defined."""

    def __init__(self, step: str, dependency: str):
        self.step = step
        self.dependency = dependency
        super().__init__(
            f"Step '{step}' depends on non-existent step '{dependency}'"
        )

class CircularDependencyError(PipelineConfigError):
    """Raised when the dependency relation contains a cycle."""

    def __init__(self, step: str, cycle: List[str]):
        self.step = step
        self.cycle = cycle
        super().__init__(
            f"Circular dependency detected involving step '{step}': "
            + " -> ".join(cycle)
        )

def parse_pipeline_config(yaml_content: str) -> PipelineDefinition:
    """Parse pipeline YAML configuration from string."""
    try:
        config = yaml.safe_load(yaml_content)
    except yaml.YAMLError as e:
        raise PipelineConfigError(f"Invalid YAML: {e}")

    return parse_pipeline_dict(config)

def parse_pipeline_dict(config: Optional[Dict[str, Any]]) -> PipelineDefinition:
    """Validate pipeline configuration from a decoded document."""
    if not config:
        raise PipelineConfigError("Empty pipeline configuration")

    if not isinstance(config, dict):
        raise PipelineConfigError("Pipeline configuration must be a dictionary")

    steps = config.get("steps")
    if steps is not None and not isinstance(steps, list):
        raise PipelineConfigError("Pipeline 'steps' must be a list")

    for i, step in enumerate(steps or []):
        if not isinstance(step, dict):
            raise PipelineConfigError(f"Step {i} must be a dictionary")

    try:
        definition = PipelineDefinition.model_validate(config)
    except ValidationError as e:
        raise PipelineConfigError(f"Invalid pipeline configuration: {e}")

    return validate_definition(definition)

def validate_definition(definition: PipelineDefinition) -> PipelineDefinition:
    """
    Validate a pipeline definition, failing on the first violation.
    Returns the definition unchanged when it is usable.
    """
    if not definition.version:
        raise PipelineConfigError("Pipeline version is required")

    if not definition.name:
        raise PipelineConfigError("Pipeline name is required")

    if not definition.steps:
        raise PipelineConfigError("At least one step is required")

    if definition.timeout is not None and definition.timeout <= 0:
        raise PipelineConfigError("Pipeline timeout must be a positive number of milliseconds")

    seen: Set[str] = set()
    for i, step in enumerate(definition.steps):
        validate_step(step, i)
        if step.name in seen:
            raise PipelineConfigError(f"Step {i}: duplicate step name '{step.name}'")
        seen.add(step.name)

    for step in definition.steps:
        for dep in step.depends_on:
            if dep not in seen:
                raise MissingDependencyError(step.name, dep)

    check_circular_dependencies(definition.steps)

    logger.debug(
        f"Validated pipeline '{definition.name}' with {len(definition.steps)} steps"
    )
    return definition

def validate_step(step: StepDefinition, index: int):
    """Validate required fields of a single pipeline step."""
    if not step.name:
        raise PipelineConfigError(f"Step {index}: name is required")

    if not step.image:
        raise PipelineConfigError(f"Step {index}: image is required")

    if not step.commands:
        raise PipelineConfigError(f"Step {index}: at least one command is required")

    if step.timeout is not None and step.timeout <= 0:
        raise PipelineConfigError(f"Step {index}: timeout must be a positive number of milliseconds")

def check_circular_dependencies(steps: List[StepDefinition]):
    """
    Depth-first search over step -> dependency edges.
    Every step is used as a starting point so disconnected cycles are found too.
    """
    graph = {step.name: step.depends_on for step in steps}
    visited: Set[str] = set()
    on_stack: List[str] = []

    def visit(name: str) -> Optional[List[str]]:
        if name in on_stack:
            return on_stack[on_stack.index(name):] + [name]
        if name in visited:
            return None

        on_stack.append(name)
        for dep in graph.get(name, []):
            cycle = visit(dep)
            if cycle:
                return cycle
        on_stack.pop()
        visited.add(name)
        return None

    for step in steps:
        cycle = visit(step.name)
        if cycle:
            raise CircularDependencyError(cycle[0], cycle)

def find_config_file(repo_path: str) -> Optional[str]:
    """Return the first conventional pipeline file present in the checkout."""
    for file_name in get_settings().config_file_names:
        config_path = os.path.join(repo_path, file_name)
        if os.path.isfile(config_path):
            return config_path

    return None

def load_pipeline_config(repo_path: str) -> Optional[PipelineDefinition]:
    """
    Read and validate the pipeline file from a repository checkout.
    Returns None if the checkout has no pipeline file.
    """
    config_path = find_config_file(repo_path)
    if config_path is None:
        logger.warning(f"No pipeline configuration found in {repo_path}")
        return None

    logger.info(f"Loading pipeline configuration from {config_path}")
    with open(config_path, "r") as f:
        return parse_pipeline_config(f.read())
