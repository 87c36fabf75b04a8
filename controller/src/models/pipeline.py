"""
Pipeline definition models.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Dict, Any

def stringify_environment(value: Any) -> Any:
    # YAML reads `PORT: 8080` and `DEBUG: true` as int and bool
    if not isinstance(value, dict):
        return value
    result = {}
    for key, item in value.items():
        if isinstance(item, bool):
            item = "true" if item else "false"
        elif isinstance(item, (int, float)):
            item = str(item)
        result[key] = item
    return result

class PipelineTriggers(BaseModel):
    branches: List[str] = []
    tags: List[str] = []
    events: List[str] = []

    def matches(
        self,
        event: str,
        branch: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> bool:
        """Check an incoming event against the filters. Empty filters match anything."""
        if self.events and event not in self.events:
            return False
        if branch is not None and self.branches and branch not in self.branches:
            return False
        if tag is not None and self.tags and tag not in self.tags:
            return False
        return True

class StepDefinition(BaseModel):
    name: Optional[str] = None
    image: Optional[str] = None
    commands: List[str] = []
    environment: Dict[str, str] = {}
    working_dir: Optional[str] = Field(default=None, alias="workingDir")
    timeout: Optional[int] = None  # milliseconds
    depends_on: List[str] = Field(default_factory=list, alias="dependsOn")

    class Config:
        populate_by_name = True

    @field_validator("environment", mode="before")
    @classmethod
    def _stringify_environment(cls, value):
        return stringify_environment(value)

class PipelineDefinition(BaseModel):
    version: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    triggers: Optional[PipelineTriggers] = None
    steps: List[StepDefinition] = []
    environment: Dict[str, str] = {}
    timeout: Optional[int] = None  # default step timeout, milliseconds

    class Config:
        populate_by_name = True

    @field_validator("version", mode="before")
    @classmethod
    def _numeric_version(cls, value):
        # `version: 1.0` arrives from YAML as a float
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("environment", mode="before")
    @classmethod
    def _stringify_environment(cls, value):
        return stringify_environment(value)
