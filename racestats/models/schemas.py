"""
Data Models and Schemas Module
==============================
Defines the structured data handed between the orchestrator, the stage
runner, the job spec builder and the job client.

This module provides:
- Typed command templates with declared worker-side placeholders
- StagePlan: what one stage wants to run
- JobSpec: what is handed to the remote execution service
- JobHandle: a submitted job and its lifecycle state machine

Usage:
    from racestats.models import CommandTemplate, JobSpec, InputMode

    template = CommandTemplate(
        'kart-webm "$MANTA_INPUT_FILE" {output}',
        placeholders=frozenset({INPUT_FILE}),
    )
    command = template.render(output="/dap/stor/kartlytics")
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional, List, Dict, Any, FrozenSet, Tuple
import json
import re

from ..errors import TemplateError, JobStateError


# =============================================================================
# WORKER PLACEHOLDERS
# =============================================================================

# Set by the remote worker for every map task; never resolved locally.
INPUT_FILE = "MANTA_INPUT_FILE"
INPUT_OBJECT = "MANTA_INPUT_OBJECT"

WORKER_PLACEHOLDERS: FrozenSet[str] = frozenset({INPUT_FILE, INPUT_OBJECT})

PLACEHOLDER_PATTERN = re.compile(r"\$(MANTA_[A-Z0-9_]+)")


# =============================================================================
# ENUMS
# =============================================================================

class InputMode(str, Enum):
    """How a job obtains its inputs."""
    DISCOVERED = "discovered"
    EXPLICIT_LIST = "explicit_list"


class JobState(str, Enum):
    """Lifecycle of a remote job as seen by the orchestrator."""
    OPEN = "open"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_TRANSITIONS = {
    JobState.OPEN: {JobState.RUNNING},
    JobState.RUNNING: {JobState.SUCCEEDED, JobState.FAILED},
    JobState.SUCCEEDED: set(),
    JobState.FAILED: set(),
}


# =============================================================================
# BASE CLASSES
# =============================================================================

@dataclass(frozen=True)
class BaseModel:
    """Base class for all data models with common serialization methods."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary, handling nested objects."""
        def convert(obj):
            if isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, (set, frozenset)):
                return sorted(convert(item) for item in obj)
            elif isinstance(obj, (list, tuple)):
                return [convert(item) for item in obj]
            elif isinstance(obj, dict):
                return {k: convert(v) for k, v in obj.items()}
            return obj

        return {k: convert(v) for k, v in asdict(self).items()}

    def to_json(self, indent: int = 2) -> str:
        """Convert model to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


# =============================================================================
# COMMAND TEMPLATES
# =============================================================================

@dataclass(frozen=True)
class CommandTemplate(BaseModel):
    """
    A shell command run by remote workers.

    Two kinds of substitution happen:
    - Local fields ("{output}", "{bin}") are filled in by render() from the
      pipeline configuration before submission.
    - Worker placeholders ("$MANTA_INPUT_FILE") stay unresolved and are
      expanded per input by the remote worker.

    Attributes:
        text: Command text
        placeholders: Worker placeholders the command is declared to use
    """
    text: str
    placeholders: FrozenSet[str] = frozenset()

    def referenced_placeholders(self) -> FrozenSet[str]:
        """Worker placeholders actually referenced by the command text."""
        return frozenset(PLACEHOLDER_PATTERN.findall(self.text))

    def validate(self) -> None:
        """
        Check the declared placeholders against the command text.

        Raises:
            TemplateError: If a placeholder is unknown to the worker, used
                without being declared, or declared but never used.
        """
        referenced = self.referenced_placeholders()

        unknown = (referenced | self.placeholders) - WORKER_PLACEHOLDERS
        if unknown:
            raise TemplateError(
                f"unknown worker placeholder(s) {sorted(unknown)} in: {self.text}"
            )

        undeclared = referenced - self.placeholders
        if undeclared:
            raise TemplateError(
                f"undeclared placeholder(s) {sorted(undeclared)} in: {self.text}"
            )

        unused = self.placeholders - referenced
        if unused:
            raise TemplateError(
                f"declared placeholder(s) {sorted(unused)} not used in: {self.text}"
            )

    def render(self, **fields: Any) -> str:
        """Validate, then fill in local fields. Worker placeholders pass through."""
        self.validate()
        try:
            return self.text.format(**fields)
        except (KeyError, IndexError) as e:
            raise TemplateError(f"missing template field {e} in: {self.text}") from e


# =============================================================================
# STAGE PLAN
# =============================================================================

@dataclass(frozen=True)
class StagePlan(BaseModel):
    """
    One entry of the execution plan.

    Attributes:
        name: Stage name (e.g. "ProcessVideos")
        enabled: Whether the stage runs in this pipeline run
        uses_explicit_inputs: True for explicit-list mode, False for discovery
        map_command: Per-input command
        discovery_command: Reduce-only phase listing inputs (discovery mode)
        reduce_command: Final reduce phase, for stages that aggregate
        required_assets: Remote helper assets the commands invoke
        needs_toolchain: Whether the commands need the toolchain tarball
        explicit_inputs: Inputs to inject in explicit mode, in operator order
    """
    name: str
    enabled: bool
    uses_explicit_inputs: bool
    map_command: CommandTemplate
    discovery_command: Optional[CommandTemplate] = None
    reduce_command: Optional[CommandTemplate] = None
    required_assets: FrozenSet[str] = frozenset()
    needs_toolchain: bool = False
    explicit_inputs: Tuple[str, ...] = ()

    @property
    def input_mode(self) -> InputMode:
        return InputMode.EXPLICIT_LIST if self.uses_explicit_inputs else InputMode.DISCOVERED


# =============================================================================
# JOB SPEC
# =============================================================================

@dataclass(frozen=True)
class JobSpec(BaseModel):
    """
    Declarative description of one remote job.

    Phases run in order: discovery reduce (if any), map, reduce (if any).
    """
    stage_name: str
    map_command: str
    input_mode: InputMode
    asset_dependencies: Tuple[str, ...] = ()
    discovery_command: Optional[str] = None
    reduce_command: Optional[str] = None
    expected_placeholders: FrozenSet[str] = frozenset()

    @property
    def phases(self) -> List[Tuple[str, str]]:
        """Ordered (kind, command) pairs, kind being "map" or "reduce"."""
        phases = []
        if self.discovery_command:
            phases.append(("reduce", self.discovery_command))
        phases.append(("map", self.map_command))
        if self.reduce_command:
            phases.append(("reduce", self.reduce_command))
        return phases


# =============================================================================
# JOB HANDLE
# =============================================================================

@dataclass
class JobHandle:
    """
    A submitted remote job.

    State machine: OPEN -> RUNNING -> SUCCEEDED | FAILED. Jobs submitted
    closed start in RUNNING. Only the job client moves a handle between states.
    """
    job_id: str
    stage_name: str
    state: JobState = JobState.RUNNING

    @property
    def is_open(self) -> bool:
        return self.state == JobState.OPEN

    def require(self, state: JobState, operation: str) -> None:
        """Raise JobStateError unless the handle is in the given state."""
        if self.state != state:
            raise JobStateError(
                f"cannot {operation} job {self.job_id}: state is "
                f"{self.state.value}, expected {state.value}"
            )

    def transition(self, new_state: JobState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise JobStateError(
                f"job {self.job_id}: invalid transition "
                f"{self.state.value} -> {new_state.value}"
            )
        self.state = new_state
