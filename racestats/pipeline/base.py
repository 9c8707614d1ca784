"""
Pipeline Base Module
====================
Defines the base class for all pipeline stages.

Each stage:
- Has a name
- Declares its remote commands as typed templates
- Declares the helper scripts it invokes and whether it needs the toolchain
- Produces a StagePlan for a given PipelineConfig

Stages never talk to the remote service themselves; the StageRunner runs
their plans.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from ..models import CommandTemplate, StagePlan
from .builder import helper_location
from .context import PipelineConfig

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """
    Abstract base class for pipeline stages.

    Subclasses must implement:
    - name: Stage identifier
    - map_command(): The per-input command

    And may override:
    - discovery_command(): How inputs are found in discovery mode
    - reduce_command(): A final reduce phase
    - explicit_inputs(): What to inject in explicit mode
    - helpers / needs_toolchain: Asset declarations
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this stage."""
        pass

    @property
    def helpers(self) -> Tuple[str, ...]:
        """Helper scripts (under the bin assets location) the commands invoke."""
        return ()

    @property
    def needs_toolchain(self) -> bool:
        """Whether the commands need the toolchain tarball."""
        return False

    @abstractmethod
    def map_command(self, config: PipelineConfig) -> CommandTemplate:
        pass

    def discovery_command(self, config: PipelineConfig) -> Optional[CommandTemplate]:
        return None

    def reduce_command(self, config: PipelineConfig) -> Optional[CommandTemplate]:
        return None

    def explicit_inputs(self, config: PipelineConfig) -> Tuple[str, ...]:
        return config.explicit_videos

    def should_run(self, config: PipelineConfig) -> bool:
        return True

    def plan(self, config: PipelineConfig) -> StagePlan:
        """Build this stage's entry of the execution plan."""
        explicit = config.uses_explicit_inputs
        return StagePlan(
            name=self.name,
            enabled=self.should_run(config),
            uses_explicit_inputs=explicit,
            map_command=self.map_command(config),
            discovery_command=None if explicit else self.discovery_command(config),
            reduce_command=self.reduce_command(config),
            required_assets=frozenset(
                helper_location(config, helper) for helper in self.helpers
            ),
            needs_toolchain=self.needs_toolchain,
            explicit_inputs=tuple(self.explicit_inputs(config)) if explicit else (),
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.name}>"


class ConditionalStage(PipelineStage):
    """
    A pipeline stage that only runs if a condition is met.

    Its plan is still built (with enabled=False) so the skip is visible.
    """

    @abstractmethod
    def should_run(self, config: PipelineConfig) -> bool:
        """
        Determine if this stage should run.

        Args:
            config: The run configuration

        Returns:
            True if the stage should execute, False to skip
        """
        pass
