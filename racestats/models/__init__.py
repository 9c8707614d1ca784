"""
Data Models Package
===================
Exports all data model classes for the racestats pipeline.

Usage:
    from racestats.models import CommandTemplate, StagePlan, JobSpec
    from racestats.models import JobHandle, JobState, InputMode
"""

from .schemas import (
    # Enums
    InputMode,
    JobState,

    # Base
    BaseModel,

    # Templates
    CommandTemplate,
    INPUT_FILE,
    INPUT_OBJECT,
    WORKER_PLACEHOLDERS,

    # Plans and jobs
    StagePlan,
    JobSpec,
    JobHandle,
)

__all__ = [
    # Enums
    'InputMode',
    'JobState',

    # Base
    'BaseModel',

    # Templates
    'CommandTemplate',
    'INPUT_FILE',
    'INPUT_OBJECT',
    'WORKER_PLACEHOLDERS',

    # Plans and jobs
    'StagePlan',
    'JobSpec',
    'JobHandle',
]
