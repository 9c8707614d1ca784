"""
Pipeline Package
================
Stage sequencing for racestats runs.

This package provides:
- The four pipeline stages and their command templates
- The job spec builder
- The stage runner (one stage, one remote job)
- The orchestrator that runs all enabled stages in order

Usage:
    from racestats.pipeline import PipelineOrchestrator, PipelineConfig

    config = PipelineConfig(output_location="/dap/stor/kart", video_source=...)
    context = PipelineOrchestrator(client).run(config)
"""

from .context import PipelineConfig, PipelineContext, StageResult
from .base import PipelineStage
from .builder import build_job_spec
from .runner import StageRunner
from .pipeline import PipelineOrchestrator

__all__ = [
    'PipelineConfig',
    'PipelineContext',
    'StageResult',
    'PipelineStage',
    'build_job_spec',
    'StageRunner',
    'PipelineOrchestrator',
]
