"""
Pipeline Context Module
=======================
Defines the run configuration and the run record shared by all stages.

PipelineConfig is immutable: it is built once from CLI flags and the
application configuration, then only read.

PipelineContext is the in-memory record of one run:
- Stage outcomes (timing, job ids, errors)
- Run identification

Nothing here is persisted; remote stage outputs are the only durable state.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, List, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    """
    Immutable configuration of one pipeline run.

    Attributes:
        output_location: Destination for all stage outputs
        video_source: Directory videos are discovered from
        explicit_videos: Specific videos, in operator order, without
            duplicates (later repeats are dropped). Non-empty
            selects explicit mode for every stage and disables Aggregate.
        generate_webm: Run the GenerateWebm stage
        force_retranscribe: Passed through to the transcription command
        upload_assets: Publish local helper assets before the first stage
        asset_bundle_location: Remote root of published assets
        bin_assets_location: Remote directory holding helper scripts
        toolchain_tarball_location: Remote toolchain tarball
        local_assets_dir: Local directory the publisher archives
        worker_asset_root: Where workers see assets
        video_pattern: Regular expression matching video object names
        dry_run: Build and log job specs without submitting anything
    """
    output_location: str
    video_source: str
    explicit_videos: Tuple[str, ...] = ()
    generate_webm: bool = False
    force_retranscribe: bool = False
    upload_assets: bool = False
    asset_bundle_location: str = ""
    bin_assets_location: str = ""
    toolchain_tarball_location: str = ""
    local_assets_dir: Optional[Path] = None
    worker_asset_root: str = "/assets"
    video_pattern: str = r"\.(mov|mp4)$"
    dry_run: bool = False

    def __post_init__(self):
        if not self.output_location:
            raise ValueError("output_location is required")
        # Accept any sequence; keep first occurrence of each video
        object.__setattr__(self, 'explicit_videos', tuple(dict.fromkeys(self.explicit_videos)))

    @property
    def uses_explicit_inputs(self) -> bool:
        return len(self.explicit_videos) > 0

    @property
    def runs_aggregate(self) -> bool:
        """Aggregation is defined only over the full corpus."""
        return not self.uses_explicit_inputs


@dataclass
class StageResult:
    """Result of a single pipeline stage execution."""
    stage_name: str
    success: bool
    duration_seconds: float
    job_id: Optional[str] = None
    input_mode: Optional[str] = None
    skipped: bool = False
    error_message: Optional[str] = None


@dataclass
class PipelineContext:
    """
    Record of one pipeline run.

    Attributes:
        config: The run's configuration
        run_id: Unique identifier for this run (tags log records)
        stage_results: Timing and status for each stage
        started_at: Run start timestamp
        completed_at: Run completion timestamp
    """
    config: PipelineConfig
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    stage_results: List[StageResult] = field(default_factory=list)
    assets_published: bool = False
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    def __post_init__(self):
        self.started_at = datetime.now().isoformat()

    @property
    def total_duration_seconds(self) -> float:
        return sum(r.duration_seconds for r in self.stage_results)

    @property
    def successful_stages(self) -> List[str]:
        return [r.stage_name for r in self.stage_results if r.success and not r.skipped]

    @property
    def skipped_stages(self) -> List[str]:
        return [r.stage_name for r in self.stage_results if r.skipped]

    @property
    def job_chain(self) -> str:
        """Operator-facing chain, e.g. "ProcessVideos:abc -> ProcessTranscripts:def"."""
        return " -> ".join(
            f"{r.stage_name}:{r.job_id}" for r in self.stage_results if r.job_id
        )

    def record(self, result: StageResult) -> None:
        """Record the result of a stage execution."""
        self.stage_results.append(result)

    def record_skip(self, stage_name: str, reason: str) -> None:
        self.stage_results.append(StageResult(
            stage_name=stage_name,
            success=True,
            duration_seconds=0.0,
            skipped=True,
        ))
        logger.info(f"Skipping stage {stage_name}: {reason}")

    def finalize(self) -> None:
        self.completed_at = datetime.now().isoformat()
