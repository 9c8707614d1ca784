"""
Pipeline Stages Module
======================
The four stages of a racestats run, in dependency order.

Stages:
1. ProcessVideosStage - Transcribe each video into a transcript
2. GenerateWebmStage - Transcode each video to webm (optional)
3. ProcessTranscriptsStage - Extract race data from each transcript
4. AggregateStage - Reduce all race data to one summary (discovery mode only)

Helper scripts are opaque programs published under the bin assets location.
They write their outputs by the conventions in utils.remote_paths.
"""

import logging
import re
from typing import Optional, Tuple

from ..models import CommandTemplate, INPUT_FILE, INPUT_OBJECT
from ..utils.remote_paths import RACES_NAME, TRANSCRIPT_NAME, transcript_location
from .base import PipelineStage, ConditionalStage
from .builder import DISCOVERY_HELPER
from .context import PipelineConfig

logger = logging.getLogger(__name__)

PER_INPUT = frozenset({INPUT_FILE, INPUT_OBJECT})


def _find_videos() -> CommandTemplate:
    return CommandTemplate(
        "{bin}/" + DISCOVERY_HELPER + " {video_source} '{video_pattern}'"
    )


def _named(filename: str) -> str:
    """Pattern matching objects with exactly this file name."""
    return "/" + re.escape(filename) + "$"


# =============================================================================
# STAGE 1: PROCESS VIDEOS
# =============================================================================

class ProcessVideosStage(PipelineStage):
    """
    Transcribe each video into a transcript.

    Reads:
        - videos under video_source, or the explicit videos
    Writes:
        - <output>/<basename(video)>/transcript.json
    """

    @property
    def name(self) -> str:
        return "ProcessVideos"

    @property
    def helpers(self) -> Tuple[str, ...]:
        return ("video-transcribe",)

    @property
    def needs_toolchain(self) -> bool:
        return True

    def map_command(self, config: PipelineConfig) -> CommandTemplate:
        return CommandTemplate(
            '{bin}/video-transcribe{force} {toolchain} '
            '"$MANTA_INPUT_FILE" "$MANTA_INPUT_OBJECT" {output}',
            placeholders=PER_INPUT,
        )

    def discovery_command(self, config: PipelineConfig) -> Optional[CommandTemplate]:
        return _find_videos()


# =============================================================================
# STAGE 2: GENERATE WEBM
# =============================================================================

class GenerateWebmStage(ConditionalStage):
    """
    Transcode each video to webm for browser playback.

    Nothing downstream reads its output.

    Writes:
        - <output>/<basename(video)>.webm
    """

    @property
    def name(self) -> str:
        return "GenerateWebm"

    @property
    def helpers(self) -> Tuple[str, ...]:
        return ("video-webm",)

    def should_run(self, config: PipelineConfig) -> bool:
        return config.generate_webm

    def map_command(self, config: PipelineConfig) -> CommandTemplate:
        return CommandTemplate(
            '{bin}/video-webm "$MANTA_INPUT_FILE" "$MANTA_INPUT_OBJECT" {output}',
            placeholders=PER_INPUT,
        )

    def discovery_command(self, config: PipelineConfig) -> Optional[CommandTemplate]:
        return _find_videos()


# =============================================================================
# STAGE 3: PROCESS TRANSCRIPTS
# =============================================================================

class ProcessTranscriptsStage(PipelineStage):
    """
    Extract race-level data from each transcript.

    Reads:
        - <output>/<basename(video)>/transcript.json
    Writes:
        - <output>/<basename(video)>/races.json
    """

    @property
    def name(self) -> str:
        return "ProcessTranscripts"

    @property
    def helpers(self) -> Tuple[str, ...]:
        return ("transcript-races",)

    @property
    def needs_toolchain(self) -> bool:
        return True

    def map_command(self, config: PipelineConfig) -> CommandTemplate:
        return CommandTemplate(
            '{bin}/transcript-races {toolchain} '
            '"$MANTA_INPUT_FILE" "$MANTA_INPUT_OBJECT" {output}',
            placeholders=PER_INPUT,
        )

    def discovery_command(self, config: PipelineConfig) -> Optional[CommandTemplate]:
        return CommandTemplate(
            "{bin}/" + DISCOVERY_HELPER + " {output} '" + _named(TRANSCRIPT_NAME) + "'"
        )

    def explicit_inputs(self, config: PipelineConfig) -> Tuple[str, ...]:
        return tuple(
            transcript_location(config.output_location, video)
            for video in config.explicit_videos
        )


# =============================================================================
# STAGE 4: AGGREGATE
# =============================================================================

class AggregateStage(ConditionalStage):
    """
    Reduce race data and video metadata of the whole corpus to one summary.

    Reads:
        - <output>/*/races.json
        - per-video metadata (*.json) under video_source
    Writes:
        - <output>/summary.json
    """

    @property
    def name(self) -> str:
        return "Aggregate"

    @property
    def helpers(self) -> Tuple[str, ...]:
        return ("races-annotate", "races-aggregate")

    def should_run(self, config: PipelineConfig) -> bool:
        return config.runs_aggregate

    def map_command(self, config: PipelineConfig) -> CommandTemplate:
        return CommandTemplate(
            '{bin}/races-annotate "$MANTA_INPUT_FILE" "$MANTA_INPUT_OBJECT"',
            placeholders=PER_INPUT,
        )

    def discovery_command(self, config: PipelineConfig) -> Optional[CommandTemplate]:
        return CommandTemplate(
            "{bin}/" + DISCOVERY_HELPER
            + " {output} '" + _named(RACES_NAME) + "' {video_source} '\\.json$'"
        )

    def reduce_command(self, config: PipelineConfig) -> Optional[CommandTemplate]:
        return CommandTemplate("{bin}/races-aggregate | mpipe {summary}")

    def explicit_inputs(self, config: PipelineConfig) -> Tuple[str, ...]:
        return ()


# =============================================================================
# STAGE REGISTRY
# =============================================================================

ALL_STAGES = [
    ProcessVideosStage,
    GenerateWebmStage,
    ProcessTranscriptsStage,
    AggregateStage,
]
