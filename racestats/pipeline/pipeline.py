"""
Pipeline Orchestrator Module
============================
Resolves a PipelineConfig into an execution plan and runs it.

Order: [publish assets] -> ProcessVideos -> [GenerateWebm] ->
ProcessTranscripts -> [Aggregate]

- GenerateWebm runs iff generate_webm is set.
- Aggregate runs iff no explicit videos were given.
- Explicit videos switch every stage from discovery to explicit inputs.
- The first failure aborts the run; completed stages are left as they are.

Usage:
    from racestats.pipeline import PipelineOrchestrator
    from racestats.jobs import MantaJobClient

    orchestrator = PipelineOrchestrator(MantaJobClient())
    context = orchestrator.run(config)
    print(context.job_chain)
"""

import logging
import time
from typing import Callable, List, Optional

from ..assets import AssetPublisher
from ..errors import PublishError, StageError
from ..jobs import JobClient
from ..logging_config import log_pipeline_decision
from ..models import StagePlan
from .base import PipelineStage
from .context import PipelineConfig, PipelineContext, StageResult
from .runner import StageRunner
from .stages import ALL_STAGES

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """
    Sequences the pipeline's stages on the remote service.

    Runs stages strictly one after another; each stage's job must finish
    successfully before the next is submitted.
    """

    def __init__(
        self,
        client: JobClient,
        publisher: Optional[AssetPublisher] = None,
        stages: Optional[List[PipelineStage]] = None,
        echo: Optional[Callable[[str], None]] = None,
        log_decisions: bool = True
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Remote job client used by every stage
            publisher: Asset publisher used when upload_assets is set
            stages: Stage instances in dependency order. If None, uses default stages.
            echo: Receives operator-facing status lines (default: print)
            log_decisions: Whether to log planning decisions
        """
        self.client = client
        self.publisher = publisher or AssetPublisher()
        # Record of the current or most recent run, kept when a stage fails
        self.context: Optional[PipelineContext] = None
        self.echo = echo
        self.log_decisions = log_decisions

        if stages is None:
            self.stages = [stage_class() for stage_class in ALL_STAGES]
        else:
            self.stages = stages

    def plan(self, config: PipelineConfig) -> List[StagePlan]:
        """Every stage's plan, in order, including disabled ones."""
        return [stage.plan(config) for stage in self.stages]

    def run(self, config: PipelineConfig) -> PipelineContext:
        """
        Run the pipeline.

        Args:
            config: Run configuration

        Returns:
            The run record

        Raises:
            PublishError: Asset publishing failed; no stage ran
            StageError: A stage failed; later stages were not attempted
            TemplateError: A stage's job spec could not be built
        """
        context = PipelineContext(config=config)
        self.context = context
        plans = self.plan(config)

        logger.info(f"Starting pipeline run {context.run_id}")
        log_pipeline_decision(
            "input_mode",
            {
                'mode': "explicit" if config.uses_explicit_inputs else "discovery",
                'videos': list(config.explicit_videos),
            },
            run_id=context.run_id,
            enabled=self.log_decisions,
        )

        if config.upload_assets:
            self._publish(config, context)

        runner = StageRunner(self.client, run_id=context.run_id, echo=self.echo)

        for plan in plans:
            if not plan.enabled:
                reason = self._skip_reason(plan.name, config)
                context.record_skip(plan.name, reason)
                log_pipeline_decision(
                    "stage_skipped",
                    {'stage': plan.name, 'reason': reason},
                    run_id=context.run_id,
                    enabled=self.log_decisions,
                )
                continue

            start_time = time.time()
            try:
                result = runner.run_stage(plan, config)
            except StageError as e:
                context.record(StageResult(
                    stage_name=plan.name,
                    success=False,
                    duration_seconds=time.time() - start_time,
                    job_id=e.job_id,
                    input_mode=plan.input_mode.value,
                    error_message=e.message,
                ))
                logger.error(f"Pipeline failed at stage: {plan.name}")
                raise

            context.record(result)

        context.finalize()
        logger.info(f"Pipeline run {context.run_id} completed: {context.job_chain}")
        return context

    def _publish(self, config: PipelineConfig, context: PipelineContext) -> None:
        if config.local_assets_dir is None:
            raise PublishError("no local assets directory configured")

        if config.dry_run:
            logger.info(
                f"[DRY RUN] would publish {config.local_assets_dir} "
                f"to {config.bin_assets_location}"
            )
            return

        names = self.publisher.publish(config.local_assets_dir, config.bin_assets_location)
        context.assets_published = True
        logger.info(f"Published assets: {', '.join(names)}")

    @staticmethod
    def _skip_reason(stage_name: str, config: PipelineConfig) -> str:
        if stage_name == "Aggregate" and not config.runs_aggregate:
            return "explicit videos given; aggregation needs the full corpus"
        if stage_name == "GenerateWebm" and not config.generate_webm:
            return "webm generation not requested"
        return "condition not met"
