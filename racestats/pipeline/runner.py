"""
Stage Runner Module
===================
Runs one stage's plan on the remote service and blocks until it finishes.

Discovery mode:  submit (closed) -> wait
Explicit mode:   submit_open -> add_inputs (operator order) -> wait

A status line is printed before submission and the job id right after, so
the operator can follow the job remotely even if this process dies.
"""

import logging
import time
from typing import Callable, Optional

from ..errors import JobInterruptedError, StageError
from ..jobs import JobClient
from ..logging_config import (
    log_job_submitted,
    log_stage_complete,
    log_stage_error,
    log_stage_start,
)
from ..models import JobHandle, StagePlan
from .builder import build_job_spec
from .context import PipelineConfig, StageResult

logger = logging.getLogger(__name__)


class StageRunner:
    """
    Executes stage plans through a JobClient.

    Args:
        client: Remote job client
        run_id: Run identifier for log records
        echo: Receives operator-facing status lines
    """

    def __init__(
        self,
        client: JobClient,
        run_id: str = "",
        echo: Optional[Callable[[str], None]] = None
    ):
        self.client = client
        self.run_id = run_id
        self.echo = echo or (lambda line: print(line, flush=True))

    def run_stage(self, plan: StagePlan, config: PipelineConfig) -> StageResult:
        """
        Run one stage to completion.

        Returns:
            StageResult of the successful stage

        Raises:
            TemplateError: The stage's job spec could not be built
            SubmitError, AddInputsError, JobFailedError, WaitError,
            JobInterruptedError: The stage failed
        """
        spec = build_job_spec(plan, config)
        mode = "explicit" if plan.uses_explicit_inputs else "discovery"

        log_stage_start(plan.name, self.run_id, spec.input_mode.value)
        self.echo(f"{plan.name}: submitting job ({mode} inputs)")
        start_time = time.time()

        handle: Optional[JobHandle] = None
        try:
            if plan.uses_explicit_inputs:
                handle = self.client.submit_open(spec)
                self._announce(plan, handle)
                self.client.add_inputs(handle, plan.explicit_inputs)
            else:
                handle = self.client.submit(spec)
                self._announce(plan, handle)

            try:
                self.client.wait(handle)
            except KeyboardInterrupt:
                raise JobInterruptedError(
                    plan.name,
                    "interrupted while waiting; the job may still be running",
                    job_id=handle.job_id,
                )

        except StageError as e:
            duration = time.time() - start_time
            log_stage_error(plan.name, self.run_id, str(e), duration)
            raise

        duration = time.time() - start_time
        log_stage_complete(plan.name, self.run_id, duration, job_id=handle.job_id)

        return StageResult(
            stage_name=plan.name,
            success=True,
            duration_seconds=duration,
            job_id=handle.job_id,
            input_mode=spec.input_mode.value,
        )

    def _announce(self, plan: StagePlan, handle: JobHandle) -> None:
        log_job_submitted(plan.name, self.run_id, handle.job_id)
        self.echo(f"{plan.name}: job {handle.job_id}")
