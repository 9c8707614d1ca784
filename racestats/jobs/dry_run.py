"""
Dry-run Job Client
==================
Logs every job spec instead of submitting it. Every job succeeds.
"""

import logging
from typing import Dict, List, Sequence

from ..models import JobSpec
from .client import JobClient

logger = logging.getLogger(__name__)


class DryRunJobClient(JobClient):
    """Job client that submits nothing."""

    def __init__(self):
        self._count = 0
        self.specs: List[JobSpec] = []
        self.inputs: Dict[str, List[str]] = {}

    def _create(self, spec: JobSpec, open_job: bool) -> str:
        self._count += 1
        job_id = f"dry-run-{self._count}"
        self.specs.append(spec)
        logger.info(f"[DRY RUN] {spec.stage_name} job spec:\n{spec.to_json()}")
        return job_id

    def _add_inputs(self, job_id: str, stage_name: str, inputs: Sequence[str]) -> None:
        self.inputs.setdefault(job_id, []).extend(inputs)
        logger.info(f"[DRY RUN] {stage_name} inputs: {', '.join(inputs)}")

    def _close(self, job_id: str, stage_name: str) -> None:
        pass

    def _watch(self, job_id: str, stage_name: str) -> bool:
        return True
