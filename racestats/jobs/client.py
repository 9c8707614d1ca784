"""
Job Client Module
=================
Interface to the remote execution service.

The public operations enforce the job lifecycle on the JobHandle:

    submit(spec)              -> handle in RUNNING
    submit_open(spec)         -> handle in OPEN
    add_inputs(handle, [...]) -> only while OPEN
    close(handle)             -> OPEN -> RUNNING
    wait(handle)              -> closes an OPEN job first, blocks until the job
                                 terminates, SUCCEEDED or raises

Subclasses only talk to the service; they implement _create, _add_inputs,
_close and _watch.
"""

import logging
from abc import ABC, abstractmethod
from typing import Sequence

from ..errors import JobFailedError
from ..models import JobHandle, JobSpec, JobState

logger = logging.getLogger(__name__)


class JobClient(ABC):
    """
    Abstract base class for remote job clients.

    Subclasses must implement:
    - _create(): Submit a spec, return the job id
    - _add_inputs(): Send inputs to an open job, in order
    - _close(): Stop accepting inputs
    - _watch(): Block until the job terminates, return True on success

    Service errors are raised by subclasses as SubmitError, AddInputsError
    and WaitError.
    """

    @abstractmethod
    def _create(self, spec: JobSpec, open_job: bool) -> str:
        pass

    @abstractmethod
    def _add_inputs(self, job_id: str, stage_name: str, inputs: Sequence[str]) -> None:
        pass

    @abstractmethod
    def _close(self, job_id: str, stage_name: str) -> None:
        pass

    @abstractmethod
    def _watch(self, job_id: str, stage_name: str) -> bool:
        pass

    def submit(self, spec: JobSpec) -> JobHandle:
        """Submit a job that takes no further inputs."""
        job_id = self._create(spec, open_job=False)
        logger.debug(f"Created job {job_id} for {spec.stage_name}")
        return JobHandle(job_id=job_id, stage_name=spec.stage_name, state=JobState.RUNNING)

    def submit_open(self, spec: JobSpec) -> JobHandle:
        """Submit a job that accepts inputs until closed."""
        job_id = self._create(spec, open_job=True)
        logger.debug(f"Created open job {job_id} for {spec.stage_name}")
        return JobHandle(job_id=job_id, stage_name=spec.stage_name, state=JobState.OPEN)

    def add_inputs(self, handle: JobHandle, inputs: Sequence[str]) -> None:
        """Add inputs to an open job, preserving their order."""
        handle.require(JobState.OPEN, "add inputs to")
        inputs = list(inputs)
        if not inputs:
            return
        self._add_inputs(handle.job_id, handle.stage_name, inputs)

    def close(self, handle: JobHandle) -> None:
        """Stop accepting inputs; the job runs to completion."""
        handle.require(JobState.OPEN, "close")
        self._close(handle.job_id, handle.stage_name)
        handle.transition(JobState.RUNNING)

    def wait(self, handle: JobHandle) -> None:
        """
        Block until the job terminates.

        Raises:
            JobFailedError: The job finished unsuccessfully
            WaitError: The service could not report the job's outcome
        """
        if handle.is_open:
            self.close(handle)
        handle.require(JobState.RUNNING, "wait on")

        success = self._watch(handle.job_id, handle.stage_name)
        if not success:
            handle.transition(JobState.FAILED)
            raise JobFailedError(handle.stage_name, "job failed", job_id=handle.job_id)
        handle.transition(JobState.SUCCEEDED)
