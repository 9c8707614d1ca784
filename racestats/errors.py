"""
Pipeline Errors
===============
Exception taxonomy for a pipeline run.

Every error below is fatal to the run. The CLI maps them to exit codes:
UsageError -> 2, everything else -> 1.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for all pipeline failures."""


class UsageError(PipelineError):
    """Bad CLI input, unresolvable location or missing external tool."""


class TemplateError(PipelineError):
    """A command template does not match its declared placeholders."""


class PublishError(PipelineError):
    """Asset packaging or upload failed; no stage has been run."""


# Name used by the orchestrator contract
AssetPublishError = PublishError


class StageError(PipelineError):
    """
    A stage's remote job could not be run to successful completion.

    Attributes:
        stage: Name of the failing stage (e.g. "ProcessVideos")
        job_id: Remote job identifier, if one was assigned
    """

    def __init__(self, stage: str, message: str, job_id: Optional[str] = None):
        self.stage = stage
        self.job_id = job_id
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        text = f"{self.stage}: {self.message}"
        if self.job_id:
            text += f" (job {self.job_id})"
        return text


class SubmitError(StageError):
    """The remote service rejected the job."""


class AddInputsError(StageError):
    """The remote service rejected the explicit inputs of an open job."""


class JobFailedError(StageError):
    """The job ran and finished in a failed state."""


class WaitError(JobFailedError):
    """Waiting on the job failed; handled exactly like a failed job."""


class JobInterruptedError(StageError):
    """The operator interrupted the wait; the remote job may still be running."""


class JobStateError(RuntimeError):
    """An operation was attempted in the wrong job state."""
