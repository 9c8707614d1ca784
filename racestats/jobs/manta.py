"""
Manta Job Client
================
JobClient that drives the remote service through the `mjob` command line
tool.

    mjob create [--open] -n NAME -s ASSET... -r DISCOVERY -m MAP -r REDUCE
    mjob addinputs --open JOBID     (inputs on stdin, one per line)
    mjob close JOBID
    mjob watch JOBID                (blocks until the job is done)
    mjob get JOBID                  (job record as JSON)
"""

import json
import logging
import subprocess
from typing import List, Optional, Sequence, Type

from ..errors import AddInputsError, StageError, SubmitError, WaitError
from ..models import JobSpec
from .client import JobClient

logger = logging.getLogger(__name__)


class MantaJobClient(JobClient):
    """
    Job client backed by the `mjob` CLI.

    Args:
        job_command: Name or path of the mjob tool
    """

    def __init__(self, job_command: str = "mjob"):
        self.job_command = job_command

    def _run(
        self,
        args: List[str],
        stage_name: str,
        error_class: Type[StageError],
        job_id: Optional[str] = None,
        stdin_text: Optional[str] = None,
    ) -> str:
        """Run one mjob command and return its stdout."""
        full_args = [self.job_command] + args
        cmd_str = " ".join(full_args[:2])
        logger.debug(f"Running: {' '.join(full_args)}")

        kwargs = {}
        if stdin_text is None:
            kwargs['stdin'] = subprocess.DEVNULL
        else:
            kwargs['input'] = stdin_text

        try:
            result = subprocess.run(
                full_args,
                capture_output=True,
                text=True,
                check=True,
                **kwargs
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise error_class(
                stage_name, f"{cmd_str} failed: {stderr or f'exit status {e.returncode}'}",
                job_id=job_id
            ) from e
        except OSError as e:
            raise error_class(stage_name, f"{cmd_str} failed: {e}", job_id=job_id) from e

        return result.stdout

    def create_args(self, spec: JobSpec, open_job: bool) -> List[str]:
        """Arguments of `mjob create` for a spec, phases in order."""
        args = ["create"]
        if open_job:
            args.append("--open")
        args.extend(["-n", spec.stage_name])
        for asset in spec.asset_dependencies:
            args.extend(["-s", asset])
        for kind, command in spec.phases:
            args.extend(["-m" if kind == "map" else "-r", command])
        return args

    def _create(self, spec: JobSpec, open_job: bool) -> str:
        stdout = self._run(self.create_args(spec, open_job), spec.stage_name, SubmitError)
        job_id = stdout.strip()
        if not job_id:
            raise SubmitError(spec.stage_name, "mjob create returned no job id")
        return job_id

    def _add_inputs(self, job_id: str, stage_name: str, inputs: Sequence[str]) -> None:
        self._run(
            ["addinputs", "--open", job_id],
            stage_name,
            AddInputsError,
            job_id=job_id,
            stdin_text="".join(f"{name}\n" for name in inputs),
        )

    def _close(self, job_id: str, stage_name: str) -> None:
        self._run(["close", job_id], stage_name, AddInputsError, job_id=job_id)

    def _watch(self, job_id: str, stage_name: str) -> bool:
        self._run(["watch", job_id], stage_name, WaitError, job_id=job_id)
        stdout = self._run(["get", job_id], stage_name, WaitError, job_id=job_id)

        try:
            record = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise WaitError(stage_name, f"unparseable job record: {e}", job_id=job_id) from e
        if not isinstance(record, dict):
            raise WaitError(stage_name, "job record is not an object", job_id=job_id)

        state = record.get('state')
        errors = (record.get('stats') or {}).get('errors', 0)
        cancelled = record.get('cancelled', False)
        logger.debug(f"Job {job_id}: state={state} errors={errors} cancelled={cancelled}")

        if state != "done":
            raise WaitError(stage_name, f"job not done after watch (state {state})", job_id=job_id)

        return not cancelled and errors == 0
