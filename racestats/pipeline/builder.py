"""
Job Spec Builder
================
Turns a StagePlan into the JobSpec handed to the remote service.

build_job_spec() is a pure function: it renders local template fields from
the PipelineConfig, validates worker placeholders, and declares the assets
the job's commands fetch. Worker placeholders ("$MANTA_INPUT_FILE") are
passed through unresolved.
"""

import shlex
from typing import Dict, Optional

from ..errors import TemplateError
from ..models import CommandTemplate, InputMode, JobSpec, StagePlan
from ..utils.remote_paths import remote_join, summary_location, worker_asset_path
from .context import PipelineConfig

# Helper script every discovery phase runs
DISCOVERY_HELPER = "find-inputs"


def template_fields(config: PipelineConfig) -> Dict[str, str]:
    """
    Local fields available to every command template.

    Locations are shell-quoted; video_pattern is not, templates quote it.
    """
    return {
        'output': shlex.quote(config.output_location.rstrip('/')),
        'video_source': shlex.quote(config.video_source.rstrip('/')),
        'video_pattern': config.video_pattern,
        'bin': shlex.quote(
            worker_asset_path(config.bin_assets_location, config.worker_asset_root)
        ),
        'toolchain': shlex.quote(
            worker_asset_path(config.toolchain_tarball_location, config.worker_asset_root)
        ),
        'summary': shlex.quote(summary_location(config.output_location)),
        'force': " -f" if config.force_retranscribe else "",
    }


def helper_location(config: PipelineConfig, helper: str) -> str:
    """Remote location of a helper script."""
    return remote_join(config.bin_assets_location, helper)


def _render_reduce(template: Optional[CommandTemplate], fields: Dict[str, str], what: str) -> Optional[str]:
    if template is None:
        return None
    # Reduce phases read a stream, there is no per-input file
    if template.placeholders or template.referenced_placeholders():
        raise TemplateError(f"{what} phase cannot use worker placeholders: {template.text}")
    return template.render(**fields)


def build_job_spec(
    plan: StagePlan,
    config: PipelineConfig,
    input_mode: Optional[InputMode] = None
) -> JobSpec:
    """
    Build the JobSpec for one stage.

    Args:
        plan: The stage's plan
        config: Run configuration
        input_mode: Override of the plan's input mode

    Returns:
        JobSpec ready for submission

    Raises:
        TemplateError: If a template does not match its declared placeholders,
            or discovery is requested for a stage without a discovery command
    """
    mode = input_mode or plan.input_mode
    fields = template_fields(config)

    map_command = plan.map_command.render(**fields)
    reduce_command = _render_reduce(plan.reduce_command, fields, "reduce")

    assets = set(plan.required_assets)
    if plan.needs_toolchain:
        assets.add(config.toolchain_tarball_location)

    discovery_command = None
    if mode == InputMode.DISCOVERED:
        if plan.discovery_command is None:
            raise TemplateError(f"{plan.name} has no discovery command")
        discovery_command = _render_reduce(plan.discovery_command, fields, "discovery")
        assets.add(helper_location(config, DISCOVERY_HELPER))

    return JobSpec(
        stage_name=plan.name,
        map_command=map_command,
        input_mode=mode,
        asset_dependencies=tuple(sorted(assets)),
        discovery_command=discovery_command,
        reduce_command=reduce_command,
        expected_placeholders=plan.map_command.placeholders,
    )
