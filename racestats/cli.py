"""
Command Line Interface
======================
Entry point that turns operator flags into a pipeline run.

Usage:
    racestats /dap/stor/kartlytics/out
    racestats -w -f ~~/stor/kart/out ~~/stor/kart/videos/race1.mov
    racestats -u --assets-dir ./bin ~~/stor/kart/out
    racestats -n ~~/stor/kart/out          # print job specs only

Exit codes:
    0  success
    1  a stage or the asset upload failed
    2  usage error (bad flags, unresolvable location, missing tool)
"""

import argparse
import logging
import shutil
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .assets import AssetPublisher
from .config import AppConfig, apply_environment_overrides, get_config, load_config_file
from .errors import PipelineError, StageError, UsageError
from .jobs import DryRunJobClient, JobClient, MantaJobClient
from .logging_config import setup_logging
from .pipeline import PipelineConfig, PipelineOrchestrator
from .utils.remote_paths import resolve_location

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="racestats",
        description="Run the race statistics pipeline on the remote job service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Process every video in the default video directory
    racestats ~~/stor/kartlytics/out

    # Reprocess two videos and render webm copies
    racestats -w -f ~~/stor/kartlytics/out ~~/public/kartlytics/videos/a.mov ~~/public/kartlytics/videos/b.mov

    # Publish local helper scripts first
    racestats -u ~~/stor/kartlytics/out
        """
    )

    parser.add_argument(
        'output',
        metavar='OUTPUT',
        help='Remote directory all stage outputs are written under'
    )

    parser.add_argument(
        'videos',
        metavar='VIDEO',
        nargs='*',
        help='Specific videos to process (default: discover all videos)'
    )

    parser.add_argument(
        '--asset-root', '-b',
        default=None,
        help='Remote root of published assets'
    )

    parser.add_argument(
        '--bin-dir', '-B',
        default=None,
        help='Remote directory of helper scripts (default: <asset-root>/bin)'
    )

    parser.add_argument(
        '--video-dir', '-d',
        default=None,
        help='Remote directory videos are discovered from'
    )

    parser.add_argument(
        '--webm', '-w',
        action='store_true',
        help='Also generate webm copies of the videos'
    )

    parser.add_argument(
        '--toolchain', '-t',
        default=None,
        help='Remote location of the toolchain tarball'
    )

    parser.add_argument(
        '--force', '-f',
        action='store_true',
        help='Retranscribe videos that already have a transcript'
    )

    parser.add_argument(
        '--upload', '-u',
        action='store_true',
        help='Publish local helper assets before running any stage'
    )

    parser.add_argument(
        '--assets-dir',
        type=Path,
        default=None,
        help='Local directory of helper assets to publish with --upload'
    )

    parser.add_argument(
        '--dry-run', '-n',
        action='store_true',
        help='Print job specs without submitting anything'
    )

    parser.add_argument(
        '--config', '-c',
        default=None,
        help='JSON configuration file'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    parser.add_argument(
        '--log-file',
        default=None,
        help='Append JSON lines log records to this file'
    )

    return parser


def build_pipeline_config(args: argparse.Namespace, app_config: AppConfig) -> PipelineConfig:
    """
    Combine CLI flags with the application configuration.

    Flags win over configuration. All remote locations are resolved here, so
    everything downstream sees absolute paths.

    Raises:
        UsageError: If OUTPUT is empty or a location cannot be resolved
    """
    if not args.output.strip():
        raise UsageError("OUTPUT is required")

    user = app_config.remote.user

    assets = app_config.assets
    if args.asset_root:
        assets = replace(assets, asset_root=args.asset_root)
    bin_dir = args.bin_dir or assets.bin_location
    toolchain = args.toolchain or assets.toolchain_location
    video_dir = args.video_dir or app_config.video.video_source

    return PipelineConfig(
        output_location=resolve_location(args.output, user),
        video_source=resolve_location(video_dir, user),
        explicit_videos=tuple(args.videos),
        generate_webm=args.webm,
        force_retranscribe=args.force,
        upload_assets=args.upload,
        asset_bundle_location=resolve_location(assets.asset_root, user),
        bin_assets_location=resolve_location(bin_dir, user),
        toolchain_tarball_location=resolve_location(toolchain, user),
        local_assets_dir=args.assets_dir or assets.local_assets_dir,
        worker_asset_root=app_config.remote.worker_asset_root,
        video_pattern=app_config.video.discovery_pattern,
        dry_run=args.dry_run,
    )


def check_tools(config: PipelineConfig, app_config: AppConfig) -> None:
    """
    Verify the external tools this run needs are on PATH.

    Raises:
        UsageError: If a required tool is missing
    """
    if config.dry_run:
        return

    tools = [app_config.remote.job_command]
    if config.upload_assets:
        tools.append(app_config.remote.untar_command)

    missing = [tool for tool in tools if shutil.which(tool) is None]
    if missing:
        raise UsageError(f"required tool(s) not found on PATH: {', '.join(missing)}")


def make_client(config: PipelineConfig, app_config: AppConfig) -> JobClient:
    if config.dry_run:
        return DryRunJobClient()
    return MantaJobClient(job_command=app_config.remote.job_command)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    load_dotenv()

    try:
        if args.config:
            app_config = load_config_file(args.config)
        else:
            app_config = get_config()
    except (OSError, ValueError, TypeError) as e:
        print(f"racestats: cannot load configuration {args.config}: {e}", file=sys.stderr)
        return EXIT_USAGE
    apply_environment_overrides(app_config)

    level = "DEBUG" if args.verbose else app_config.logging.log_level
    setup_logging(level, log_file=args.log_file or app_config.logging.log_file)

    try:
        config = build_pipeline_config(args, app_config)
        check_tools(config, app_config)
    except UsageError as e:
        print(f"racestats: {e}", file=sys.stderr)
        return EXIT_USAGE

    orchestrator = PipelineOrchestrator(
        make_client(config, app_config),
        publisher=AssetPublisher(untar_command=app_config.remote.untar_command),
        log_decisions=app_config.logging.log_decisions,
    )

    try:
        context = orchestrator.run(config)
    except StageError as e:
        print(f"racestats: stage {e.stage} failed: {e.message}", file=sys.stderr)
        if e.job_id:
            print(f"racestats: see job {e.job_id}", file=sys.stderr)
        if orchestrator.context is not None and orchestrator.context.job_chain:
            print(f"racestats: job chain: {orchestrator.context.job_chain}", file=sys.stderr)
        return EXIT_FAILURE
    except UsageError as e:
        print(f"racestats: {e}", file=sys.stderr)
        return EXIT_USAGE
    except PipelineError as e:
        print(f"racestats: {e}", file=sys.stderr)
        return EXIT_FAILURE

    print()
    print("Job chain:")
    print(f"  {context.job_chain or '(no jobs)'}")
    print(f"Completed: {', '.join(context.successful_stages)} "
          f"({context.total_duration_seconds:.1f}s)")
    if context.skipped_stages:
        print(f"Skipped: {', '.join(context.skipped_stages)}")
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
