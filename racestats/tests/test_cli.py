"""
Command Line Tests
==================
Verifies flag handling, location resolution and exit codes.
"""

import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from racestats import cli
from racestats.config import AppConfig, reset_config
from racestats.errors import JobFailedError, UsageError
from racestats.pipeline import PipelineContext, StageResult


def run_main(argv, env=None, which=lambda tool: "/usr/bin/" + tool):
    """Run cli.main with a controlled environment and PATH lookup."""
    reset_config()
    environ = {'MANTA_USER': 'dap'} if env is None else env
    with patch.dict(os.environ, environ, clear=True), \
            patch('racestats.cli.load_dotenv'), \
            patch('racestats.cli.setup_logging'), \
            patch('racestats.cli.shutil.which', side_effect=which):
        try:
            return cli.main(argv)
        finally:
            reset_config()


def parse(argv):
    return cli.build_parser().parse_args(argv)


def create_app_config(user="dap"):
    config = AppConfig()
    config.remote.user = user
    return config


# =============================================================================
# FLAGS
# =============================================================================

def test_defaults_resolve_under_user():
    """Test that default locations resolve under the remote user."""
    config = cli.build_pipeline_config(parse(["~~/stor/out"]), create_app_config())

    assert config.output_location == "/dap/stor/out"
    assert config.video_source == "/dap/public/kartlytics/videos"
    assert config.asset_bundle_location == "/dap/public/kartlytics"
    assert config.bin_assets_location == "/dap/public/kartlytics/bin"
    assert config.toolchain_tarball_location == "/dap/public/kartlytics/kartvid.tgz"
    assert config.explicit_videos == ()
    assert config.video_pattern == r"\.(mov|mp4)$"
    print("[PASS] Default locations test passed")


def test_flags_override_configuration():
    """Test that every flag reaches the pipeline configuration."""
    args = parse([
        "-b", "~~/public/kart", "-d", "/other/videos", "-t", "/tools/kv.tgz",
        "-w", "-f", "-u", "--assets-dir", "/src/bin", "-n",
        "/out", "v1.mov", "v2.mov",
    ])
    config = cli.build_pipeline_config(args, create_app_config())

    assert config.asset_bundle_location == "/dap/public/kart"
    assert config.bin_assets_location == "/dap/public/kart/bin"
    assert config.video_source == "/other/videos"
    assert config.toolchain_tarball_location == "/tools/kv.tgz"
    assert config.explicit_videos == ("v1.mov", "v2.mov")
    assert config.generate_webm and config.force_retranscribe and config.upload_assets
    assert config.local_assets_dir == Path("/src/bin")
    assert config.dry_run
    print("[PASS] Flag override test passed")


def test_bin_dir_flag():
    """Test that -B overrides the bin location independently of -b."""
    args = parse(["-b", "/a", "-B", "/b/bin", "/out"])
    config = cli.build_pipeline_config(args, create_app_config())

    assert config.asset_bundle_location == "/a"
    assert config.bin_assets_location == "/b/bin"
    assert config.toolchain_tarball_location == "/a/kartvid.tgz"
    print("[PASS] Bin dir flag test passed")


def test_unresolvable_location():
    """Test that ~~ without a user is a usage error."""
    with pytest.raises(UsageError):
        cli.build_pipeline_config(parse(["~~/stor/out"]), create_app_config(user=None))

    print("[PASS] Unresolvable location test passed")


def test_check_tools():
    """Test which tools are required."""
    app_config = create_app_config()
    plain = cli.build_pipeline_config(parse(["/out"]), app_config)
    upload = cli.build_pipeline_config(parse(["-u", "/out"]), app_config)

    with patch('racestats.cli.shutil.which', side_effect=lambda t: None if t == "muntar" else "/bin/" + t):
        cli.check_tools(plain, app_config)
        with pytest.raises(UsageError, match="muntar"):
            cli.check_tools(upload, app_config)

    print("[PASS] Check tools test passed")


# =============================================================================
# EXIT CODES
# =============================================================================

def test_missing_output_is_usage_error():
    """Test that a missing OUTPUT argument exits with status 2."""
    with pytest.raises(SystemExit) as excinfo:
        run_main([])

    assert excinfo.value.code == cli.EXIT_USAGE
    print("[PASS] Missing output test passed")


def test_missing_user_exit_code(capsys):
    """Test that an unresolvable location exits with status 2."""
    assert run_main(["~~/stor/out"], env={}) == cli.EXIT_USAGE
    assert "MANTA_USER" in capsys.readouterr().err
    print("[PASS] Missing user exit code test passed")


def test_missing_tool_exit_code():
    """Test that a missing job tool exits with status 2."""
    assert run_main(["/out"], which=lambda tool: None) == cli.EXIT_USAGE
    print("[PASS] Missing tool exit code test passed")


def test_dry_run_succeeds_without_tools(capsys):
    """Test a full dry run, which needs no external tools."""
    status = run_main(["-n", "~~/stor/out"], which=lambda tool: None)

    assert status == cli.EXIT_SUCCESS
    out = capsys.readouterr().out
    assert "Job chain:" in out
    assert "ProcessVideos:dry-run-1 -> ProcessTranscripts:dry-run-2 -> Aggregate:dry-run-3" in out
    assert "Skipped: GenerateWebm" in out
    print("[PASS] Dry run test passed")


def test_stage_failure_exit_code(capsys):
    """Test that a failed stage exits with status 1 and names the job."""
    context = PipelineContext(config=cli.build_pipeline_config(parse(["/out"]), create_app_config()))
    context.record(StageResult(stage_name="ProcessVideos", success=True,
                               duration_seconds=3.0, job_id="job-6"))

    with patch('racestats.cli.PipelineOrchestrator') as orchestrator_class:
        orchestrator_class.return_value.context = context
        orchestrator_class.return_value.run.side_effect = JobFailedError(
            "ProcessTranscripts", "job failed", job_id="job-7"
        )
        status = run_main(["/out"])

    assert status == cli.EXIT_FAILURE
    err = capsys.readouterr().err
    assert "ProcessTranscripts" in err
    assert "job-7" in err
    assert "job chain: ProcessVideos:job-6" in err
    print("[PASS] Stage failure exit code test passed")


def test_config_file_flag(tmp_path):
    """Test that -c loads a configuration file."""
    config = AppConfig()
    config.assets.asset_root = "/custom/root"
    path = tmp_path / "racestats.json"
    config.save(str(path))

    with patch('racestats.cli.PipelineOrchestrator') as orchestrator_class:
        orchestrator_class.return_value.run.side_effect = lambda config: PipelineContext(config=config)
        assert run_main(["-c", str(path), "/out"]) == cli.EXIT_SUCCESS
        pipeline_config = orchestrator_class.return_value.run.call_args.args[0]

    assert pipeline_config.bin_assets_location == "/custom/root/bin"
    print("[PASS] Config file flag test passed")


def test_bad_config_file_is_usage_error(tmp_path):
    """Test that an unreadable configuration file exits with status 2."""
    assert run_main(["-c", str(tmp_path / "missing.json"), "/out"]) == cli.EXIT_USAGE
    print("[PASS] Bad config file test passed")


def test_empty_output_is_usage_error(capsys):
    """Test that an empty OUTPUT argument exits with status 2."""
    assert run_main(["-n", ""]) == cli.EXIT_USAGE
    assert "OUTPUT is required" in capsys.readouterr().err

    with pytest.raises(UsageError):
        cli.build_pipeline_config(parse(["  "]), create_app_config())

    print("[PASS] Empty output test passed")


def test_success_summary(capsys):
    """Test that a successful run reports completed stages and total time."""
    assert run_main(["-n", "-w", "/out", "v1.mov"]) == cli.EXIT_SUCCESS

    out = capsys.readouterr().out
    assert "Completed: ProcessVideos, GenerateWebm, ProcessTranscripts (" in out
    assert "Skipped: Aggregate" in out
    print("[PASS] Success summary test passed")
