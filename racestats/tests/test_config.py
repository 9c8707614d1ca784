"""
Configuration System Tests
==========================
Verifies that the configuration management system works correctly.
"""

import os
import sys
import tempfile
from pathlib import Path
from unittest.mock import patch

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from racestats.config import (
    AppConfig,
    get_config,
    set_config,
    reset_config,
    load_config_file,
    apply_environment_overrides,
)


def test_default_config():
    """Test that default configuration is created correctly."""
    reset_config()
    config = get_config()

    assert config is not None
    assert config.remote.job_command == "mjob"
    assert config.remote.untar_command == "muntar"
    assert config.assets.asset_root == "~~/public/kartlytics"
    assert config.assets.bin_location == "~~/public/kartlytics/bin"
    assert config.assets.toolchain_location == "~~/public/kartlytics/kartvid.tgz"
    assert config.logging.log_level == "INFO"

    print("[PASS] Default configuration test passed")


def test_config_singleton():
    """Test that get_config returns the same instance."""
    reset_config()
    config1 = get_config()
    config2 = get_config()

    assert config1 is config2

    custom = AppConfig()
    set_config(custom)
    assert get_config() is custom
    reset_config()
    print("[PASS] Singleton test passed")


def test_discovery_pattern():
    """Test that the video pattern covers every configured extension."""
    config = AppConfig()
    assert config.video.discovery_pattern == r"\.(mov|mp4)$"

    config.video.video_extensions = {'mkv'}
    assert config.video.discovery_pattern == r"\.(mkv)$"
    print("[PASS] Discovery pattern test passed")


def test_config_serialization():
    """Test configuration save and load."""
    config = AppConfig()
    config.assets.asset_root = "/dap/public/kart"
    config.assets.local_assets_dir = Path("/tmp/kart-bin")
    config.video.video_extensions = {'mov'}

    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        temp_path = f.name

    try:
        config.save(temp_path)
        loaded_config = AppConfig.load(temp_path)

        assert loaded_config.assets.asset_root == "/dap/public/kart"
        assert loaded_config.assets.local_assets_dir == Path("/tmp/kart-bin")
        assert loaded_config.video.video_extensions == {'mov'}
        assert loaded_config.remote.job_command == config.remote.job_command

        print("[PASS] Serialization test passed")
    finally:
        os.unlink(temp_path)


def test_load_config_file_sets_global():
    """Test that load_config_file installs the loaded configuration."""
    config = AppConfig()
    config.remote.job_command = "/opt/manta/bin/mjob"

    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        temp_path = f.name

    try:
        config.save(temp_path)
        loaded = load_config_file(temp_path)
        assert get_config() is loaded
        assert get_config().remote.job_command == "/opt/manta/bin/mjob"
        print("[PASS] Load config file test passed")
    finally:
        os.unlink(temp_path)
        reset_config()


def test_environment_overrides():
    """Test environment variable overrides."""
    env = {
        'MANTA_USER': 'dap',
        'RACESTATS_REMOTE_JOB_COMMAND': '/opt/manta/bin/mjob',
        'RACESTATS_LOGGING_LOG_DECISIONS': 'false',
        'RACESTATS_VIDEO_VIDEO_EXTENSIONS': 'mov, mkv',
        'RACESTATS_ASSETS_LOCAL_ASSETS_DIR': '/srv/kart/bin',
    }

    with patch.dict(os.environ, env):
        config = apply_environment_overrides(AppConfig())

    assert config.remote.user == "dap"
    assert config.remote.job_command == "/opt/manta/bin/mjob"
    assert config.logging.log_decisions is False
    assert config.video.video_extensions == {'mov', 'mkv'}
    assert config.assets.local_assets_dir == Path("/srv/kart/bin")
    print("[PASS] Environment overrides test passed")


def test_environment_override_ignores_unknown_keys():
    """Test that unknown sections and attributes are ignored."""
    env = {
        'RACESTATS_NOPE_X': '1',
        'RACESTATS_REMOTE_NO_SUCH_KEY': '1',
    }

    with patch.dict(os.environ, env):
        config = apply_environment_overrides(AppConfig())

    assert not hasattr(config.remote, 'no_such_key')
    print("[PASS] Unknown override keys test passed")


def run_all_tests():
    """Run all configuration tests."""
    print("\n" + "="*60)
    print("CONFIGURATION TESTS")
    print("="*60 + "\n")

    test_default_config()
    test_config_singleton()
    test_discovery_pattern()
    test_config_serialization()
    test_load_config_file_sets_global()
    test_environment_overrides()
    test_environment_override_ignores_unknown_keys()

    print("\n" + "="*60)
    print("ALL CONFIGURATION TESTS PASSED")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_all_tests()
