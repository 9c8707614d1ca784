"""
Remote Path Tests
=================
Verifies location resolution and the output naming conventions.
"""

import os
import sys

import pytest

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from racestats.errors import UsageError
from racestats.utils.remote_paths import (
    resolve_location,
    remote_join,
    video_basename,
    transcript_location,
    summary_location,
    worker_asset_path,
)


def test_resolve_home_shorthand():
    """Test that ~~ expands to the account root."""
    assert resolve_location("~~/stor/out", "dap") == "/dap/stor/out"
    assert resolve_location("~~", "dap") == "/dap"
    assert resolve_location("/other/stor/out", None) == "/other/stor/out"
    print("[PASS] Resolve location test passed")


def test_resolve_without_user():
    """Test that ~~ without a known user is a usage error."""
    with pytest.raises(UsageError):
        resolve_location("~~/stor/out", None)

    print("[PASS] Unresolvable location test passed")


def test_output_conventions():
    """Test transcript, races and summary locations."""
    assert video_basename("v1.mov") == "v1"
    assert video_basename("/dap/stor/videos/2012-05-01.mov") == "2012-05-01"

    assert transcript_location("/out", "v1.mov") == "/out/v1/transcript.json"
    assert transcript_location("/out/", "/a/b/v2.mp4") == "/out/v2/transcript.json"
    assert summary_location("/out") == "/out/summary.json"
    print("[PASS] Output conventions test passed")


def test_worker_paths():
    """Test where assets appear on workers."""
    assert worker_asset_path("/dap/public/kartlytics/bin") == "/assets/dap/public/kartlytics/bin"
    assert worker_asset_path("/dap/x", "/mnt/") == "/mnt/dap/x"
    assert remote_join("/dap/public/", "bin") == "/dap/public/bin"
    print("[PASS] Worker path test passed")


def run_all_tests():
    """Run all remote path tests."""
    print("\n" + "="*60)
    print("REMOTE PATH TESTS")
    print("="*60 + "\n")

    test_resolve_home_shorthand()
    test_resolve_without_user()
    test_output_conventions()
    test_worker_paths()

    print("\n" + "="*60)
    print("ALL REMOTE PATH TESTS PASSED")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_all_tests()
