"""
Remote Path Utilities
=====================
Naming conventions for objects on the remote store.

Every stage reads and writes by these conventions, so they are the contract
between the pipeline and the helper programs:
- transcript:  <output>/<basename(video)>/transcript.json
- races:       <output>/<basename(video)>/races.json
- webm:        <output>/<basename(video)>.webm
- summary:     <output>/summary.json
"""

import posixpath
from typing import Optional

from ..errors import UsageError

TRANSCRIPT_NAME = "transcript.json"
RACES_NAME = "races.json"
SUMMARY_NAME = "summary.json"


def resolve_location(location: str, user: Optional[str]) -> str:
    """
    Expand a leading "~~" to the account root ("/<user>").

    Raises:
        UsageError: If the location needs expanding and no user is known
    """
    if location != "~~" and not location.startswith("~~/"):
        return location
    if not user:
        raise UsageError(
            f"cannot resolve {location!r}: remote user unknown (set MANTA_USER)"
        )
    return "/" + user + location[2:]


def remote_join(*parts: str) -> str:
    """Join remote path components, collapsing duplicate slashes."""
    cleaned = [p.rstrip('/') for p in parts[:-1]] + [parts[-1]]
    return posixpath.join(*cleaned) if cleaned else ""


def video_basename(video: str) -> str:
    """
    Identity of a video: its file name without directory or extension.

    "v1.mov" -> "v1", "/dap/stor/videos/2012-05-01.mov" -> "2012-05-01"
    """
    name = posixpath.basename(video.rstrip('/'))
    stem, _ = posixpath.splitext(name)
    return stem or name


def transcript_location(output_location: str, video: str) -> str:
    """Where ProcessVideos writes the transcript of a video."""
    return remote_join(output_location, video_basename(video), TRANSCRIPT_NAME)


def summary_location(output_location: str) -> str:
    """Where Aggregate writes the corpus summary."""
    return remote_join(output_location, SUMMARY_NAME)


def worker_asset_path(location: str, worker_asset_root: str = "/assets") -> str:
    """Path at which a remote asset is visible on a worker."""
    return worker_asset_root.rstrip('/') + "/" + location.lstrip('/')
