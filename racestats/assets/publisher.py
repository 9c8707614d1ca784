"""
Asset Publisher
===============
Packages local helper scripts into one tar bundle and publishes it where
job workers can fetch the individual scripts.

The upload tool (`muntar -f BUNDLE DIR`) unpacks the bundle into objects
under DIR on the remote side. The local bundle is a temporary file and is
always removed, whether publishing succeeded or not.
"""

import logging
import os
import subprocess
import tarfile
import tempfile
from pathlib import Path
from typing import List, Union

from ..errors import PublishError

logger = logging.getLogger(__name__)


class AssetPublisher:
    """
    Publishes a flat directory of helper assets.

    Args:
        untar_command: Name or path of the remote unpack-upload tool
    """

    def __init__(self, untar_command: str = "muntar"):
        self.untar_command = untar_command

    def collect(self, local_dir: Union[str, Path]) -> List[Path]:
        """Regular files directly under local_dir, sorted by name."""
        base = Path(local_dir)
        if not base.is_dir():
            raise PublishError(f"asset directory not found: {base}")

        files = sorted(p for p in base.iterdir() if p.is_file())
        if not files:
            raise PublishError(f"no assets to publish in {base}")
        return files

    def build_bundle(self, files: List[Path], bundle_path: Union[str, Path]) -> None:
        """Write files into an uncompressed tar, flat, keeping their modes."""
        with tarfile.open(bundle_path, "w") as tar:
            for path in files:
                tar.add(str(path), arcname=path.name, recursive=False)

    def upload(self, bundle_path: Union[str, Path], remote_bin_root: str) -> None:
        """Hand the bundle to the remote unpack-upload tool."""
        args = [self.untar_command, "-f", str(bundle_path), remote_bin_root]
        try:
            subprocess.run(args, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise PublishError(
                f"{self.untar_command} failed: {stderr or f'exit status {e.returncode}'}"
            ) from e
        except OSError as e:
            raise PublishError(f"{self.untar_command} failed: {e}") from e

    def publish(self, local_dir: Union[str, Path], remote_bin_root: str) -> List[str]:
        """
        Archive local_dir and publish it under remote_bin_root.

        Args:
            local_dir: Directory whose files (not subdirectories) are published
            remote_bin_root: Remote directory the assets land in

        Returns:
            Names of the published assets

        Raises:
            PublishError: If packaging or upload failed
        """
        files = self.collect(local_dir)

        fd, bundle_path = tempfile.mkstemp(prefix="racestats-assets-", suffix=".tar")
        os.close(fd)
        try:
            try:
                self.build_bundle(files, bundle_path)
            except (OSError, tarfile.TarError) as e:
                raise PublishError(f"failed to package assets: {e}") from e

            logger.info(f"Publishing {len(files)} assets from {local_dir} to {remote_bin_root}")
            self.upload(bundle_path, remote_bin_root)
        finally:
            Path(bundle_path).unlink(missing_ok=True)

        return [p.name for p in files]
