"""
Jobs Package
============
Clients for the remote execution service.

Usage:
    from racestats.jobs import MantaJobClient

    client = MantaJobClient()
    handle = client.submit_open(spec)
    client.add_inputs(handle, ["v1.mov", "v2.mov"])
    client.wait(handle)
"""

from .client import JobClient
from .manta import MantaJobClient
from .dry_run import DryRunJobClient

__all__ = [
    'JobClient',
    'MantaJobClient',
    'DryRunJobClient',
]
