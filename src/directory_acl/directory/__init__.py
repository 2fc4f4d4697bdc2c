"""Directory and reachability collaborators."""
from __future__ import annotations

from directory_acl.directory.client import (
    DirectoryClient,
    DirectoryError,
    NullDirectoryClient,
    group_name_from_dn,
)
from directory_acl.directory.probe import (
    ProbeError,
    ProbeResult,
    ReachabilityProbe,
    SocketReachabilityProbe,
)

__all__ = [
    "DirectoryClient",
    "DirectoryError",
    "NullDirectoryClient",
    "ProbeError",
    "ProbeResult",
    "ReachabilityProbe",
    "SocketReachabilityProbe",
    "group_name_from_dn",
]
