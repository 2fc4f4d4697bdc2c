"""directory-acl: directory-backed user and group authorization.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import directory_acl as acl
>>> acl.__version__
'0.1.0'
>>> service = acl.AclService(acl.AclStore("/tmp/LDAP.ini"), directory=my_client)
>>> response = service.authenticate("jdoe", "s3cret", "A")
>>> response.success, response.error_code
(True, 0)
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Errors and responses
# ---------------------------------------------------------------------------
from directory_acl.errors import (
    AclError,
    AuthenticationError,
    DirectoryBindError,
    DirectoryQueryError,
    ErrorKind,
    InvalidEntryNameError,
    InvalidKindError,
    InvalidPermissionError,
    NoRegisteredGroupError,
    PermissionMismatchError,
    ReachabilityProbeError,
    ServerAddressNotFoundError,
    SetupError,
    StoreNotFoundError,
    StoreWriteError,
    UserNotFoundError,
    UserNotInAnyGroupError,
)
from directory_acl.response import AuthResponse

# ---------------------------------------------------------------------------
# ACL store
# ---------------------------------------------------------------------------
from directory_acl.acl.entry import AclEntry, Permission, PrincipalKind, ServerRecord
from directory_acl.acl.store import AclStore

# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
from directory_acl.directory.client import (
    DirectoryClient,
    DirectoryError,
    NullDirectoryClient,
)
from directory_acl.directory.probe import (
    ProbeError,
    ProbeResult,
    ReachabilityProbe,
    SocketReachabilityProbe,
)

# ---------------------------------------------------------------------------
# Engine, service, config, audit
# ---------------------------------------------------------------------------
from directory_acl.engine.authorizer import (
    AuthDecision,
    AuthorizationEngine,
    AuthorizationPolicy,
)
from directory_acl.service import AclService
from directory_acl.config import AclConfig, ConfigLoader
from directory_acl.audit.logger import AuditLogger

__all__ = [
    "__version__",
    # Errors and responses
    "AclError",
    "AuthResponse",
    "AuthenticationError",
    "DirectoryBindError",
    "DirectoryQueryError",
    "ErrorKind",
    "InvalidEntryNameError",
    "InvalidKindError",
    "InvalidPermissionError",
    "NoRegisteredGroupError",
    "PermissionMismatchError",
    "ReachabilityProbeError",
    "ServerAddressNotFoundError",
    "SetupError",
    "StoreNotFoundError",
    "StoreWriteError",
    "UserNotFoundError",
    "UserNotInAnyGroupError",
    # ACL store
    "AclEntry",
    "AclStore",
    "Permission",
    "PrincipalKind",
    "ServerRecord",
    # Collaborators
    "DirectoryClient",
    "DirectoryError",
    "NullDirectoryClient",
    "ProbeError",
    "ProbeResult",
    "ReachabilityProbe",
    "SocketReachabilityProbe",
    # Engine and service
    "AclService",
    "AuthDecision",
    "AuthorizationEngine",
    "AuthorizationPolicy",
    # Config and audit
    "AclConfig",
    "AuditLogger",
    "ConfigLoader",
]
