"""ACL store: persisted principal permissions and server identity.

Example
-------
::

    from directory_acl.acl import AclStore, Permission

    store = AclStore("LDAP.ini")
    store.record_server(["10.0.0.5"], "dc01.corp.local")
    store.upsert_permission("Engineering", "G", "O")
    assert store.lookup("Engineering", "G") is Permission.OPERATOR
"""
from __future__ import annotations

from directory_acl.acl.entry import (
    AclEntry,
    Permission,
    PrincipalKind,
    ServerRecord,
)
from directory_acl.acl.store import AclStore

__all__ = [
    "AclEntry",
    "AclStore",
    "Permission",
    "PrincipalKind",
    "ServerRecord",
]
