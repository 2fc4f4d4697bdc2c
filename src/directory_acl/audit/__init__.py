"""Audit trail for authorization decisions and ACL changes."""
from __future__ import annotations

from directory_acl.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
