"""Authorization decision engine."""
from __future__ import annotations

from directory_acl.engine.authorizer import (
    AuthDecision,
    AuthorizationEngine,
    AuthorizationPolicy,
)

__all__ = [
    "AuthDecision",
    "AuthorizationEngine",
    "AuthorizationPolicy",
]
