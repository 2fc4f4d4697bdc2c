"""Authorization engine: directory bind plus ACL precedence rules.

The engine answers one question: may this directory principal act with
the requested permission level?  Three checks run in strict order and
the first success short-circuits the rest:

1. **Directory bind** with the supplied credentials.  A failure here is
   terminal and no ACL lookup happens.
2. **Direct user check** against the ``U`` rows of the ACL store.
3. **Group check**: the directory lists the user's groups and each one
   is looked up against the ``G`` rows, in directory order.

A direct user row always takes priority over group-derived permission.

Three behaviors are configurable through :class:`AuthorizationPolicy`:

- ``direct_mismatch_terminal``: when a user row exists with a different
  permission, fail with :class:`PermissionMismatchError` instead of
  falling through to the group check.  Default ``False``.
- ``continue_group_scan``: when a group row exists with a different
  permission, keep scanning the remaining groups.  Default ``True``;
  ``False`` fails with :class:`PermissionMismatchError` at that group.
- ``group_fallback``: consult groups at all when the direct check fails.
  Default ``True``; ``False`` restricts authorization to user rows and
  fails with :class:`UserNotFoundError` when the user has none.

Example
-------
::

    engine = AuthorizationEngine(store, directory)
    decision = engine.authorize("alice", "s3cret", "O")
    assert decision.granted_by is PrincipalKind.GROUP
    assert decision.principal == "Engineering"
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from directory_acl.acl.entry import Permission, PrincipalKind
from directory_acl.directory.client import DirectoryClient, DirectoryError
from directory_acl.errors import (
    AclError,
    DirectoryBindError,
    NoRegisteredGroupError,
    PermissionMismatchError,
    UserNotFoundError,
    UserNotInAnyGroupError,
)

if TYPE_CHECKING:
    from directory_acl.acl.store import AclStore
    from directory_acl.audit.logger import AuditLogger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthorizationPolicy:
    """Behavior switches for the ambiguous precedence cases."""

    direct_mismatch_terminal: bool = False
    continue_group_scan: bool = True
    group_fallback: bool = True


@dataclass(frozen=True)
class AuthDecision:
    """A successful authorization.

    Attributes
    ----------
    username:
        The bound user.
    permission:
        The permission that was granted.
    granted_by:
        Whether a user row or a group row granted it.
    principal:
        Name of the granting row (the user itself or the group).
    mismatch:
        The direct-user mismatch observed before falling through to the
        group check, if any.
    """

    username: str
    permission: Permission
    granted_by: PrincipalKind
    principal: str
    mismatch: PermissionMismatchError | None = None


class AuthorizationEngine:
    """Decides whether a directory principal holds a permission level.

    Parameters
    ----------
    store:
        ACL store holding the server line and permission rows.
    directory:
        Directory collaborator used for the bind and group enumeration.
    policy:
        Precedence switches.  Defaults to :class:`AuthorizationPolicy()`.
    audit_logger:
        Optional audit trail receiving one record per decision.
    use_ssl:
        Build ``ldaps://`` URLs instead of ``ldap://``.
    """

    def __init__(
        self,
        store: "AclStore",
        directory: DirectoryClient,
        policy: AuthorizationPolicy | None = None,
        audit_logger: "AuditLogger | None" = None,
        use_ssl: bool = False,
    ) -> None:
        self._store = store
        self._directory = directory
        self._policy = policy or AuthorizationPolicy()
        self._audit_logger = audit_logger
        self._use_ssl = use_ssl

    @property
    def policy(self) -> AuthorizationPolicy:
        return self._policy

    def directory_url(self) -> str:
        """Return the LDAP URL of the server recorded in the store."""
        return self._store.server_record().directory_url(use_ssl=self._use_ssl)

    def authorize(
        self,
        username: str,
        password: str,
        permission: Permission | str,
    ) -> AuthDecision:
        """Authorize *username* for *permission*.

        Returns
        -------
        AuthDecision
            Describes which row granted the permission.

        Raises
        ------
        AclError
            A classified failure: invalid permission, missing store or
            server line, bind failure, missing user row or permission
            mismatch (when the policy makes them terminal), no groups, or
            no registered group.
        """
        try:
            decision = self._authorize(username, password, permission)
        except AclError as exc:
            logger.info(
                "Authorization denied for %s (%s): [%d] %s",
                username,
                permission,
                exc.code,
                exc.message,
            )
            self._audit(username, permission, success=False, error_code=exc.code)
            raise
        logger.info(
            "Authorization granted for %s (%s) by %s '%s'",
            username,
            decision.permission.value,
            decision.granted_by.name.lower(),
            decision.principal,
        )
        self._audit(
            username,
            decision.permission,
            success=True,
            granted_by=decision.granted_by.value,
            principal=decision.principal,
        )
        return decision

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _authorize(
        self,
        username: str,
        password: str,
        permission: Permission | str,
    ) -> AuthDecision:
        requested = Permission.parse(permission)
        url = self.directory_url()

        self._bind(url, username, password)

        mismatch: PermissionMismatchError | None = None
        found = self._store.lookup(username, PrincipalKind.USER)
        if found is requested:
            return AuthDecision(
                username=username,
                permission=requested,
                granted_by=PrincipalKind.USER,
                principal=username,
            )
        if found is not None:
            mismatch = PermissionMismatchError(username, requested.value, found.value)
            if self._policy.direct_mismatch_terminal or not self._policy.group_fallback:
                raise mismatch
            logger.debug("User row for %s grants %s, checking groups", username, found.value)
        elif not self._policy.group_fallback:
            raise UserNotFoundError(username)

        group = self._check_groups(url, username, password, requested)
        return AuthDecision(
            username=username,
            permission=requested,
            granted_by=PrincipalKind.GROUP,
            principal=group,
            mismatch=mismatch,
        )

    def _bind(self, url: str, username: str, password: str) -> None:
        try:
            self._directory.bind(url, username, password)
        except DirectoryError as exc:
            raise DirectoryBindError(username, str(exc)) from exc

    def _check_groups(
        self,
        url: str,
        username: str,
        password: str,
        requested: Permission,
    ) -> str:
        """Return the first group granting *requested*."""
        try:
            groups = self._directory.groups_of(url, username, username, password)
        except DirectoryError as exc:
            raise UserNotInAnyGroupError(username, str(exc)) from exc
        if not groups:
            raise UserNotInAnyGroupError(username)

        for group in groups:
            found = self._store.lookup(group, PrincipalKind.GROUP)
            if found is None:
                continue
            if found is requested:
                return group
            logger.debug("Group row for %s grants %s, not %s", group, found.value, requested.value)
            if not self._policy.continue_group_scan:
                raise PermissionMismatchError(group, requested.value, found.value)
        raise NoRegisteredGroupError(requested.value)

    def _audit(
        self,
        username: str,
        permission: Permission | str,
        success: bool,
        **fields: object,
    ) -> None:
        if self._audit_logger is None:
            return
        value = permission.value if isinstance(permission, Permission) else str(permission)
        try:
            self._audit_logger.log(
                {
                    "event": "authorization",
                    "username": username,
                    "permission": value,
                    "success": success,
                    **fields,
                }
            )
        except OSError as exc:
            logger.warning("Audit record for %s not written: %s", username, exc)
