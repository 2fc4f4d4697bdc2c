"""Public facade: every operation returns an :class:`AuthResponse`.

:class:`AclService` is the surface consumed by front-ends.  It wires the
ACL store, the authorization engine and the directory collaborators
together, and it is the only place where failures are caught: every
classified :class:`~directory_acl.errors.AclError` keeps its code,
anything else becomes ``ErrorKind.UNCLASSIFIED``.  No exception crosses
this boundary.

Example
-------
::

    from directory_acl import AclService, ConfigLoader

    config = ConfigLoader().load(Path("acl.yaml"))
    service = AclService.from_config(config, directory=MyLdapClient())

    service.record_server("dc01.corp.local")
    service.upsert_permission("Engineering", "G", "O")
    response = service.authenticate("alice", "s3cret", "O")
    if not response.success:
        print(response.error_code, response.error_message)
"""
from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Callable, TypeVar

from directory_acl.acl.entry import NOT_AVAILABLE, PrincipalKind, ServerRecord
from directory_acl.acl.store import AclStore
from directory_acl.audit.logger import AuditLogger
from directory_acl.directory.client import (
    DirectoryClient,
    DirectoryError,
    NullDirectoryClient,
)
from directory_acl.directory.probe import (
    ProbeError,
    ReachabilityProbe,
    SocketReachabilityProbe,
)
from directory_acl.engine.authorizer import AuthorizationEngine, AuthorizationPolicy
from directory_acl.errors import (
    DirectoryBindError,
    DirectoryQueryError,
    ReachabilityProbeError,
)
from directory_acl.response import AuthResponse

if TYPE_CHECKING:
    from directory_acl.config import AclConfig
    from directory_acl.directory.probe import ProbeResult

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., AuthResponse])
_T = TypeVar("_T")


def _public(func: _F) -> _F:
    """Convert every exception raised by *func* into a failed response."""

    @functools.wraps(func)
    def wrapper(*args: object, **kwargs: object) -> AuthResponse:
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            response = AuthResponse.from_exception(exc)
            logger.debug(
                "%s failed: [%d] %s", func.__name__, response.error_code, response.error_message
            )
            return response

    return wrapper  # type: ignore[return-value]


class AclService:
    """Authorization and ACL administration facade.

    Parameters
    ----------
    store:
        The ACL store.
    directory:
        Directory collaborator for binds and searches.  Without one, only
        store administration and probing succeed.
    probe:
        Reachability collaborator.  Defaults to
        :class:`SocketReachabilityProbe` on port 389.
    policy:
        Precedence switches for :meth:`authenticate`.
    audit_logger:
        Optional audit trail for decisions and ACL changes.
    use_ssl:
        Use ``ldaps://`` URLs for the recorded server.
    """

    def __init__(
        self,
        store: AclStore,
        directory: DirectoryClient | None = None,
        probe: ReachabilityProbe | None = None,
        policy: AuthorizationPolicy | None = None,
        audit_logger: AuditLogger | None = None,
        use_ssl: bool = False,
    ) -> None:
        self._store = store
        self._directory = directory if directory is not None else NullDirectoryClient()
        self._probe = probe or SocketReachabilityProbe()
        self._audit_logger = audit_logger
        self._use_ssl = use_ssl
        self._engine = AuthorizationEngine(
            store,
            self._directory,
            policy=policy,
            audit_logger=audit_logger,
            use_ssl=use_ssl,
        )

    @classmethod
    def from_config(
        cls,
        config: "AclConfig",
        directory: DirectoryClient | None = None,
        probe: ReachabilityProbe | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> AclService:
        """Build a service from a validated :class:`AclConfig`."""
        if audit_logger is None and config.audit.enabled:
            audit_logger = AuditLogger(config.audit.log_path)
        if probe is None:
            probe = SocketReachabilityProbe(
                port=config.directory.port,
                timeout=config.directory.probe_timeout_seconds,
            )
        return cls(
            store=AclStore(config.store.path),
            directory=directory,
            probe=probe,
            policy=config.policy.to_policy(),
            audit_logger=audit_logger,
            use_ssl=config.directory.use_ssl,
        )

    @property
    def store(self) -> AclStore:
        return self._store

    @property
    def engine(self) -> AuthorizationEngine:
        return self._engine

    # ------------------------------------------------------------------
    # Server setup
    # ------------------------------------------------------------------

    @_public
    def test_connection(self, host: str) -> AuthResponse:
        """Probe *host* without recording anything."""
        result = self._run_probe(host)
        return AuthResponse.ok(
            result_bool=True,
            result_string=result.summary(),
            result_array=result.addresses,
        )

    @_public
    def record_server(self, host: str) -> AuthResponse:
        """Probe *host* and record its details in the store header.

        Unreachable hosts are never recorded.  ``result_bool`` is ``True``
        when the store was written and ``False`` when the identical details
        were already present.
        """
        result = self._run_probe(host)
        written = self._store.record_server(result.addresses, result.host_name)
        self._audit("record_server", host=host, host_name=result.host_name, written=written)
        return AuthResponse.ok(result_bool=written, result_string=result.summary())

    @_public
    def is_server_recorded(self) -> AuthResponse:
        return AuthResponse.ok(result_bool=self._store.is_server_recorded())

    @_public
    def test_credentials(self, host: str, username: str, password: str) -> AuthResponse:
        """Bind to *host* with the given credentials, nothing else."""
        if not host.strip():
            raise DirectoryBindError(username, "host must not be empty")
        url = ServerRecord((host,), NOT_AVAILABLE).directory_url(use_ssl=self._use_ssl)
        try:
            self._directory.bind(url, username, password)
        except DirectoryError as exc:
            raise DirectoryBindError(username, str(exc)) from exc
        return AuthResponse.ok(result_bool=True)

    # ------------------------------------------------------------------
    # ACL administration
    # ------------------------------------------------------------------

    @_public
    def upsert_permission(self, name: str, kind: str, permission: str) -> AuthResponse:
        entry = self._store.upsert_permission(name, kind, permission)
        self._audit("upsert_permission", entry=entry.to_line())
        return AuthResponse.ok(result_bool=True, result_string=entry.to_line())

    @_public
    def clear_all_entries(self) -> AuthResponse:
        removed = self._store.clear_all_entries()
        self._audit("clear_all_entries", removed=removed)
        return AuthResponse.ok(result_bool=True, result_string=str(removed))

    @_public
    def lookup(self, name: str, kind: str) -> AuthResponse:
        """Return the permission code stored for ``(name, kind)``.

        An absent row is not a failure: ``result_bool`` is ``False`` and
        ``result_string`` is empty.
        """
        found = self._store.lookup(name, PrincipalKind.parse(kind))
        if found is None:
            return AuthResponse.ok(result_bool=False)
        return AuthResponse.ok(result_bool=True, result_string=found.value)

    @_public
    def list_entries(self) -> AuthResponse:
        rows = [entry.to_line() for entry in self._store.entries()]
        return AuthResponse.ok(result_bool=bool(rows), result_array=rows)

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    @_public
    def authenticate(self, username: str, password: str, permission: str) -> AuthResponse:
        """Bind *username* and check it holds *permission*.

        On success ``result_bool`` is ``True``, ``result_string`` names the
        granting user or group and ``result_array`` holds its kind code.
        """
        decision = self._engine.authorize(username, password, permission)
        return AuthResponse.ok(
            result_bool=True,
            result_string=decision.principal,
            result_array=[decision.granted_by.value],
        )

    # ------------------------------------------------------------------
    # Directory passthroughs
    # ------------------------------------------------------------------

    @_public
    def get_user(self, user_name: str, bind_username: str, bind_password: str) -> AuthResponse:
        found = self._query(
            "get_user", self._directory.find_user, user_name, bind_username, bind_password
        )
        return AuthResponse.ok(result_bool=bool(found), result_string=found)

    @_public
    def get_group(self, group_name: str, bind_username: str, bind_password: str) -> AuthResponse:
        found = self._query(
            "get_group", self._directory.find_group, group_name, bind_username, bind_password
        )
        return AuthResponse.ok(result_bool=bool(found), result_string=found)

    @_public
    def get_all_groups(self, bind_username: str, bind_password: str) -> AuthResponse:
        groups = self._query(
            "get_all_groups", self._directory.list_groups, bind_username, bind_password
        )
        return AuthResponse.ok(result_bool=bool(groups), result_array=groups)

    @_public
    def get_users_in_group(
        self, group_name: str, bind_username: str, bind_password: str
    ) -> AuthResponse:
        members = self._query(
            "get_users_in_group",
            self._directory.members_of,
            group_name,
            bind_username,
            bind_password,
        )
        return AuthResponse.ok(result_bool=bool(members), result_array=members)

    @_public
    def get_groups_for_user(
        self, user_name: str, bind_username: str, bind_password: str
    ) -> AuthResponse:
        groups = self._query(
            "get_groups_for_user",
            self._directory.groups_of,
            user_name,
            bind_username,
            bind_password,
        )
        return AuthResponse.ok(result_bool=bool(groups), result_array=groups)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run_probe(self, host: str) -> "ProbeResult":
        try:
            return self._probe.probe(host)
        except ProbeError as exc:
            raise ReachabilityProbeError(host, str(exc)) from exc

    def _query(self, operation: str, call: Callable[..., _T], *args: str) -> _T:
        url = self._engine.directory_url()
        try:
            return call(url, *args)
        except DirectoryError as exc:
            raise DirectoryQueryError(operation, str(exc)) from exc

    def _audit(self, event: str, **fields: object) -> None:
        if self._audit_logger is None:
            return
        try:
            self._audit_logger.log({"event": event, **fields})
        except OSError as exc:
            logger.warning("Audit record for %s not written: %s", event, exc)

