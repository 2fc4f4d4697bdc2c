"""Directory client interface.

All live directory I/O (credential binds, membership enumeration, entry
searches) goes through a :class:`DirectoryClient`.  Deployments implement
it on top of their LDAP library; the authorization engine only depends on
this interface.

Every method receives the directory URL explicitly, taken from the
server line of the ACL store, so a client holds no server state of its
own.  Failures are reported by raising :class:`DirectoryError`.
"""
from __future__ import annotations

from abc import ABC, abstractmethod


class DirectoryError(Exception):
    """Raised by a directory client when a bind or search fails."""


class DirectoryClient(ABC):
    """Abstract directory collaborator."""

    @abstractmethod
    def bind(self, url: str, username: str, password: str) -> None:
        """Validate *username* / *password* against the directory at *url*.

        Raises
        ------
        DirectoryError
            If the credentials are rejected or the server cannot be reached.
        """

    @abstractmethod
    def groups_of(
        self,
        url: str,
        user_name: str,
        bind_username: str,
        bind_password: str,
    ) -> list[str]:
        """Return the names of the groups *user_name* is a direct member of."""

    @abstractmethod
    def find_user(
        self,
        url: str,
        user_name: str,
        bind_username: str,
        bind_password: str,
    ) -> str:
        """Return a ``key=value;`` summary of the user, or ``""`` if absent."""

    @abstractmethod
    def find_group(
        self,
        url: str,
        group_name: str,
        bind_username: str,
        bind_password: str,
    ) -> str:
        """Return a ``key=value;`` summary of the group, or ``""`` if absent."""

    @abstractmethod
    def list_groups(self, url: str, bind_username: str, bind_password: str) -> list[str]:
        """Return every group account name visible to the bind account."""

    @abstractmethod
    def members_of(
        self,
        url: str,
        group_name: str,
        bind_username: str,
        bind_password: str,
    ) -> list[str]:
        """Return the account names of the members of *group_name*."""


class NullDirectoryClient(DirectoryClient):
    """Client used when no directory is configured; every call fails.

    Lets store administration run without a directory connection while
    directory-dependent operations still report a classified failure.
    """

    def _fail(self, *_args: object) -> None:
        raise DirectoryError("no directory client configured")

    bind = _fail  # type: ignore[assignment]
    groups_of = _fail  # type: ignore[assignment]
    find_user = _fail  # type: ignore[assignment]
    find_group = _fail  # type: ignore[assignment]
    list_groups = _fail  # type: ignore[assignment]
    members_of = _fail  # type: ignore[assignment]


def group_name_from_dn(dn: str) -> str | None:
    """Extract the ``CN`` component from a distinguished name.

    Example
    -------
    >>> group_name_from_dn("CN=Engineering,OU=Groups,DC=corp,DC=local")
    'Engineering'
    >>> group_name_from_dn("OU=Groups,DC=corp") is None
    True
    """
    start = dn.upper().find("CN=")
    if start < 0:
        return None
    start += 3
    end = dn.find(",", start)
    name = dn[start:] if end < 0 else dn[start:end]
    return name or None
