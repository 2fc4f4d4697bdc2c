"""Value types and line codec for the ACL store.

The store is a flat text file.  Each access-control row has the shape
``name,kind,permission`` where ``kind`` is ``U`` (user) or ``G`` (group)
and ``permission`` is ``A`` (Admin) or ``O`` (Operator).  A single
``Server: IPs=<addresses>, HostName=<name>`` line records the directory
server.  Blank lines and ``#`` comments are free-form.

Example
-------
>>> Permission.parse("admin")
<Permission.ADMIN: 'A'>
>>> parse_entry_line("jdoe,U,A")
AclEntry(name='jdoe', kind=<PrincipalKind.USER: 'U'>, permission=<Permission.ADMIN: 'A'>)
>>> ServerRecord.parse_line("Server: IPs=10.0.0.5, fe80::1, HostName=dc01.corp").addresses
('10.0.0.5', 'fe80::1')
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from directory_acl.errors import (
    InvalidEntryNameError,
    InvalidKindError,
    InvalidPermissionError,
    ServerAddressNotFoundError,
)

SERVER_PREFIX = "Server:"
COMMENT_PREFIX = "#"
NOT_AVAILABLE = "N/A"

_SERVER_LINE_RE = re.compile(
    r"^Server:\s*IPs=(?P<ips>.*?),?\s*HostName=(?P<host>.*)$"
)


class PrincipalKind(str, Enum):
    """Kind of principal an ACL row refers to."""

    USER = "U"
    GROUP = "G"

    @classmethod
    def parse(cls, value: object) -> PrincipalKind:
        """Parse ``U``/``G`` or ``user``/``group`` (case-insensitive).

        Raises
        ------
        InvalidKindError
            If *value* names neither kind.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if text in (member.value.lower(), member.name.lower()):
                return member
        raise InvalidKindError(value)


class Permission(str, Enum):
    """The two permission levels."""

    ADMIN = "A"
    OPERATOR = "O"

    @classmethod
    def parse(cls, value: object) -> Permission:
        """Parse ``A``/``O`` or ``admin``/``operator`` (case-insensitive).

        Raises
        ------
        InvalidPermissionError
            If *value* names neither level.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if text in (member.value.lower(), member.name.lower()):
                return member
        raise InvalidPermissionError(value)


@dataclass(frozen=True)
class AclEntry:
    """A single ``name,kind,permission`` row."""

    name: str
    kind: PrincipalKind
    permission: Permission

    def to_line(self) -> str:
        return f"{self.name},{self.kind.value},{self.permission.value}"


@dataclass(frozen=True)
class ServerRecord:
    """Directory server identity recorded in the store header.

    Attributes
    ----------
    addresses:
        Resolved addresses in resolution order.  ``("N/A",)`` when the
        host could not be resolved.
    host_name:
        Canonical host name, or ``"N/A"``.
    """

    addresses: tuple[str, ...]
    host_name: str

    @classmethod
    def parse_line(cls, line: str) -> ServerRecord | None:
        """Parse a ``Server:`` line, returning ``None`` when it does not match."""
        match = _SERVER_LINE_RE.match(line.strip())
        if match is None:
            return None
        ips = [ip.strip() for ip in match.group("ips").split(",") if ip.strip()]
        host = match.group("host").strip()
        return cls(addresses=tuple(ips) or (NOT_AVAILABLE,), host_name=host or NOT_AVAILABLE)

    def to_line(self) -> str:
        ips = ", ".join(self.addresses) if self.addresses else NOT_AVAILABLE
        return f"{SERVER_PREFIX} IPs={ips}, HostName={self.host_name}"

    @property
    def primary_address(self) -> str:
        """First usable address, falling back to the host name.

        Raises
        ------
        ServerAddressNotFoundError
            If neither an address nor a host name was recorded.
        """
        for address in self.addresses:
            if address and address != NOT_AVAILABLE:
                return address
        if self.host_name and self.host_name != NOT_AVAILABLE:
            return self.host_name
        raise ServerAddressNotFoundError()

    def directory_url(self, use_ssl: bool = False) -> str:
        """Return the LDAP URL used to reach the recorded server."""
        address = self.primary_address
        if address.lower().startswith(("ldap://", "ldaps://")):
            return address
        if address.count(":") > 1 and not address.startswith("["):
            address = f"[{address}]"
        scheme = "ldaps" if use_ssl else "ldap"
        return f"{scheme}://{address}"


# ---------------------------------------------------------------------------
# Line classification
# ---------------------------------------------------------------------------


def is_comment(line: str) -> bool:
    return line.strip().startswith(COMMENT_PREFIX)


def is_blank(line: str) -> bool:
    return not line.strip()


def is_server_line(line: str) -> bool:
    return line.strip().startswith(SERVER_PREFIX)


def is_entry_candidate(line: str) -> bool:
    """True for lines that may hold an ACL row."""
    return not (is_blank(line) or is_comment(line) or is_server_line(line))


def split_entry_line(line: str) -> list[str] | None:
    """Split a row into columns, or ``None`` when it has fewer than three."""
    if not is_entry_candidate(line):
        return None
    parts = line.split(",")
    if len(parts) < 3:
        return None
    return parts


def parse_entry_line(line: str) -> AclEntry | None:
    """Parse a row into an :class:`AclEntry`.

    Extra trailing columns are ignored.  Returns ``None`` for non-row
    lines and rows whose kind or permission column does not parse.
    """
    parts = split_entry_line(line)
    if parts is None:
        return None
    try:
        kind = PrincipalKind.parse(parts[1])
        permission = Permission.parse(parts[2])
    except (InvalidKindError, InvalidPermissionError):
        return None
    return AclEntry(name=parts[0], kind=kind, permission=permission)


def validate_entry_name(name: str) -> str:
    """Reject names that cannot be stored as a row.

    Raises
    ------
    InvalidEntryNameError
        If *name* is empty, contains a comma or line break, would be read
        back as a comment or server line, or cannot be encoded as UTF-8.
    """
    if not name or not name.strip():
        raise InvalidEntryNameError(name, "name must not be empty")
    if "," in name:
        raise InvalidEntryNameError(name, "name must not contain ','")
    if "\n" in name or "\r" in name:
        raise InvalidEntryNameError(name, "name must not contain line breaks")
    if not is_entry_candidate(name):
        raise InvalidEntryNameError(name, "name collides with a comment or server line")
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidEntryNameError(name, "name is not valid UTF-8 text") from None
    return name
