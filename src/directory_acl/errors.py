"""Closed error taxonomy for directory ACL authorization.

Every failure the package can report is one of the :class:`ErrorKind`
members below.  Codes are a stable contract: front-ends match on the
numeric code, never on the message text.

Errors fall into two families:

- :class:`SetupError`: store, file and configuration problems
- :class:`AuthenticationError`: credential and permission problems

Internal helpers raise these exceptions.  Only the service facade
(:mod:`directory_acl.service`) catches them and converts them into an
:class:`~directory_acl.response.AuthResponse`.

Example
-------
>>> err = InvalidKindError("X")
>>> err.code
4007
>>> err.kind
<ErrorKind.INVALID_KIND: 4007>
"""
from __future__ import annotations

from enum import IntEnum


class ErrorKind(IntEnum):
    """Stable numeric error codes."""

    NONE = 0
    USER_NOT_FOUND = 4000
    PERMISSION_MISMATCH = 4001
    STORE_NOT_FOUND = 4002
    SERVER_ADDRESS_NOT_FOUND = 4003
    USER_NOT_IN_ANY_GROUP = 4004
    NO_REGISTERED_GROUP = 4005
    INVALID_PERMISSION = 4006
    INVALID_KIND = 4007
    STORE_WRITE_FAILED = 4008
    REACHABILITY_PROBE_FAILED = 4009
    DIRECTORY_BIND_FAILED = 4010
    INVALID_ENTRY_NAME = 4011
    DIRECTORY_QUERY_FAILED = 4012
    UNCLASSIFIED = 4999


class AclError(Exception):
    """Base class for every classified failure.

    Attributes
    ----------
    kind:
        The :class:`ErrorKind` this failure belongs to.
    message:
        Human-readable explanation.
    """

    kind: ErrorKind = ErrorKind.UNCLASSIFIED

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    @property
    def code(self) -> int:
        """The stable numeric code of this failure."""
        return int(self.kind)


class SetupError(AclError):
    """Store, file or configuration problem."""


class AuthenticationError(AclError):
    """Credential or permission problem."""


# ---------------------------------------------------------------------------
# Authentication family
# ---------------------------------------------------------------------------


class UserNotFoundError(AuthenticationError):
    kind = ErrorKind.USER_NOT_FOUND

    def __init__(self, user_name: str) -> None:
        self.user_name = user_name
        super().__init__(f"User '{user_name}' not found in ACL store.")


class PermissionMismatchError(AuthenticationError):
    """An ACL entry exists but grants a different permission."""

    kind = ErrorKind.PERMISSION_MISMATCH

    def __init__(self, principal: str, expected: str, found: str) -> None:
        self.principal = principal
        self.expected = expected
        self.found = found
        super().__init__(
            f"'{principal}' found, but permission type does not match. "
            f"Expected: {expected}, Found: {found}"
        )


class UserNotInAnyGroupError(AuthenticationError):
    kind = ErrorKind.USER_NOT_IN_ANY_GROUP

    def __init__(self, user_name: str, detail: str | None = None) -> None:
        self.user_name = user_name
        message = (
            f"User '{user_name}' does not belong to any groups "
            "or failed to retrieve groups."
        )
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class NoRegisteredGroupError(AuthenticationError):
    kind = ErrorKind.NO_REGISTERED_GROUP

    def __init__(self, permission: str) -> None:
        self.permission = permission
        super().__init__(
            "No registered group found for user in ACL store "
            f"with permission type '{permission}'."
        )


class DirectoryBindError(AuthenticationError):
    kind = ErrorKind.DIRECTORY_BIND_FAILED

    def __init__(self, user_name: str, detail: str) -> None:
        self.user_name = user_name
        super().__init__(f"Directory bind failed for '{user_name}': {detail}")


# ---------------------------------------------------------------------------
# Setup family
# ---------------------------------------------------------------------------


class StoreNotFoundError(SetupError):
    kind = ErrorKind.STORE_NOT_FOUND

    def __init__(self, path: object = None) -> None:
        self.path = path
        suffix = f": {path}" if path is not None else "."
        super().__init__(f"ACL store does not exist{suffix}")


class ServerAddressNotFoundError(SetupError):
    kind = ErrorKind.SERVER_ADDRESS_NOT_FOUND

    def __init__(self) -> None:
        super().__init__("Directory server address not found in ACL store header.")


class InvalidPermissionError(SetupError):
    kind = ErrorKind.INVALID_PERMISSION

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(
            f"Invalid permission type: '{value}'. Allowed: A (Admin), O (Operator)."
        )


class InvalidKindError(SetupError):
    kind = ErrorKind.INVALID_KIND

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(
            f"Invalid entry type: '{value}'. Allowed: U (User), G (Group)."
        )


class InvalidEntryNameError(SetupError):
    kind = ErrorKind.INVALID_ENTRY_NAME

    def __init__(self, value: object, reason: str) -> None:
        self.value = value
        super().__init__(f"Invalid entry name {value!r}: {reason}")


class StoreWriteError(SetupError):
    kind = ErrorKind.STORE_WRITE_FAILED

    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to write to ACL store: {detail}")


class ReachabilityProbeError(SetupError):
    kind = ErrorKind.REACHABILITY_PROBE_FAILED

    def __init__(self, host: str, detail: str) -> None:
        self.host = host
        super().__init__(f"Failed to reach server '{host}': {detail}")


class DirectoryQueryError(SetupError):
    kind = ErrorKind.DIRECTORY_QUERY_FAILED

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        super().__init__(f"Directory query '{operation}' failed: {detail}")
