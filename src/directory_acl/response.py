"""Uniform response envelope returned by every public operation.

Example
-------
>>> response = AuthResponse.ok(result_bool=True)
>>> response.success, response.error_code
(True, 0)
>>> from directory_acl.errors import InvalidKindError
>>> AuthResponse.from_exception(InvalidKindError("X")).error_code
4007
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

from directory_acl.errors import AclError, ErrorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResponse:
    """Result of a public operation.

    Fields unrelated to the operation keep their zero value.
    ``success`` is ``False`` exactly when ``error_code`` is non-zero.

    Attributes
    ----------
    success:
        Whether the operation completed.
    error_code:
        Stable :class:`~directory_acl.errors.ErrorKind` code, ``0`` on success.
    error_message:
        Human-readable explanation, empty on success.
    result_bool / result_string / result_array:
        Operation-specific payload.
    """

    success: bool = True
    error_code: int = 0
    error_message: str = ""
    result_bool: bool = False
    result_string: str = ""
    result_array: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.success == (self.error_code != 0):
            raise ValueError(
                f"Inconsistent AuthResponse: success={self.success} "
                f"error_code={self.error_code}"
            )

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(
        cls,
        result_bool: bool = False,
        result_string: str = "",
        result_array: list[str] | tuple[str, ...] = (),
    ) -> AuthResponse:
        """Build a successful response."""
        return cls(
            result_bool=result_bool,
            result_string=result_string,
            result_array=tuple(result_array),
        )

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> AuthResponse:
        """Build a failed response for *kind*."""
        if kind is ErrorKind.NONE:
            kind = ErrorKind.UNCLASSIFIED
        return cls(success=False, error_code=int(kind), error_message=message)

    @classmethod
    def from_exception(cls, exc: BaseException) -> AuthResponse:
        """Convert any exception into a failed response.

        Classified :class:`AclError` instances keep their code; everything
        else is reported as :attr:`ErrorKind.UNCLASSIFIED`.
        """
        if isinstance(exc, AclError):
            return cls.failure(exc.kind, exc.message)
        logger.error("Unclassified failure: %s", exc, exc_info=exc)
        return cls.failure(ErrorKind.UNCLASSIFIED, str(exc) or type(exc).__name__)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serialisable representation."""
        data = asdict(self)
        data["result_array"] = list(self.result_array)
        return data
