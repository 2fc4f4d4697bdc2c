"""Line-oriented, human-editable ACL store.

The store file records the directory server identity and the
``name,kind,permission`` rows that back authorization decisions.
Entry-level mutations never touch blank lines, comments or the
``Server:`` line.

All read-modify-write cycles on one :class:`AclStore` instance are
serialized with a lock.  Separate processes writing the same file are
not coordinated.

Example
-------
>>> from pathlib import Path
>>> store = AclStore(Path("/tmp/LDAP.ini"))
>>> store.record_server(["10.0.0.5"], "dc01.corp.local")
True
>>> store.upsert_permission("jdoe", "U", "A")
AclEntry(name='jdoe', kind=<PrincipalKind.USER: 'U'>, permission=<Permission.ADMIN: 'A'>)
>>> store.lookup("jdoe", "U")
<Permission.ADMIN: 'A'>
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable

from directory_acl.acl.entry import (
    NOT_AVAILABLE,
    AclEntry,
    Permission,
    PrincipalKind,
    ServerRecord,
    is_blank,
    is_comment,
    is_server_line,
    parse_entry_line,
    split_entry_line,
    validate_entry_name,
)
from directory_acl.errors import (
    InvalidKindError,
    ServerAddressNotFoundError,
    StoreNotFoundError,
    StoreWriteError,
)

logger = logging.getLogger(__name__)

BANNER: tuple[str, ...] = (
    "# ======================================================",
    "# LDAP Configuration File",
    "# ======================================================",
    "",
)
SERVER_SECTION_HEADER = "# --------- Server Information ---------"
ACL_SECTION_HEADER = "# --------- Access Control List ---------"
ACL_LEGEND: tuple[str, ...] = (
    ACL_SECTION_HEADER,
    "# Columns: name,type,permission",
    "# type: U= user, G= group",
    "# permission: A = Admin, O = Operator",
)


class AclStore:
    """Persistent table of principal permissions.

    Parameters
    ----------
    path:
        Location of the store file.  The file is created by
        :meth:`record_server`; every other mutation requires it to exist.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        """The filesystem path of the store."""
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    # ------------------------------------------------------------------
    # Server record
    # ------------------------------------------------------------------

    def record_server(self, addresses: Iterable[str], host_name: str) -> bool:
        """Write or update the ``Server:`` line.

        Parameters
        ----------
        addresses:
            Resolved addresses of the directory server.
        host_name:
            Canonical host name of the directory server.

        Returns
        -------
        bool
            ``True`` when the file was written, ``False`` when the identical
            server line was already present.

        Raises
        ------
        StoreWriteError
            If the file cannot be written.
        """
        record = ServerRecord(
            addresses=tuple(addresses) or (NOT_AVAILABLE,),
            host_name=host_name or NOT_AVAILABLE,
        )
        server_line = record.to_line()

        with self._lock:
            if not self.exists():
                lines = [
                    *BANNER,
                    SERVER_SECTION_HEADER,
                    server_line,
                    "",
                    *ACL_LEGEND,
                ]
                self._write_lines(lines)
                logger.info("Created ACL store %s for %s", self._path, record.host_name)
                return True

            lines = self._read_lines()
            for index, line in enumerate(lines):
                if is_server_line(line):
                    if line.strip() == server_line:
                        logger.debug("Server details unchanged in %s", self._path)
                        return False
                    lines[index] = server_line
                    self._write_lines(lines)
                    logger.info("Updated server details in %s: %s", self._path, server_line)
                    return True

            insert_at = next(
                (i for i, line in enumerate(lines) if line.strip() == ACL_SECTION_HEADER),
                len(lines),
            )
            lines[insert_at:insert_at] = [SERVER_SECTION_HEADER, server_line, ""]
            self._write_lines(lines)
            logger.info("Inserted server details into %s", self._path)
            return True

    def server_record(self) -> ServerRecord:
        """Return the recorded server identity.

        Raises
        ------
        StoreNotFoundError
            If the store does not exist.
        ServerAddressNotFoundError
            If no parsable ``Server:`` line is present.
        """
        for line in self._read_lines():
            if is_server_line(line):
                record = ServerRecord.parse_line(line)
                if record is not None:
                    return record
        raise ServerAddressNotFoundError()

    def is_server_recorded(self) -> bool:
        """True when the store exists and holds a usable server line."""
        try:
            self.server_record().primary_address
        except (StoreNotFoundError, ServerAddressNotFoundError):
            return False
        return True

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def upsert_permission(
        self,
        name: str,
        kind: PrincipalKind | str,
        permission: Permission | str,
    ) -> AclEntry:
        """Add a row or update the permission of an existing one.

        Arguments are validated before any I/O.  Issuing the same upsert
        twice leaves the file byte-identical.

        Raises
        ------
        InvalidKindError, InvalidPermissionError, InvalidEntryNameError
            If an argument is outside its allowed set.
        StoreNotFoundError
            If the store has not been created by :meth:`record_server`.
        StoreWriteError
            If the file cannot be written.
        """
        entry = AclEntry(
            name=validate_entry_name(name),
            kind=PrincipalKind.parse(kind),
            permission=Permission.parse(permission),
        )

        with self._lock:
            lines = self._read_lines()
            for index, line in enumerate(lines):
                parts = split_entry_line(line)
                if parts is None or not self._row_matches(parts, entry.name, entry.kind):
                    continue
                parts[2] = entry.permission.value
                lines[index] = ",".join(parts)
                logger.info("Updated ACL entry %s", entry.to_line())
                break
            else:
                lines.append(entry.to_line())
                logger.info("Added ACL entry %s", entry.to_line())
            self._write_lines(lines)
        return entry

    def lookup(self, name: str, kind: PrincipalKind | str) -> Permission | None:
        """Return the permission of the first ``(name, kind)`` row.

        Name comparison is exact and case-sensitive.

        Returns
        -------
        Permission | None
            ``None`` when no row matches.

        Raises
        ------
        StoreNotFoundError
            If the store does not exist.
        """
        principal_kind = PrincipalKind.parse(kind)
        for line in self._read_lines():
            entry = parse_entry_line(line)
            if entry is not None and entry.name == name and entry.kind is principal_kind:
                return entry.permission
        return None

    def entries(self) -> list[AclEntry]:
        """Return every parsable row in file order."""
        parsed = (parse_entry_line(line) for line in self._read_lines())
        return [entry for entry in parsed if entry is not None]

    def clear_all_entries(self) -> int:
        """Drop every row, keeping blank, comment and ``Server:`` lines.

        Returns
        -------
        int
            Number of lines removed.

        Raises
        ------
        StoreNotFoundError
            If the store does not exist.
        StoreWriteError
            If the file cannot be written.
        """
        with self._lock:
            lines = self._read_lines()
            kept = [
                line
                for line in lines
                if is_blank(line) or is_comment(line) or is_server_line(line)
            ]
            self._write_lines(kept)
        removed = len(lines) - len(kept)
        logger.info("Cleared %d ACL entries from %s", removed, self._path)
        return removed

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_matches(parts: list[str], name: str, kind: PrincipalKind) -> bool:
        if parts[0] != name:
            return False
        try:
            return PrincipalKind.parse(parts[1]) is kind
        except InvalidKindError:
            return False

    def _read_lines(self) -> list[str]:
        if not self.exists():
            raise StoreNotFoundError(self._path)
        with self._path.open("r", encoding="utf-8") as fh:
            return fh.read().splitlines()

    def _write_lines(self, lines: list[str]) -> None:
        """Rewrite the whole file, one ``\\n``-terminated line per item.

        The content is written to a sibling temporary file which then
        replaces the store, so a failed write leaves the store untouched.
        """
        tmp_path = self._path.with_name(f".{self._path.name}.tmp")
        try:
            data = "".join(f"{line}\n" for line in lines).encode("utf-8")
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            tmp_path.replace(self._path)
        except (OSError, UnicodeError) as exc:
            self._discard(tmp_path)
            raise StoreWriteError(str(exc)) from exc

    @staticmethod
    def _discard(tmp_path: Path) -> None:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove temporary file %s: %s", tmp_path, exc)
