"""Append-only JSONL audit trail for authorization decisions.

Every decision and every ACL mutation performed through the service can
be written as a newline-delimited JSON record.  Each record carries a UTC
ISO-8601 timestamp, a session identifier, and the event fields supplied
by the caller.  Credentials are never part of a record.

Example
-------
>>> from pathlib import Path
>>> audit = AuditLogger(Path("/tmp/acl_audit.jsonl"))
>>> audit.log({"event": "authorization", "username": "jdoe", "success": True})
>>> audit.query({"username": "jdoe"})[0]["success"]
True
"""
from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


class AuditLogger:
    """Append-only JSONL audit logger.

    Parameters
    ----------
    log_path:
        Path to the ``.jsonl`` audit file.  Parent directories are created
        on first write.
    session_id:
        Identifier stamped on every record.  A random UUID when omitted.
    """

    def __init__(
        self,
        log_path: Path,
        session_id: str | None = None,
    ) -> None:
        self._log_path = Path(log_path)
        self._session_id: str = session_id or str(uuid.uuid4())
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Write API
    # ------------------------------------------------------------------

    def log(self, entry: dict[str, object]) -> None:
        """Append an event record.

        ``timestamp`` and ``session_id`` are added automatically and
        cannot be overridden by the caller.
        """
        record: dict[str, object] = {
            **entry,
            "timestamp": datetime.now(tz=timezone.utc).isoformat(),
            "session_id": self._session_id,
        }
        self._write(record)

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    def read_all(self) -> list[dict[str, object]]:
        """Return every record in chronological order (empty if no file)."""
        return list(self._iter_records())

    def query(self, filters: dict[str, object]) -> list[dict[str, object]]:
        """Return records whose top-level fields equal every filter value."""
        return [
            record
            for record in self._iter_records()
            if all(record.get(k) == v for k, v in filters.items())
        ]

    def count(self) -> int:
        return sum(1 for _ in self._iter_records())

    def last_n(self, n: int) -> list[dict[str, object]]:
        """Return the ``n`` most recent records."""
        if n <= 0:
            return []
        return self.read_all()[-n:]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _write(self, record: dict[str, object]) -> None:
        with self._lock:
            self._log_path.parent.mkdir(parents=True, exist_ok=True)
            with self._log_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(record, default=str) + "\n")

    def _iter_records(self) -> Iterator[dict[str, object]]:
        if not self._log_path.exists():
            return
        with self._lock:
            with self._log_path.open("r", encoding="utf-8") as fh:
                lines = fh.readlines()
        for number, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Skipping malformed audit line %d in %s", number, self._log_path)

    @property
    def log_path(self) -> Path:
        """The filesystem path of the audit log."""
        return self._log_path

    @property
    def session_id(self) -> str:
        """The session identifier stamped on every record."""
        return self._session_id
