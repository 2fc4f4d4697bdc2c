"""Reachability probe for directory servers.

A probe confirms that a host answers before its details are recorded in
the ACL store, and resolves the addresses and canonical host name that
end up on the store's ``Server:`` line.

The default :class:`SocketReachabilityProbe` opens a TCP connection to
the LDAP port instead of sending ICMP echo requests, which would need
raw-socket privileges.
"""
from __future__ import annotations

import logging
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass

from directory_acl.acl.entry import NOT_AVAILABLE

logger = logging.getLogger(__name__)


class ProbeError(Exception):
    """Raised when a host does not answer the probe."""


@dataclass(frozen=True)
class ProbeResult:
    """Details of a host that answered the probe."""

    addresses: tuple[str, ...]
    host_name: str

    def summary(self) -> str:
        ips = ", ".join(self.addresses)
        return f"Ping succeeded. IPs: {ips}, HostName: {self.host_name}"


class ReachabilityProbe(ABC):
    """Abstract reachability collaborator."""

    @abstractmethod
    def probe(self, host: str) -> ProbeResult:
        """Check that *host* answers and resolve its details.

        Raises
        ------
        ProbeError
            If the host does not answer.
        """


class SocketReachabilityProbe(ReachabilityProbe):
    """TCP-connect probe with DNS resolution.

    Parameters
    ----------
    port:
        Port to connect to.  Default 389 (LDAP).
    timeout:
        Connect timeout in seconds.
    """

    def __init__(self, port: int = 389, timeout: float = 3.0) -> None:
        self._port = port
        self._timeout = timeout

    def probe(self, host: str) -> ProbeResult:
        host = host.strip()
        if not host:
            raise ProbeError("host must not be empty")

        try:
            with socket.create_connection((host, self._port), timeout=self._timeout):
                pass
        except OSError as exc:
            raise ProbeError(f"{host}:{self._port} unreachable: {exc}") from exc

        return ProbeResult(
            addresses=self._resolve_addresses(host),
            host_name=self._resolve_host_name(host),
        )

    def _resolve_addresses(self, host: str) -> tuple[str, ...]:
        try:
            infos = socket.getaddrinfo(host, None, proto=socket.IPPROTO_TCP)
        except OSError as exc:
            logger.warning("Address resolution failed for %s: %s", host, exc)
            return (NOT_AVAILABLE,)
        seen: dict[str, None] = {}
        for info in infos:
            seen.setdefault(str(info[4][0]), None)
        return tuple(seen) or (NOT_AVAILABLE,)

    @staticmethod
    def _resolve_host_name(host: str) -> str:
        try:
            return socket.getfqdn(host) or NOT_AVAILABLE
        except OSError as exc:
            logger.warning("Host name resolution failed for %s: %s", host, exc)
            return NOT_AVAILABLE
