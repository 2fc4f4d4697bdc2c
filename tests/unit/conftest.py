"""Shared fixtures: in-memory directory and probe collaborators."""
from __future__ import annotations

from pathlib import Path

import pytest

from directory_acl.acl.store import AclStore
from directory_acl.directory.client import DirectoryClient, DirectoryError
from directory_acl.directory.probe import ProbeError, ProbeResult, ReachabilityProbe


class FakeDirectory(DirectoryClient):
    """Directory backed by dicts; records every call."""

    def __init__(
        self,
        passwords: dict[str, str] | None = None,
        memberships: dict[str, list[str]] | None = None,
    ) -> None:
        self.passwords = passwords or {}
        self.memberships = memberships or {}
        self.calls: list[tuple[str, ...]] = []
        self.groups_error: str | None = None

    def bind(self, url: str, username: str, password: str) -> None:
        self.calls.append(("bind", url, username))
        if self.passwords.get(username) != password:
            raise DirectoryError("invalid credentials")

    def groups_of(self, url, user_name, bind_username, bind_password):  # type: ignore[no-untyped-def]
        self.calls.append(("groups_of", url, user_name))
        if self.groups_error:
            raise DirectoryError(self.groups_error)
        return list(self.memberships.get(user_name, []))

    def find_user(self, url, user_name, bind_username, bind_password):  # type: ignore[no-untyped-def]
        self.calls.append(("find_user", url, user_name))
        if user_name not in self.passwords:
            return ""
        return f"sAMAccountName={user_name};displayName={user_name.title()}"

    def find_group(self, url, group_name, bind_username, bind_password):  # type: ignore[no-untyped-def]
        self.calls.append(("find_group", url, group_name))
        return f"sAMAccountName={group_name}" if group_name in self._all_groups() else ""

    def list_groups(self, url, bind_username, bind_password):  # type: ignore[no-untyped-def]
        self.calls.append(("list_groups", url))
        return self._all_groups()

    def members_of(self, url, group_name, bind_username, bind_password):  # type: ignore[no-untyped-def]
        self.calls.append(("members_of", url, group_name))
        if group_name not in self._all_groups():
            raise DirectoryError(f"Group '{group_name}' not found.")
        return sorted(u for u, groups in self.memberships.items() if group_name in groups)

    def _all_groups(self) -> list[str]:
        return sorted({g for groups in self.memberships.values() for g in groups})

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeProbe(ReachabilityProbe):
    """Probe answering from a fixed host table."""

    def __init__(self, hosts: dict[str, ProbeResult] | None = None) -> None:
        self.hosts = hosts or {}
        self.probed: list[str] = []

    def probe(self, host: str) -> ProbeResult:
        self.probed.append(host)
        if host not in self.hosts:
            raise ProbeError("Ping failed: TimedOut")
        return self.hosts[host]


DC01 = ProbeResult(addresses=("10.0.0.5", "fe80::1"), host_name="dc01.corp.local")
DC02 = ProbeResult(addresses=("10.0.0.6",), host_name="dc02.corp.local")


@pytest.fixture()
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "LDAP.ini"


@pytest.fixture()
def store(store_path: Path) -> AclStore:
    return AclStore(store_path)


@pytest.fixture()
def recorded_store(store: AclStore) -> AclStore:
    store.record_server(DC01.addresses, DC01.host_name)
    return store


@pytest.fixture()
def directory() -> FakeDirectory:
    return FakeDirectory(
        passwords={"jdoe": "pw-jdoe", "alice": "pw-alice", "bob": "pw-bob"},
        memberships={
            "alice": ["Engineering"],
            "bob": ["Sales", "Support", "Admins"],
            "jdoe": [],
        },
    )


@pytest.fixture()
def probe() -> FakeProbe:
    return FakeProbe({"dc01": DC01, "dc02": DC02})
