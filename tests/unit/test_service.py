"""Tests for the AclService facade."""
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from directory_acl.acl.store import AclStore
from directory_acl.audit.logger import AuditLogger
from directory_acl.config import ConfigLoader
from directory_acl.directory.client import NullDirectoryClient
from directory_acl.directory.probe import ProbeResult, SocketReachabilityProbe
from directory_acl.engine.authorizer import AuthorizationPolicy
from directory_acl.errors import ErrorKind
from directory_acl.response import AuthResponse
from directory_acl.service import AclService

if TYPE_CHECKING:
    from conftest import FakeDirectory, FakeProbe


@pytest.fixture()
def service(store: AclStore, directory: FakeDirectory, probe: FakeProbe) -> AclService:
    return AclService(store, directory=directory, probe=probe)


@pytest.fixture()
def ready(service: AclService) -> AclService:
    assert service.record_server("dc01").success
    return service


def _assert_consistent(response: AuthResponse) -> None:
    assert response.success == (response.error_code == 0)
    if response.success:
        assert response.error_message == ""
    else:
        assert response.error_message


# ---------------------------------------------------------------------------
# Server setup
# ---------------------------------------------------------------------------


class TestServerSetup:
    def test_test_connection(self, service: AclService, store_path: Path) -> None:
        response = service.test_connection("dc01")
        assert response.success
        assert response.result_string == (
            "Ping succeeded. IPs: 10.0.0.5, fe80::1, HostName: dc01.corp.local"
        )
        assert response.result_array == ("10.0.0.5", "fe80::1")
        assert not store_path.exists()

    def test_unreachable_host_not_recorded(
        self, service: AclService, store_path: Path
    ) -> None:
        response = service.record_server("nowhere")
        assert response.error_code == ErrorKind.REACHABILITY_PROBE_FAILED
        assert "nowhere" in response.error_message
        assert not store_path.exists()

    def test_record_server_reports_write(self, service: AclService) -> None:
        first = service.record_server("dc01")
        second = service.record_server("dc01")
        third = service.record_server("dc02")
        assert (first.result_bool, second.result_bool, third.result_bool) == (True, False, True)
        assert service.store.server_record().host_name == "dc02.corp.local"

    def test_is_server_recorded(self, service: AclService) -> None:
        assert service.is_server_recorded().result_bool is False
        service.record_server("dc01")
        assert service.is_server_recorded().result_bool is True

    def test_test_credentials(self, service: AclService, directory: FakeDirectory) -> None:
        assert service.test_credentials("dc01", "jdoe", "pw-jdoe").result_bool is True
        assert directory.calls[-1] == ("bind", "ldap://dc01", "jdoe")

    def test_test_credentials_keeps_scheme(
        self, service: AclService, directory: FakeDirectory
    ) -> None:
        service.test_credentials("ldaps://dc01:636", "jdoe", "pw-jdoe")
        assert directory.calls[-1][1] == "ldaps://dc01:636"

    def test_test_credentials_failure(self, service: AclService) -> None:
        response = service.test_credentials("dc01", "jdoe", "bad")
        assert response.error_code == ErrorKind.DIRECTORY_BIND_FAILED

    def test_test_credentials_brackets_ipv6(
        self, service: AclService, directory: FakeDirectory
    ) -> None:
        service.test_credentials("fe80::1", "jdoe", "pw-jdoe")
        assert directory.calls[-1][1] == "ldap://[fe80::1]"

    def test_test_credentials_empty_host(self, service: AclService) -> None:
        response = service.test_credentials("  ", "jdoe", "pw-jdoe")
        assert response.error_code == ErrorKind.DIRECTORY_BIND_FAILED

    def test_unwritable_server_details_keep_store(
        self, ready: AclService, probe: FakeProbe, store_path: Path
    ) -> None:
        ready.upsert_permission("jdoe", "U", "A")
        ready.upsert_permission("Engineering", "G", "O")
        before = store_path.read_bytes()
        probe.hosts["dc03"] = ProbeResult(("10.0.0.7",), "dc03\udc80.corp")

        response = ready.record_server("dc03")

        assert response.error_code == ErrorKind.STORE_WRITE_FAILED
        assert store_path.read_bytes() == before
        assert ready.list_entries().result_array == ("jdoe,U,A", "Engineering,G,O")


# ---------------------------------------------------------------------------
# ACL administration
# ---------------------------------------------------------------------------


class TestAdministration:
    def test_upsert_before_record_fails(self, service: AclService) -> None:
        response = service.upsert_permission("jdoe", "U", "A")
        assert response.error_code == ErrorKind.STORE_NOT_FOUND
        _assert_consistent(response)

    def test_upsert_and_lookup(self, ready: AclService) -> None:
        upsert = ready.upsert_permission("Engineering", "group", "operator")
        assert upsert.result_string == "Engineering,G,O"
        lookup = ready.lookup("Engineering", "G")
        assert (lookup.result_bool, lookup.result_string) == (True, "O")

    def test_lookup_absent_row(self, ready: AclService) -> None:
        response = ready.lookup("ghost", "U")
        assert response.success
        assert response.result_bool is False
        assert response.result_string == ""

    def test_invalid_kind_reported(self, ready: AclService) -> None:
        response = ready.upsert_permission("jdoe", "X", "A")
        assert response.error_code == ErrorKind.INVALID_KIND
        assert ready.list_entries().result_array == ()

    def test_unencodable_name_reported(self, ready: AclService) -> None:
        response = ready.upsert_permission("bad\udc80name", "U", "A")
        assert response.error_code == ErrorKind.INVALID_ENTRY_NAME

    def test_invalid_permission_reported(self, ready: AclService) -> None:
        assert ready.upsert_permission("jdoe", "U", "Z").error_code == ErrorKind.INVALID_PERMISSION

    def test_list_and_clear(self, ready: AclService) -> None:
        ready.upsert_permission("jdoe", "U", "A")
        ready.upsert_permission("Engineering", "G", "O")
        assert ready.list_entries().result_array == ("jdoe,U,A", "Engineering,G,O")

        cleared = ready.clear_all_entries()
        assert cleared.result_string == "2"
        assert ready.list_entries().result_bool is False
        assert ready.is_server_recorded().result_bool is True


# ---------------------------------------------------------------------------
# authenticate
# ---------------------------------------------------------------------------


class TestAuthenticate:
    def test_direct_mismatch_with_unmatched_groups(self, ready: AclService) -> None:
        ready.upsert_permission("alice", "U", "O")
        ready.upsert_permission("Engineering", "G", "O")
        response = ready.authenticate("alice", "pw-alice", "A")
        assert response.success is False
        assert response.error_code == ErrorKind.NO_REGISTERED_GROUP

    def test_direct_user(self, ready: AclService) -> None:
        ready.upsert_permission("jdoe", "U", "A")
        response = ready.authenticate("jdoe", "pw-jdoe", "A")
        assert response.success
        assert response.result_string == "jdoe"
        assert response.result_array == ("U",)

    def test_group(self, ready: AclService) -> None:
        ready.upsert_permission("Engineering", "G", "O")
        response = ready.authenticate("alice", "pw-alice", "O")
        assert response.result_string == "Engineering"
        assert response.result_array == ("G",)

    @pytest.mark.parametrize(
        ("username", "password", "permission", "code"),
        [
            ("jdoe", "wrong", "A", ErrorKind.DIRECTORY_BIND_FAILED),
            ("jdoe", "pw-jdoe", "A", ErrorKind.USER_NOT_IN_ANY_GROUP),
            ("alice", "pw-alice", "A", ErrorKind.NO_REGISTERED_GROUP),
            ("alice", "pw-alice", "Q", ErrorKind.INVALID_PERMISSION),
        ],
    )
    def test_failures(
        self, ready: AclService, username: str, password: str, permission: str, code: int
    ) -> None:
        ready.upsert_permission("Engineering", "G", "O")
        response = ready.authenticate(username, password, permission)
        assert response.error_code == code
        _assert_consistent(response)

    def test_policy_passed_to_engine(self, store: AclStore, directory: FakeDirectory) -> None:
        policy = AuthorizationPolicy(group_fallback=False)
        service = AclService(store, directory=directory, policy=policy)
        assert service.engine.policy is policy

    def test_without_directory_client(self, store: AclStore, probe: FakeProbe) -> None:
        service = AclService(store, probe=probe)
        service.record_server("dc01")
        response = service.authenticate("jdoe", "pw", "A")
        assert response.error_code == ErrorKind.DIRECTORY_BIND_FAILED
        assert "no directory client configured" in response.error_message

    def test_unclassified_failure(self, ready: AclService) -> None:
        engine = MagicMock()
        engine.authorize.side_effect = RuntimeError("socket closed")
        ready._engine = engine  # type: ignore[assignment]
        response = ready.authenticate("jdoe", "pw-jdoe", "A")
        assert response.error_code == ErrorKind.UNCLASSIFIED
        assert response.error_message == "socket closed"


# ---------------------------------------------------------------------------
# Directory passthroughs
# ---------------------------------------------------------------------------


class TestPassthroughs:
    def test_get_user(self, ready: AclService) -> None:
        response = ready.get_user("jdoe", "admin", "pw")
        assert response.result_bool is True
        assert "sAMAccountName=jdoe" in response.result_string

    def test_get_user_absent(self, ready: AclService) -> None:
        response = ready.get_user("ghost", "admin", "pw")
        assert response.success
        assert response.result_bool is False

    def test_get_group(self, ready: AclService) -> None:
        assert ready.get_group("Sales", "admin", "pw").result_bool is True

    def test_get_all_groups(self, ready: AclService) -> None:
        response = ready.get_all_groups("admin", "pw")
        assert response.result_array == ("Admins", "Engineering", "Sales", "Support")

    def test_get_users_in_group(self, ready: AclService) -> None:
        assert ready.get_users_in_group("Sales", "admin", "pw").result_array == ("bob",)

    def test_get_users_in_unknown_group(self, ready: AclService) -> None:
        response = ready.get_users_in_group("Nope", "admin", "pw")
        assert response.error_code == ErrorKind.DIRECTORY_QUERY_FAILED
        assert "get_users_in_group" in response.error_message

    def test_get_groups_for_user(
        self, ready: AclService, directory: FakeDirectory
    ) -> None:
        response = ready.get_groups_for_user("bob", "admin", "pw")
        assert response.result_array == ("Sales", "Support", "Admins")
        assert directory.calls[-1] == ("groups_of", "ldap://10.0.0.5", "bob")

    def test_passthrough_requires_server(self, service: AclService) -> None:
        assert service.get_all_groups("admin", "pw").error_code == ErrorKind.STORE_NOT_FOUND


# ---------------------------------------------------------------------------
# Construction and audit
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_defaults(self, store: AclStore) -> None:
        service = AclService(store)
        assert isinstance(service._directory, NullDirectoryClient)
        assert isinstance(service._probe, SocketReachabilityProbe)

    def test_from_config(self, tmp_path: Path, directory: FakeDirectory) -> None:
        config = ConfigLoader().load_string(
            f"""
store:
  path: {tmp_path / 'acl' / 'LDAP.ini'}
policy:
  continue_group_scan: false
audit:
  enabled: true
  log_path: {tmp_path / 'audit.jsonl'}
directory:
  use_ssl: true
"""
        )
        service = AclService.from_config(config, directory=directory)
        assert service.store.path == tmp_path / "acl" / "LDAP.ini"
        assert service.engine.policy.continue_group_scan is False
        assert service._audit_logger is not None
        assert service._audit_logger.log_path == tmp_path / "audit.jsonl"

    def test_admin_events_audited(
        self, store: AclStore, directory: FakeDirectory, probe: FakeProbe, tmp_path: Path
    ) -> None:
        audit = AuditLogger(tmp_path / "audit.jsonl")
        service = AclService(store, directory=directory, probe=probe, audit_logger=audit)
        service.record_server("dc01")
        service.upsert_permission("jdoe", "U", "A")
        service.authenticate("jdoe", "pw-jdoe", "A")
        service.clear_all_entries()
        events = [record["event"] for record in audit.read_all()]
        assert events == [
            "record_server",
            "upsert_permission",
            "authorization",
            "clear_all_entries",
        ]

    def test_failing_audit_does_not_mask_results(
        self, store: AclStore, directory: FakeDirectory, probe: FakeProbe
    ) -> None:
        audit = MagicMock()
        audit.log.side_effect = OSError("disk full")
        service = AclService(store, directory=directory, probe=probe, audit_logger=audit)

        assert service.record_server("dc01").result_bool is True
        assert service.upsert_permission("jdoe", "U", "A").success
        assert service.authenticate("jdoe", "pw-jdoe", "A").result_string == "jdoe"
        assert service.authenticate("alice", "pw-alice", "A").error_code == (
            ErrorKind.NO_REGISTERED_GROUP
        )
        assert service.clear_all_entries().result_string == "1"
        assert audit.log.call_count == 5
