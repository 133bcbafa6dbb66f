import pytest

from conftest import FakeHost, ScriptedRunner
from devbox.core.errors import CommandError
from devbox.core.reconcile import ActionKind
from devbox.providers.system import ensure_user_in_group, service_action, user_in_group


def test_user_in_group_reads_id_output():
    run = ScriptedRunner([(["id", "-nG", "vagrant"], (True, "vagrant adm sudo www-data\n", ""))])
    assert user_in_group("vagrant", "www-data", run)
    assert not user_in_group("vagrant", "docker", run)


def test_unknown_user_is_not_in_group():
    run = ScriptedRunner([(["id"], (False, "", "id: 'ghost': no such user"))])
    assert not user_in_group("ghost", "www-data", run)


def test_grant_then_skip():
    host = FakeHost(groups={"vagrant": ["vagrant"]})
    first = ensure_user_in_group("vagrant", "www-data", run=host.run)
    assert first.kind == ActionKind.GRANT
    assert ["usermod", "-a", "-G", "www-data", "vagrant"] in host.commands

    second = ensure_user_in_group("vagrant", "www-data", run=host.run)
    assert second.is_skip


def test_dry_run_does_not_call_usermod():
    host = FakeHost()
    action = ensure_user_in_group("vagrant", "www-data", run=host.run, dry_run=True)
    assert action.kind == ActionKind.GRANT
    assert host.commands_for("usermod") == []


def test_usermod_failure_is_a_failed_action():
    run = ScriptedRunner([
        (["id"], (True, "vagrant\n", "")),
        (["usermod"], (False, "", "usermod: group 'www-data' does not exist")),
    ])
    action = ensure_user_in_group("vagrant", "www-data", run=run)
    assert action.is_failure
    assert "does not exist" in action.reason


def test_service_action_failure_raises():
    run = ScriptedRunner(default=(False, "", "Job for nginx.service failed"))
    with pytest.raises(CommandError, match="nginx"):
        service_action("nginx", "restart", run=run)
