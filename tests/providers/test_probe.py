import pytest

from conftest import ScriptedRunner
from devbox.core.errors import ProbeFailure
from devbox.providers.probe import HostProbe, parse_dpkg_status


def which_all(tool):
    return f"/usr/bin/{tool}"


def test_parse_installed_version():
    assert parse_dpkg_status("installed 1.18.0-6ubuntu14\n") == "1.18.0-6ubuntu14"


@pytest.mark.parametrize("status", ["half-installed", "unpacked", "config-files", "not-installed"])
def test_parse_partial_states_are_not_installed(status):
    assert parse_dpkg_status(f"{status} 1.18.0\n") is None


def test_parse_empty_output():
    assert parse_dpkg_status("") is None


def test_package_version_uses_dpkg_query():
    run = ScriptedRunner([(["dpkg-query"], (True, "installed 2.34.1\n", ""))])
    probe = HostProbe(run=run, which=which_all)
    assert probe.package_version("git") == "2.34.1"
    assert run.commands[0][0] == "dpkg-query"
    assert run.commands[0][-1] == "git"


def test_unknown_package_is_not_installed():
    run = ScriptedRunner([(["dpkg-query"], (False, "", "no packages found matching foo"))])
    assert HostProbe(run=run, which=which_all).package_version("foo") is None


def test_missing_tool_is_probe_failure():
    probe = HostProbe(run=ScriptedRunner(), which=lambda tool: None)
    with pytest.raises(ProbeFailure):
        probe.package_version("git")
    with pytest.raises(ProbeFailure):
        probe.service_running("nginx")


def test_service_running_follows_exit_status():
    run = ScriptedRunner([
        (["service", "nginx", "status"], (True, "nginx is running", "")),
        (["service", "mysql", "status"], (False, "", "mysql is stopped")),
    ])
    probe = HostProbe(run=run, which=which_all)
    assert probe.service_running("nginx")
    assert not probe.service_running("mysql")


def test_table_count_without_mysql_is_probe_failure():
    with pytest.raises(ProbeFailure):
        HostProbe(run=ScriptedRunner(), which=which_all).table_count("wordpress")


def test_path_exists(tmp_path):
    probe = HostProbe(run=ScriptedRunner(), which=which_all)
    assert probe.path_exists(tmp_path)
    assert not probe.path_exists(tmp_path / "missing")
