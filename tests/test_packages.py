import subprocess

import pytest

from wallpanel.configs.snapshot import Snapshot
from wallpanel.errors import InstallationError
from wallpanel.packages import APT_OPTIONS, PackageManager, has_candidate, select_packages

POLICY_AVAILABLE = """chromium-browser:
  Installed: (none)
  Candidate: 1:120.0.6099.102-rpt1
  Version table:
"""

POLICY_MISSING = """rpi-chromium-mods:
  Installed: (none)
  Candidate: (none)
"""


@pytest.fixture
def apt(monkeypatch):
    calls = []
    responses = {}

    def fake_run(cmd, check=True, capture_output=True, env=None, **kwargs):
        calls.append((list(cmd), env))
        returncode, stdout = responses.get(cmd[1], (0, ""))
        return subprocess.CompletedProcess(list(cmd), returncode, stdout, "")

    monkeypatch.setattr("wallpanel.packages.run_command", fake_run)
    fake_run.calls = calls
    fake_run.responses = responses
    return fake_run


def test_has_candidate(apt):
    apt.responses["policy"] = (0, POLICY_AVAILABLE)
    assert has_candidate("chromium-browser")
    apt.responses["policy"] = (0, POLICY_MISSING)
    assert not has_candidate("rpi-chromium-mods")
    apt.responses["policy"] = (0, "")
    assert not has_candidate("nonexistent")


def test_select_packages_prefers_chromium_browser():
    packages = select_packages(Snapshot(enable_security="yes"), ["labwc"], raspberry_pi=False, candidate=lambda n: True)
    assert packages == ["labwc", "chromium-browser", "unattended-upgrades"]


def test_select_packages_skips_mods_off_pi():
    packages = select_packages(Snapshot(), ["labwc"], raspberry_pi=False, candidate=lambda n: False)
    assert packages == ["labwc", "chromium"]


def test_install_passes_dpkg_options(apt, tmp_path):
    manager = PackageManager(tmp_path / "error.log")
    manager.install(["labwc", "greetd"])

    argv, env = apt.calls[0]
    assert argv == ["apt-get", "install", "-y", *APT_OPTIONS, "labwc", "greetd"]
    assert env == {"DEBIAN_FRONTEND": "noninteractive"}


def test_install_failure_carries_log(apt, tmp_path):
    apt.responses["install"] = (100, "E: Unable to locate package labwc")
    manager = PackageManager(tmp_path / "error.log")

    with pytest.raises(InstallationError) as excinfo:
        manager.install(["labwc"])

    assert "Unable to locate package" in excinfo.value.output
    assert "Unable to locate package" in (tmp_path / "error.log").read_text()


def test_purge_continues_after_failure(apt, tmp_path):
    apt.responses["purge"] = (1, "dpkg was interrupted")
    manager = PackageManager(tmp_path / "error.log")

    assert manager.purge() is False
    assert [argv[1] for argv, _ in apt.calls] == ["purge", "autoremove"]


def test_update_failure_does_not_block_install(apt, tmp_path, caplog):
    apt.responses["update"] = (100, "W: Failed to fetch http://deb.debian.org/debian")
    manager = PackageManager(tmp_path / "error.log")

    assert manager.update() is False
    manager.install(["labwc"])

    assert [argv[1] for argv, _ in apt.calls] == ["update", "install"]
    assert "continuing with cached package lists" in caplog.text


def test_update_quiet_flag(apt, tmp_path):
    assert PackageManager(tmp_path / "error.log").update() is True
    assert apt.calls[0][0] == ["apt-get", "update", "-qq"]
