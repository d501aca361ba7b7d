import os

import pytest

from wallpanel.configs.cmdline import MANAGED_PARAMS, CmdlineConfig, desired_kernel_params, param_key
from wallpanel.configs.snapshot import Snapshot
from wallpanel.errors import WriteError

BASE_LINE = "console=serial0,115200 root=PARTUUID=abcd rootwait"


@pytest.fixture
def cmdline_file(tmp_path):
    path = tmp_path / "cmdline.txt"
    path.write_text(BASE_LINE + "\n")
    return path


@pytest.fixture
def cmdline(cmdline_file):
    return CmdlineConfig(cmdline_file)


def test_add_param_appends_once(cmdline, cmdline_file):
    cmdline.add_param("quiet")
    assert cmdline_file.read_text() == BASE_LINE + " quiet\n"

    cmdline.add_param("quiet")
    assert cmdline.read().split().count("quiet") == 1
    assert cmdline.read().endswith(" quiet")


def test_add_param_keeps_existing_value_of_same_key(cmdline, caplog):
    cmdline.write(BASE_LINE + " video=HDMI-A-1:1024x768")
    cmdline.add_param("video=HDMI-A-1:1920x1080D")
    assert "video=HDMI-A-1:1024x768" in cmdline.read().split()
    assert "video=HDMI-A-1:1920x1080D" not in cmdline.read().split()
    assert "already present" in caplog.text


def test_add_param_on_other_connector_is_not_shadowed(cmdline):
    cmdline.write(BASE_LINE + " video=HDMI-A-2:1024x768")
    cmdline.add_param("video=HDMI-A-1:1920x1080")
    assert cmdline.read().split()[-2:] == ["video=HDMI-A-2:1024x768", "video=HDMI-A-1:1920x1080"]


def test_remove_param_removes_every_occurrence_and_keeps_order(cmdline):
    cmdline.write("quiet console=tty1 quiet root=/dev/mmcblk0p2 quiet rootwait")
    cmdline.remove_param("quiet")
    assert cmdline.read() == "console=tty1 root=/dev/mmcblk0p2 rootwait"


def test_remove_param_matches_prefix_with_value(cmdline):
    cmdline.write(BASE_LINE + " video=HDMI-A-1:1920x1080@60D video=HDMI-A-2:D consoleblank=0")
    cmdline.remove_param("video=HDMI-A-1")
    cmdline.remove_param("consoleblank")
    assert cmdline.read() == BASE_LINE + " video=HDMI-A-2:D"


def test_remove_absent_param_does_not_write(cmdline, cmdline_file):
    before = cmdline_file.stat().st_mtime_ns
    cmdline.remove_param("splash")
    assert cmdline_file.stat().st_mtime_ns == before


def test_empty_write_is_rejected_and_original_kept(cmdline, cmdline_file):
    with pytest.raises(WriteError):
        cmdline.write("")
    assert cmdline_file.read_text() == BASE_LINE + "\n"
    assert os.listdir(cmdline_file.parent) == ["cmdline.txt"]


def test_too_short_write_is_rejected(cmdline, cmdline_file):
    with pytest.raises(WriteError):
        cmdline.write("quiet")
    assert cmdline_file.read_text() == BASE_LINE + "\n"


def test_interrupted_rename_leaves_original_and_no_temp_file(cmdline, cmdline_file, monkeypatch):
    def fail_replace(src, dst):
        raise OSError("power loss")

    monkeypatch.setattr("wallpanel.utils.files.os.replace", fail_replace)
    with pytest.raises(WriteError):
        cmdline.write(BASE_LINE + " quiet splash")

    assert cmdline_file.read_text() == BASE_LINE + "\n"
    assert os.listdir(cmdline_file.parent) == ["cmdline.txt"]


def test_read_joins_stray_lines(cmdline, cmdline_file):
    cmdline_file.write_text("console=tty1\nroot=/dev/sda2 rootwait\n\n")
    assert cmdline.read() == "console=tty1 root=/dev/sda2 rootwait"


def test_apply_replaces_managed_params(cmdline):
    cmdline.write(BASE_LINE + " quiet video=HDMI-A-1:1024x768 splash")
    snapshot = Snapshot(resolution_mode="1920x1080@60", force_hdmi="yes", silent_boot="no")

    changed = cmdline.apply(MANAGED_PARAMS, desired_kernel_params(snapshot))

    assert changed
    assert cmdline.read() == BASE_LINE + " video=HDMI-A-1:1920x1080@60D"


def test_apply_is_idempotent(cmdline, cmdline_file):
    desired = desired_kernel_params(Snapshot(silent_boot="yes"))
    assert cmdline.apply(MANAGED_PARAMS, desired)
    content = cmdline_file.read_text()

    assert not cmdline.apply(MANAGED_PARAMS, desired)
    assert cmdline_file.read_text() == content


def test_apply_on_empty_fallback_file_is_a_no_op(tmp_path):
    dummy = tmp_path / "cmdline_dummy"
    dummy.touch()
    assert CmdlineConfig(dummy).apply(MANAGED_PARAMS, []) is False
    assert dummy.read_text() == ""


@pytest.mark.parametrize(
    "values, expected",
    [
        ({}, []),
        ({"resolution_mode": "preferred", "force_hdmi": "yes"}, ["video=HDMI-A-1:D"]),
        ({"resolution_mode": "1280x720@60"}, ["video=HDMI-A-1:1280x720@60"]),
        (
            {"silent_boot": "yes"},
            ["quiet", "splash", "logo.nologo", "vt.global_cursor_default=0", "consoleblank=0"],
        ),
    ],
)
def test_desired_kernel_params(values, expected):
    assert desired_kernel_params(Snapshot(**values)) == expected


def test_param_key():
    assert param_key("quiet") == "quiet"
    assert param_key("consoleblank=0") == "consoleblank"
    assert param_key("video=HDMI-A-1:1920x1080D") == "video=HDMI-A-1"
