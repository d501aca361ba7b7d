from pathlib import Path

from wallpanel.config_loader import DEFAULT_BASE_PACKAGES, ConfigLoader


def test_defaults_without_settings_file(tmp_path):
    loader = ConfigLoader(tmp_path / "missing.yml")
    assert loader.get_unit_dir() == Path("/etc/systemd/system")
    assert loader.get_sudoers_file() == Path("/etc/sudoers.d/090_wallpanel_nopasswd")
    assert loader.get_base_packages() == DEFAULT_BASE_PACKAGES
    assert loader.get_cmdline_min_length() == 10


def test_settings_override_defaults(tmp_path):
    settings = tmp_path / "wallpanel.yml"
    settings.write_text(
        "file_locations:\n"
        f"  unit_dir: {tmp_path}/units\n"
        "packages:\n"
        "  base: [labwc, greetd]\n"
        "boot:\n"
        "  cmdline_min_length: 20\n"
    )
    loader = ConfigLoader(settings)
    assert loader.get_unit_dir() == tmp_path / "units"
    assert loader.get_base_packages() == ["labwc", "greetd"]
    assert loader.get_cmdline_min_length() == 20


def test_environment_selects_settings_file(tmp_path, monkeypatch):
    settings = tmp_path / "custom.yml"
    settings.write_text("file_locations:\n  snapshot_file: /srv/kiosk.conf\n")
    monkeypatch.setenv("WALLPANEL_SETTINGS", str(settings))
    assert ConfigLoader().get_snapshot_file() == Path("/srv/kiosk.conf")


def test_broken_yaml_falls_back_to_defaults(tmp_path):
    settings = tmp_path / "wallpanel.yml"
    settings.write_text("file_locations: [unclosed\n")
    assert ConfigLoader(settings).get_error_log() == Path("/tmp/wallpanel_install_error.log")


def test_resolve_cmdline_path(tmp_path):
    firmware = tmp_path / "firmware" / "cmdline.txt"
    fallback = tmp_path / "dummy" / "cmdline_dummy"
    settings = tmp_path / "wallpanel.yml"
    settings.write_text(
        "boot:\n"
        f"  cmdline_candidates: ['{firmware}', '{tmp_path}/boot/cmdline.txt']\n"
        f"  cmdline_fallback: '{fallback}'\n"
    )
    loader = ConfigLoader(settings)

    assert loader.resolve_cmdline_path() == fallback
    assert fallback.read_text() == ""

    firmware.parent.mkdir()
    firmware.write_text("console=tty1\n")
    assert loader.resolve_cmdline_path() == firmware
