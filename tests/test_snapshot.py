import os
import stat

import pytest

from wallpanel.configs.snapshot import Snapshot, SnapshotConfig


@pytest.fixture
def store(tmp_path):
    return SnapshotConfig(tmp_path / "wallpanel" / "kiosk.conf")


def test_missing_file_loads_empty_snapshot(store):
    snapshot = store.load()
    assert snapshot.values() == {}
    assert snapshot.get("kiosk_url", "http://default") == "http://default"


def test_save_then_load_restores_values(store):
    snapshot = Snapshot(
        kiosk_url="http://ha.local:8123/lovelace?kiosk=1",
        resolution_strategy="Force",
        resolution_mode="1280x720@60",
        rotation="90",
        touch_device='ILITEK "Multi" Touch',
        reboot_schedule="Disabled",
        reboot_time="",
    )
    store.save(snapshot)

    assert store.load() == snapshot


def test_file_is_owner_only(store):
    store.save(Snapshot(kiosk_url="http://example.com"))
    mode = stat.S_IMODE(os.stat(store.config_file).st_mode)
    assert mode == 0o600


def test_values_keep_declaration_order_and_skip_unset(store):
    store.save(Snapshot(timezone="Europe/Rome", kiosk_url="http://a.b"))
    lines = store.config_file.read_text().splitlines()
    assert lines == ["kiosk_url=http://a.b", "timezone=Europe/Rome"]


def test_legacy_shell_format_is_read(store):
    store.config_file.parent.mkdir(parents=True)
    store.config_file.write_text(
        'saved_KIOSK_URL="http://homeassistant.local:8123"\n'
        'saved_STRATEGY="Auto"\n'
        'saved_MODE="preferred"\n'
        'saved_REBOOT_TIME=""\n'
    )
    snapshot = store.load()
    assert snapshot.kiosk_url == "http://homeassistant.local:8123"
    assert snapshot.resolution_strategy == "Auto"
    assert snapshot.resolution_mode == "preferred"
    assert snapshot.reboot_time == ""
    assert snapshot.rotation is None


def test_unknown_keys_comments_and_junk_are_skipped(store):
    store.config_file.parent.mkdir(parents=True)
    store.config_file.write_text("# comment\n\nnot a pair\nfavourite_colour=blue\nrotation=180\r\n")
    snapshot = store.load()
    assert snapshot.values() == {"rotation": "180"}


def test_value_may_contain_equals_sign(store):
    store.save(Snapshot(kiosk_url="http://ha.local/?a=b&c=d"))
    assert store.load().kiosk_url == "http://ha.local/?a=b&c=d"


def test_multiline_value_is_rejected(store):
    with pytest.raises(ValueError):
        store.save(Snapshot(timezone="Europe/Rome\nrotation=90"))
    assert not store.config_file.exists()


def test_validate_reports_bad_values(store):
    errors = store.validate(
        Snapshot(kiosk_url="homeassistant.local", rotation="45", reboot_schedule="Daily", reboot_time="25:00")
    )
    assert len(errors) == 3


def test_validate_accepts_complete_snapshot(store):
    snapshot = Snapshot(
        kiosk_url="https://panel.example.com",
        resolution_strategy="Auto",
        resolution_mode="preferred",
        rotation="0",
        force_hdmi="no",
        silent_boot="yes",
        reboot_schedule="Weekly",
        reboot_time="03:00",
        enable_ssh="yes",
        enable_security="no",
    )
    assert store.validate(snapshot) == []
