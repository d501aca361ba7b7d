from wallpanel.hardware import (
    DEFAULT_OUTPUT,
    Backlight,
    detect_display_output,
    is_raspberry_pi,
    list_drm_modes,
    list_touch_candidates,
)

INPUT_DEVICES = """I: Bus=0019 Vendor=0001 Product=0001 Version=0100
N: Name="vc4-hdmi-0"
H: Handlers=kbd event0

I: Bus=0018 Vendor=0000 Product=0000 Version=0000
N: Name="10-0038 generic ft5x06 (79)"
H: Handlers=mouse0 event1

N: Name="ILITEK ILITEK-TP"
N: Name="ILITEK ILITEK-TP"
N: Name="gpio_keys"
N: Name="USB Audio Headset"
"""


def make_connector(drm, name, status, modes=""):
    path = drm / name
    path.mkdir(parents=True)
    (path / "status").write_text(status + "\n")
    (path / "modes").write_text(modes)


def test_detect_first_connected_output(tmp_path):
    make_connector(tmp_path, "card1-HDMI-A-1", "disconnected")
    make_connector(tmp_path, "card1-HDMI-A-2", "connected")
    assert detect_display_output(tmp_path) == "HDMI-A-2"


def test_detect_defaults_without_connected_output(tmp_path):
    make_connector(tmp_path, "card0-DSI-1", "disconnected")
    assert detect_display_output(tmp_path) == DEFAULT_OUTPUT


def test_list_drm_modes_dedupes(tmp_path):
    make_connector(tmp_path, "card1-HDMI-A-1", "connected", "1920x1080\n1920x1080\n1280x720\n")
    assert list_drm_modes("HDMI-A-1", tmp_path) == ["1920x1080", "1280x720"]
    assert list_drm_modes("DSI-1", tmp_path) == []


def test_touch_candidates_filter_non_touch(tmp_path):
    devices = tmp_path / "devices"
    devices.write_text(INPUT_DEVICES)
    assert list_touch_candidates(devices) == ["10-0038 generic ft5x06 (79)", "ILITEK ILITEK-TP"]
    assert list_touch_candidates(tmp_path / "missing") == []


def test_is_raspberry_pi(tmp_path):
    model = tmp_path / "model"
    model.write_bytes(b"Raspberry Pi 4 Model B Rev 1.4\x00")
    assert is_raspberry_pi(model)
    model.write_text("Generic x86 PC")
    assert not is_raspberry_pi(model)
    assert not is_raspberry_pi(tmp_path / "absent")


def test_backlight(tmp_path):
    assert Backlight.find(tmp_path / "none") is None

    device = tmp_path / "backlight" / "10-0045"
    device.mkdir(parents=True)
    (device / "max_brightness").write_text("200\n")
    (device / "brightness").write_text("100\n")

    backlight = Backlight.find(tmp_path / "backlight")
    assert backlight.read_percent() == 50
    assert backlight.set_percent(75) == 150
    assert (device / "brightness").read_text() == "150\n"
