"""One-shot hardware probes (DRM outputs, input devices, backlight)."""

import re
from pathlib import Path
from typing import List, Optional

from wallpanel.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_OUTPUT = "HDMI-A-1"

DRM_ROOT = Path("/sys/class/drm")
BACKLIGHT_ROOT = Path("/sys/class/backlight")
INPUT_DEVICES = Path("/proc/bus/input/devices")
DEVICETREE_MODEL = Path("/sys/firmware/devicetree/base/model")

# Input devices that never carry a touch surface
NON_TOUCH_MARKERS = ("vc4", "hdmi", "button", "gpio", "audio", "headset")

_CONNECTOR_RE = re.compile(r"^card\d+-(.+)$")


def detect_display_output(drm_root: Path = DRM_ROOT) -> str:
    """Name of the first connected DRM connector, e.g. ``HDMI-A-1``."""
    for status_file in sorted(drm_root.glob("card*-*/status")):
        try:
            status = status_file.read_text().strip()
        except OSError:
            continue
        if status == "connected":
            match = _CONNECTOR_RE.match(status_file.parent.name)
            if match:
                return match.group(1)
    return DEFAULT_OUTPUT


def list_drm_modes(output: str, drm_root: Path = DRM_ROOT) -> List[str]:
    """Modes advertised by a connector, as ``WxH`` strings, without duplicates."""
    modes: List[str] = []
    for modes_file in sorted(drm_root.glob(f"card*-{output}/modes")):
        try:
            lines = modes_file.read_text().splitlines()
        except OSError:
            continue
        for line in lines:
            line = line.strip()
            if line and line not in modes:
                modes.append(line)
    return modes


def is_raspberry_pi(model_file: Path = DEVICETREE_MODEL) -> bool:
    try:
        return "raspberry" in model_file.read_text(errors="replace").lower()
    except OSError:
        return False


def list_touch_candidates(devices_file: Path = INPUT_DEVICES) -> List[str]:
    """Sorted, de-duplicated input device names that may be touchscreens."""
    try:
        content = devices_file.read_text(errors="replace")
    except OSError:
        return []

    names = set()
    for line in content.splitlines():
        if not line.startswith("N: Name="):
            continue
        name = line[len("N: Name="):].strip().strip('"')
        lowered = name.lower()
        if not name or any(marker in lowered for marker in NON_TOUCH_MARKERS):
            continue
        names.add(name)
    return sorted(names)


class Backlight:
    """A sysfs backlight device (DSI panels only)."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @classmethod
    def find(cls, root: Path = BACKLIGHT_ROOT) -> Optional["Backlight"]:
        if not root.is_dir():
            return None
        for entry in sorted(root.iterdir()):
            return cls(entry)
        return None

    def _read_int(self, name: str, default: int) -> int:
        try:
            return int((self.path / name).read_text().strip())
        except (OSError, ValueError):
            return default

    @property
    def max_brightness(self) -> int:
        return self._read_int("max_brightness", 255) or 255

    def read_percent(self) -> int:
        current = self._read_int("brightness", 128)
        return current * 100 // self.max_brightness

    def set_percent(self, percent: int) -> int:
        """Write the brightness; returns the raw value written."""
        value = percent * self.max_brightness // 100
        (self.path / "brightness").write_text(f"{value}\n")
        logger.info("Set %s brightness to %d%% (%d)", self.path.name, percent, value)
        return value
