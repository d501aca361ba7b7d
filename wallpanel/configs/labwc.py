"""Labwc compositor configuration (rc.xml and the autostart script)."""

import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import quoteattr

from wallpanel.configs import BaseConfig
from wallpanel.errors import ValidationError
from wallpanel.utils.files import atomic_write
from wallpanel.validation import validate_url

CHROMIUM_BINARY = "/usr/bin/chromium"
CACHE_DIR = "/tmp/chromium-cache"

CHROMIUM_FLAGS = [
    "--autoplay-policy=no-user-gesture-required",
    "--start-fullscreen --start-maximized --fast --fast-start",
    "--no-sandbox --no-first-run --noerrdialogs",
    "--disable-translate --disable-notifications --disable-infobars --disable-pinch",
    f"--disable-features=TranslateUI --disk-cache-dir={CACHE_DIR}",
    "--ozone-platform=wayland",
    "--enable-features=OverlayScrollbar,CanvasOopRasterization",
    "--overscroll-history-navigation=0 --password-store=basic --force-dark-mode",
    "--restore-last-session --disable-session-crashed-bubble",
    "--ignore-gpu-blocklist --enable-gpu-rasterization --enable-zero-copy",
]


class LabwcRcConfig(BaseConfig):
    """rc.xml: touchscreen mapping and the Super+Q exit binding."""

    def __init__(self, config_dir: Path):
        super().__init__(config_dir)

    @property
    def config_file(self) -> Path:
        return self.config_dir / "rc.xml"

    def render(self, config: Dict[str, Any]) -> str:
        lines = ['<?xml version="1.0"?>', "<labwc_config>"]
        touch_device = config.get("touch_device")
        if touch_device:
            lines.append(f"  <touch deviceName={quoteattr(touch_device)} mapToOutput={quoteattr(config['output'])}/>")
        lines.extend(
            [
                "  <keyboard>",
                '    <keybind key="W-q"><action name="Exit"/></keybind>',
                "  </keyboard>",
                "</labwc_config>",
                "",
            ]
        )
        return "\n".join(lines)

    def load(self) -> Dict[str, Any]:
        try:
            return {"content": self.config_file.read_text()}
        except FileNotFoundError:
            return {"content": ""}

    def save(self, config: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        atomic_write(self.config_file, self.render(config), mode=0o644)
        return None

    def validate(self, config: Dict[str, Any]) -> List[str]:
        if config.get("touch_device") and not config.get("output"):
            return ["A touch device needs an output to map to"]
        return []


class LabwcAutostartConfig(BaseConfig):
    """autostart: output profile, panel hiding, network wait, then the browser."""

    def __init__(self, config_dir: Path):
        super().__init__(config_dir)

    @property
    def config_file(self) -> Path:
        return self.config_dir / "autostart"

    def render(self, config: Dict[str, Any]) -> str:
        flags = " \\\n    ".join(CHROMIUM_FLAGS)
        url = shlex.quote(config["kiosk_url"])
        return (
            "#!/bin/bash\n"
            "kanshi &\n"
            "sleep 1 && wtype -M logo -k h -m logo &\n"
            "timeout 10s bash -c 'until ping -c1 google.com &>/dev/null; do sleep 1; done'\n"
            "\n"
            f"{CHROMIUM_BINARY} \\\n"
            f"    --kiosk {url} \\\n"
            f"    {flags} &\n"
        )

    def load(self) -> Dict[str, Any]:
        try:
            return {"content": self.config_file.read_text()}
        except FileNotFoundError:
            return {"content": ""}

    def save(self, config: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        atomic_write(self.config_file, self.render(config), mode=0o755)
        return None

    def validate(self, config: Dict[str, Any]) -> List[str]:
        try:
            validate_url(config.get("kiosk_url", ""), "kiosk_url")
        except ValidationError as e:
            return [str(e)]
        return []
