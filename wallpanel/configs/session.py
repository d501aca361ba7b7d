"""The kiosk session: every file that makes the machine boot into the browser."""

import os
import shutil
from pathlib import Path
from typing import Dict, List

from wallpanel.configs.auto_upgrades import AutoUpgradesConfig
from wallpanel.configs.fstab import FstabConfig
from wallpanel.configs.greetd import GreetdConfig
from wallpanel.configs.kanshi import KanshiConfig
from wallpanel.configs.labwc import CACHE_DIR, LabwcAutostartConfig, LabwcRcConfig
from wallpanel.configs.snapshot import Snapshot
from wallpanel.host import HostContext
from wallpanel.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_KIOSK_URL = "http://homeassistant.local:8123"


class SessionFiles:
    """Writes and removes the session configuration for one host.

    Only final snapshot values and the host identity flow in; nothing here
    probes the machine.
    """

    def __init__(
        self,
        host: HostContext,
        etc_dir: Path = Path("/etc"),
    ):
        self.host = host
        self.etc_dir = Path(etc_dir)
        self.kanshi = KanshiConfig(host.config_dir / "kanshi")
        self.labwc_rc = LabwcRcConfig(host.config_dir / "labwc")
        self.labwc_autostart = LabwcAutostartConfig(host.config_dir / "labwc")
        self.greetd = GreetdConfig(self.etc_dir / "greetd")
        self.auto_upgrades = AutoUpgradesConfig(self.etc_dir / "apt" / "apt.conf.d")
        self.fstab = FstabConfig(self.etc_dir)

    def configs_for(self, snapshot: Snapshot) -> List[tuple]:
        """(writer, values) pairs in the order they are written."""
        output = self.host.display_output
        return [
            (
                self.kanshi,
                {
                    "output": output,
                    "mode": snapshot.get("resolution_mode", "preferred") or "preferred",
                    "rotation": snapshot.get("rotation", "0") or "0",
                },
            ),
            (self.labwc_rc, {"output": output, "touch_device": snapshot.get("touch_device")}),
            (self.labwc_autostart, {"kiosk_url": snapshot.get("kiosk_url", DEFAULT_KIOSK_URL)}),
            (self.fstab, {"cache_mount": True}),
            (self.greetd, {"user": self.host.user}),
            (self.auto_upgrades, {"enabled": snapshot.is_yes("enable_security")}),
        ]

    def write(self, snapshot: Snapshot) -> Dict[str, str]:
        """Validate then write every session file; returns name -> path written.

        Raises:
            ValueError: If any writer rejects its values. Nothing is written
                in that case.
        """
        configs = self.configs_for(snapshot)
        for writer, values in configs:
            errors = writer.validate(values)
            if errors:
                raise ValueError(f"{writer.config_file.name}: {'; '.join(errors)}")

        written = {}
        for writer, values in configs:
            writer.save(values)
            written[writer.config_file.name] = str(writer.config_file)
            logger.debug(f"Wrote {writer.config_file}")

        self.chown_config_dir()
        return written

    def chown_config_dir(self) -> None:
        """Hand ~/.config back to the kiosk user (we run as root).

        Symlinks are re-owned themselves, never their targets, and the walk
        does not descend into symlinked directories.
        """
        root = self.host.config_dir
        if root.is_symlink():
            logger.warning(f"{root} is a symlink, not changing ownership")
            return
        if not root.exists():
            return
        uid, gid = self.host.uid, self.host.group_id
        os.chown(root, uid, gid, follow_symlinks=False)
        for dirpath, dirnames, filenames in os.walk(root):
            for name in dirnames + filenames:
                os.chown(os.path.join(dirpath, name), uid, gid, follow_symlinks=False)

    def remove(self) -> List[str]:
        """Delete the session configuration. Missing files are skipped."""
        removed = []
        for name in ("labwc", "kanshi", "chromium"):
            path = self.host.config_dir / name
            if path.exists():
                shutil.rmtree(path)
                removed.append(str(path))

        for config in (self.greetd, self.auto_upgrades):
            if config.remove():
                removed.append(str(config.config_file))

        override = self.etc_dir / "systemd" / "system" / "greetd.service.d" / "override.conf"
        try:
            override.unlink()
            removed.append(str(override))
        except FileNotFoundError:
            pass

        if self.fstab.save({"cache_mount": False}).get("changed"):
            removed.append(f"{self.fstab.config_file}:{CACHE_DIR}")

        for path in removed:
            logger.info(f"Removed {path}")
        return removed
