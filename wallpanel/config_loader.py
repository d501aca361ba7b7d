"""Loader for the setup tool's own settings file (wallpanel.yml)."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from wallpanel.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_SETTINGS_PATH = Path("/etc/wallpanel/wallpanel.yml")

DEFAULT_CMDLINE_CANDIDATES = ["/boot/firmware/cmdline.txt", "/boot/cmdline.txt"]
DEFAULT_CMDLINE_FALLBACK = "/tmp/cmdline_dummy"
DEFAULT_UNIT_DIR = "/etc/systemd/system"
DEFAULT_SUDOERS_FILE = "/etc/sudoers.d/090_wallpanel_nopasswd"
DEFAULT_SNAPSHOT_FILE = "/etc/wallpanel/kiosk.conf"
DEFAULT_ERROR_LOG = "/tmp/wallpanel_install_error.log"
DEFAULT_BASE_PACKAGES = ["labwc", "greetd", "kanshi", "wtype", "libinput-tools", "wlr-randr"]
DEFAULT_CMDLINE_MIN_LENGTH = 10


class ConfigLoader:
    """Load and answer questions about the wallpanel.yml settings.

    Every setting is optional; an absent or unreadable file yields the
    built-in defaults. Example::

        file_locations:
          snapshot_file: /etc/wallpanel/kiosk.conf
          unit_dir: /etc/systemd/system
        packages:
          base: [labwc, greetd, kanshi, wtype, libinput-tools, wlr-randr]
        boot:
          cmdline_min_length: 10
    """

    def __init__(self, settings_path: Optional[Path] = None):
        if settings_path is None:
            env_path = os.environ.get("WALLPANEL_SETTINGS")
            settings_path = Path(env_path) if env_path else DEFAULT_SETTINGS_PATH
        self.settings_path = settings_path
        self._config_cache: Optional[Dict[str, Any]] = None

    def load_config(self) -> Dict[str, Any]:
        """Load the settings file."""
        if self._config_cache is None:
            try:
                if self.settings_path.exists():
                    with open(self.settings_path, "r") as f:
                        data = yaml.safe_load(f) or {}
                    if not isinstance(data, dict):
                        logger.warning("Ignoring %s: top level must be a mapping", self.settings_path)
                        data = {}
                    self._config_cache = data
                else:
                    self._config_cache = {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning("Failed to read %s, using defaults: %s", self.settings_path, e)
                self._config_cache = {}
        return self._config_cache

    def _file_location(self, key: str, default: str) -> Path:
        locations = self.load_config().get("file_locations") or {}
        return Path(locations.get(key, default))

    def get_cmdline_candidates(self) -> List[Path]:
        """Boot parameter file locations, most specific first."""
        boot = self.load_config().get("boot") or {}
        return [Path(p) for p in boot.get("cmdline_candidates", DEFAULT_CMDLINE_CANDIDATES)]

    def get_cmdline_fallback(self) -> Path:
        """Stand-in boot parameter file for hosts without one."""
        boot = self.load_config().get("boot") or {}
        return Path(boot.get("cmdline_fallback", DEFAULT_CMDLINE_FALLBACK))

    def get_cmdline_min_length(self) -> int:
        """Shortest boot parameter line accepted by the write sanity check."""
        boot = self.load_config().get("boot") or {}
        return int(boot.get("cmdline_min_length", DEFAULT_CMDLINE_MIN_LENGTH))

    def get_unit_dir(self) -> Path:
        return self._file_location("unit_dir", DEFAULT_UNIT_DIR)

    def get_sudoers_file(self) -> Path:
        return self._file_location("sudoers_file", DEFAULT_SUDOERS_FILE)

    def get_snapshot_file(self) -> Path:
        return self._file_location("snapshot_file", DEFAULT_SNAPSHOT_FILE)

    def get_error_log(self) -> Path:
        return self._file_location("error_log", DEFAULT_ERROR_LOG)

    def get_base_packages(self) -> List[str]:
        """Packages installed on every kiosk (browser is chosen separately)."""
        packages = self.load_config().get("packages") or {}
        return list(packages.get("base", DEFAULT_BASE_PACKAGES))

    def resolve_cmdline_path(self) -> Path:
        """Return the boot parameter file of this host.

        Falls back to a dummy file (created empty) so that hosts without a
        Raspberry Pi style boot partition never have their boot chain touched.
        """
        for candidate in self.get_cmdline_candidates():
            if candidate.is_file():
                return candidate

        fallback = self.get_cmdline_fallback()
        if not fallback.exists():
            fallback.parent.mkdir(parents=True, exist_ok=True)
            fallback.touch()
        logger.info("No boot parameter file found, using %s", fallback)
        return fallback


# Global instance
config_loader = ConfigLoader()
