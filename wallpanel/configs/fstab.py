"""tmpfs mount for the browser cache in /etc/fstab."""

from pathlib import Path
from typing import Any, Dict, List, Optional

from wallpanel.configs import BaseConfig
from wallpanel.configs.labwc import CACHE_DIR
from wallpanel.logging_config import get_logger
from wallpanel.utils.files import atomic_write

logger = get_logger(__name__)

CACHE_ENTRY = f"tmpfs {CACHE_DIR} tmpfs nodev,nosuid,size=100M 0 0"


class FstabConfig(BaseConfig):
    """Adds or removes the browser cache line, leaving every other line alone."""

    def __init__(self, config_dir: Path = Path("/etc")):
        super().__init__(config_dir)

    @property
    def config_file(self) -> Path:
        return self.config_dir / "fstab"

    def _lines(self) -> List[str]:
        try:
            return self.config_file.read_text().splitlines()
        except FileNotFoundError:
            return []

    def load(self) -> Dict[str, Any]:
        return {"cache_mount": any(CACHE_DIR in line for line in self._lines())}

    def save(self, config: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        lines = self._lines()
        present = any(CACHE_DIR in line for line in lines)
        if config.get("cache_mount"):
            if present:
                return {"changed": False}
            lines.append(CACHE_ENTRY)
        else:
            if not present:
                return {"changed": False}
            lines = [line for line in lines if CACHE_DIR not in line]

        mode = self.config_file.stat().st_mode & 0o7777 if self.config_file.exists() else 0o644
        atomic_write(self.config_file, "\n".join(lines) + "\n", mode=mode)
        logger.info("Updated %s (cache mount %s)", self.config_file, "added" if config.get("cache_mount") else "removed")
        return {"changed": True}

    def validate(self, config: Dict[str, Any]) -> List[str]:
        if not isinstance(config.get("cache_mount"), bool):
            return ["cache_mount must be a boolean"]
        return []
