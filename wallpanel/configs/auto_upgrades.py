"""Unattended-upgrades switch (apt periodic configuration)."""

from pathlib import Path
from typing import Any, Dict, List, Optional

from wallpanel.configs import BaseConfig
from wallpanel.logging_config import get_logger
from wallpanel.utils.files import atomic_write

logger = get_logger(__name__)

CONTENT = 'APT::Periodic::Update-Package-Lists "1";\nAPT::Periodic::Unattended-Upgrade "1";\n'


class AutoUpgradesConfig(BaseConfig):
    """/etc/apt/apt.conf.d/20auto-upgrades, present only when enabled."""

    def __init__(self, config_dir: Path = Path("/etc/apt/apt.conf.d")):
        super().__init__(config_dir)

    @property
    def config_file(self) -> Path:
        return self.config_dir / "20auto-upgrades"

    def load(self) -> Dict[str, Any]:
        return {"enabled": self.config_file.exists()}

    def save(self, config: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if config.get("enabled"):
            atomic_write(self.config_file, CONTENT, mode=0o644)
            logger.info("Unattended upgrades enabled")
        elif self.remove():
            logger.info("Unattended upgrades disabled")
        return None

    def validate(self, config: Dict[str, Any]) -> List[str]:
        if not isinstance(config.get("enabled"), bool):
            return ["enabled must be a boolean"]
        return []
