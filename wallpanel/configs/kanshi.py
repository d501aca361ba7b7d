"""Kanshi output profile management."""

from pathlib import Path
from typing import Any, Dict, List, Optional

from wallpanel.configs import BaseConfig
from wallpanel.configs.snapshot import ROTATIONS
from wallpanel.utils.files import atomic_write


class KanshiConfig(BaseConfig):
    """Kanshi configuration (~/.config/kanshi/config).

    Pins the kiosk output to the chosen mode and rotation.
    """

    def __init__(self, config_dir: Path):
        super().__init__(config_dir)

    @property
    def config_file(self) -> Path:
        return self.config_dir / "config"

    @staticmethod
    def transform_for(rotation: str) -> str:
        return "normal" if rotation in ("", "0") else rotation

    def render(self, config: Dict[str, Any]) -> str:
        output = config["output"]
        mode = config.get("mode") or "preferred"
        transform = self.transform_for(str(config.get("rotation", "0")))
        return f"profile {{\n    output {output} mode {mode} transform {transform}\n}}\n"

    def load(self) -> Dict[str, Any]:
        try:
            return {"content": self.config_file.read_text()}
        except FileNotFoundError:
            return {"content": ""}

    def save(self, config: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Write the profile for ``output``/``mode``/``rotation``."""
        atomic_write(self.config_file, self.render(config), mode=0o644)
        return None

    def validate(self, config: Dict[str, Any]) -> List[str]:
        errors = []
        if not config.get("output"):
            errors.append("Missing required field: output")
        if str(config.get("rotation", "0")) not in ROTATIONS:
            errors.append(f"Rotation must be one of {', '.join(ROTATIONS)}")
        return errors
