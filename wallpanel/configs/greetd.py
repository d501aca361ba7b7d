"""greetd login manager configuration."""

from pathlib import Path
from typing import Any, Dict, List, Optional

from wallpanel.configs import BaseConfig
from wallpanel.utils.files import atomic_write


class GreetdConfig(BaseConfig):
    """/etc/greetd/config.toml: log the kiosk user straight into labwc."""

    def __init__(self, config_dir: Path = Path("/etc/greetd")):
        super().__init__(config_dir)

    @property
    def config_file(self) -> Path:
        return self.config_dir / "config.toml"

    def render(self, config: Dict[str, Any]) -> str:
        user = config["user"]
        return (
            "[terminal]\n"
            "vt = 1\n"
            "[default_session]\n"
            'command = "labwc"\n'
            f'user = "{user}"\n'
            "[initial_session]\n"
            'command = "labwc"\n'
            f'user = "{user}"\n'
        )

    def load(self) -> Dict[str, Any]:
        try:
            return {"content": self.config_file.read_text()}
        except FileNotFoundError:
            return {"content": ""}

    def save(self, config: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        atomic_write(self.config_file, self.render(config), mode=0o644)
        return None

    def validate(self, config: Dict[str, Any]) -> List[str]:
        user = config.get("user", "")
        if not user or '"' in user or "\n" in user:
            return ["user must be a plain login name"]
        return []
