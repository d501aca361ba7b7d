"""Saved configuration snapshot (pre-fills the next interactive run)."""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from wallpanel.configs import BaseConfig
from wallpanel.errors import ValidationError
from wallpanel.logging_config import get_logger
from wallpanel.utils.files import atomic_write
from wallpanel.validation import validate_time, validate_url

logger = get_logger(__name__)

# Key names used by the original shell tool's sourced config file
LEGACY_KEYS = {
    "saved_KIOSK_URL": "kiosk_url",
    "saved_STRATEGY": "resolution_strategy",
    "saved_MODE": "resolution_mode",
    "saved_ROTATION": "rotation",
    "saved_FORCE_HDMI": "force_hdmi",
    "saved_TOUCH_DEVICE": "touch_device",
    "saved_SILENT_BOOT": "silent_boot",
    "saved_REBOOT_SCHEDULE": "reboot_schedule",
    "saved_REBOOT_TIME": "reboot_time",
    "saved_TIMEZONE": "timezone",
    "saved_ENABLE_SSH": "enable_ssh",
    "saved_ENABLE_SECURITY": "enable_security",
}

YES_NO = ("yes", "no")
RESOLUTION_STRATEGIES = ("Auto", "Force")
ROTATIONS = ("0", "90", "180", "270")
REBOOT_SCHEDULES = ("Disabled", "Daily", "Weekly")


class Snapshot(BaseModel):
    """The last applied kiosk configuration.

    Every field is optional: an unset field means "use the caller's default".
    """

    model_config = ConfigDict(frozen=True)

    kiosk_url: Optional[str] = None
    resolution_strategy: Optional[str] = None
    resolution_mode: Optional[str] = None
    rotation: Optional[str] = None
    force_hdmi: Optional[str] = None
    touch_device: Optional[str] = None
    silent_boot: Optional[str] = None
    reboot_schedule: Optional[str] = None
    reboot_time: Optional[str] = None
    timezone: Optional[str] = None
    enable_ssh: Optional[str] = None
    enable_security: Optional[str] = None

    def values(self) -> Dict[str, str]:
        """Set keys only, in declaration order."""
        return self.model_dump(exclude_none=True)

    def get(self, key: str, default: str = "") -> str:
        value = getattr(self, key)
        return default if value is None else value

    def is_yes(self, key: str) -> bool:
        return self.get(key, "no") == "yes"


class SnapshotConfig(BaseConfig):
    """Snapshot file management.

    The file holds one ``key=value`` pair per line and is only readable by
    its owner: it records the kiosk URL and whether privilege elevation
    was requested.
    """

    def __init__(self, config_file: Path):
        super().__init__(Path(config_file).parent)
        self._config_file = Path(config_file)

    @property
    def config_file(self) -> Path:
        return self._config_file

    def _parse_line(self, line: str) -> Optional[tuple]:
        if not line.strip() or line.lstrip().startswith("#"):
            return None
        if "=" not in line:
            return None
        key, value = line.split("=", 1)
        if key in LEGACY_KEYS:
            key = LEGACY_KEYS[key]
            if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
                value = value[1:-1]
        if key not in Snapshot.model_fields:
            return None
        return key, value

    def load(self) -> Snapshot:
        """Load the snapshot, treating anything unreadable as absent."""
        try:
            with open(self.config_file, "r", encoding="utf-8", newline="") as f:
                content = f.read()
        except FileNotFoundError:
            return Snapshot()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable snapshot %s: %s", self.config_file, e)
            return Snapshot()

        values: Dict[str, str] = {}
        for lineno, line in enumerate(content.split("\n"), start=1):
            line = line[:-1] if line.endswith("\r") else line
            parsed = self._parse_line(line)
            if parsed is None:
                if line.strip():
                    logger.debug("Skipping line %d of %s", lineno, self.config_file)
                continue
            key, value = parsed
            values[key] = value

        return Snapshot(**values)

    def save(self, config: Snapshot) -> None:
        """Replace the snapshot file with every key set in ``config``."""
        lines = []
        for key, value in config.values().items():
            if "\n" in value or "\r" in value:
                raise ValueError(f"Snapshot value for {key} must be a single line")
            lines.append(f"{key}={value}\n")

        atomic_write(self.config_file, "".join(lines), mode=0o600)
        logger.info("Saved configuration snapshot to %s", self.config_file)

    def validate(self, config: Snapshot) -> List[str]:
        """Validate a snapshot before it is persisted."""
        errors = []

        url = config.kiosk_url
        if url is not None:
            try:
                validate_url(url, "kiosk_url")
            except ValidationError as e:
                errors.append(str(e))

        checks = {
            "resolution_strategy": RESOLUTION_STRATEGIES,
            "rotation": ROTATIONS,
            "force_hdmi": YES_NO,
            "silent_boot": YES_NO,
            "reboot_schedule": REBOOT_SCHEDULES,
            "enable_ssh": YES_NO,
            "enable_security": YES_NO,
        }
        for key, allowed in checks.items():
            value = getattr(config, key)
            if value is not None and value not in allowed:
                errors.append(f"{key}: '{value}' must be one of {', '.join(allowed)}")

        if config.reboot_schedule not in (None, "Disabled"):
            try:
                validate_time(config.reboot_time or "", "reboot_time")
            except ValidationError as e:
                errors.append(str(e))

        mode = config.resolution_mode
        if mode is not None and not mode.strip():
            errors.append("resolution_mode must not be empty")

        return errors
