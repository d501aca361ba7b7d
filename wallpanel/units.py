"""Rendering and installation of systemd unit files."""

from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from wallpanel.logging_config import get_logger
from wallpanel.utils.files import atomic_write

logger = get_logger(__name__)


class UnitKind(str, Enum):
    """The unit shapes the kiosk features are built from."""

    ONESHOT_SERVICE = "oneshot-service"
    CALENDAR_TIMER = "calendar-timer"
    INTERVAL_TIMER = "interval-timer"


class RebootFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"

    @classmethod
    def parse(cls, value: str) -> "RebootFrequency":
        """Accept the snapshot spelling (``Daily``/``Weekly``) as well."""
        return cls((value or "").strip().lower())


class UnitParams(BaseModel):
    """Everything a unit template needs."""

    description: str
    exec_start: Optional[str] = None
    user: Optional[str] = None
    environment: Dict[str, str] = Field(default_factory=dict)
    on_calendar: Optional[str] = None
    on_boot_sec: Optional[str] = None
    on_unit_active_sec: Optional[str] = None
    persistent: bool = False


def calendar_expression(frequency: RebootFrequency, hhmm: str) -> str:
    """OnCalendar= value for a wall-clock time, every day or every Monday.

    ``hhmm`` must already be a validated ``HH:MM`` time.
    """
    if frequency == RebootFrequency.WEEKLY:
        return f"Mon *-*-* {hhmm}:00"
    return f"*-*-* {hhmm}:00"


def render(kind: UnitKind, params: UnitParams) -> str:
    """Return the exact text of a unit file."""
    lines = ["[Unit]", f"Description={params.description}", ""]

    if kind == UnitKind.ONESHOT_SERVICE:
        if not params.exec_start:
            raise ValueError("A oneshot service needs exec_start")
        lines.append("[Service]")
        lines.append("Type=oneshot")
        if params.user:
            lines.append(f"User={params.user}")
        for name, value in params.environment.items():
            lines.append(f"Environment={name}={value}")
        lines.append(f"ExecStart={params.exec_start}")
        lines.append("")
        return "\n".join(lines)

    lines.append("[Timer]")
    if kind == UnitKind.CALENDAR_TIMER:
        if not params.on_calendar:
            raise ValueError("A calendar timer needs on_calendar")
        lines.append(f"OnCalendar={params.on_calendar}")
        lines.append(f"Persistent={'true' if params.persistent else 'false'}")
    elif kind == UnitKind.INTERVAL_TIMER:
        if not (params.on_boot_sec and params.on_unit_active_sec):
            raise ValueError("An interval timer needs on_boot_sec and on_unit_active_sec")
        lines.append(f"OnBootSec={params.on_boot_sec}")
        lines.append(f"OnUnitActiveSec={params.on_unit_active_sec}")
    else:
        raise ValueError(f"Unknown unit kind: {kind}")

    lines.extend(["", "[Install]", "WantedBy=timers.target", ""])
    return "\n".join(lines)


class UnitRenderer:
    """Writes and deletes unit files in the service manager's unit directory.

    Reloading the service manager afterwards is the caller's job.
    """

    def __init__(self, unit_dir: Path):
        self.unit_dir = Path(unit_dir)

    def path_for(self, name: str) -> Path:
        return self.unit_dir / name

    def install(self, name: str, text: str) -> Path:
        path = self.path_for(name)
        atomic_write(path, text, mode=0o644)
        logger.info("Installed unit %s", path)
        return path

    def remove(self, names: Iterable[str]) -> List[str]:
        """Delete unit files; already missing ones are skipped. Returns what was removed."""
        removed = []
        for name in names:
            path = self.path_for(name)
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            removed.append(name)
            logger.info("Removed unit %s", path)
        return removed
