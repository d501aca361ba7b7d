"""Thin adapter over the host service manager (systemctl)."""

from typing import Protocol

from wallpanel.errors import CommandError, SystemManagerError
from wallpanel.logging_config import get_logger
from wallpanel.utils.command import run_command

logger = get_logger(__name__)


class SystemManager(Protocol):
    """What the setup tool needs from the service manager.

    The live system is the only source of truth for unit state; nothing is
    cached between calls.
    """

    def is_enabled(self, unit: str) -> bool:
        ...

    def reload(self) -> None:
        ...

    def enable_now(self, *units: str) -> None:
        ...

    def disable_now(self, *units: str) -> None:
        ...

    def enable(self, unit: str) -> None:
        ...

    def disable(self, unit: str) -> None:
        ...

    def start(self, unit: str) -> None:
        ...

    def stop(self, unit: str) -> None:
        ...

    def set_default(self, target: str) -> None:
        ...


class SystemctlManager:
    """SystemManager backed by the ``systemctl`` command."""

    def __init__(self, systemctl: str = "systemctl", timeout: float = 60):
        self.systemctl = systemctl
        self.timeout = timeout

    def _run(self, *args: str) -> None:
        try:
            run_command([self.systemctl, *args], timeout=self.timeout)
        except CommandError as e:
            raise SystemManagerError(f"systemctl {' '.join(args)} failed: {e.output or e.returncode}") from e

    def is_enabled(self, unit: str) -> bool:
        try:
            result = run_command([self.systemctl, "is-enabled", unit], check=False, timeout=self.timeout)
        except OSError as e:
            logger.debug("is-enabled %s failed: %s", unit, e)
            return False
        return result.returncode == 0

    def reload(self) -> None:
        self._run("daemon-reload")

    def enable_now(self, *units: str) -> None:
        self._run("enable", "--now", *units)

    def disable_now(self, *units: str) -> None:
        self._run("disable", "--now", *units)

    def enable(self, unit: str) -> None:
        self._run("enable", unit)

    def disable(self, unit: str) -> None:
        self._run("disable", unit)

    def start(self, unit: str) -> None:
        self._run("start", unit)

    def stop(self, unit: str) -> None:
        self._run("stop", unit)

    def set_default(self, target: str) -> None:
        self._run("set-default", target)
