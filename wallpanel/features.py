"""Optional kiosk features and their enable/disable lifecycle.

Each systemd-based feature owns a fixed set of unit files. Its state is read
from the live system (is its primary timer enabled?) and every transition
is total: enabling writes and starts everything, disabling stops and
deletes everything, so re-running either converges.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, field_validator
from pydantic import ValidationError as PydanticValidationError

from wallpanel.errors import InvalidParameterError, SystemManagerError, ToggleError, ValidationError
from wallpanel.host import HostContext
from wallpanel.logging_config import get_logger
from wallpanel.system_manager import SystemManager
from wallpanel.units import RebootFrequency, UnitKind, UnitParams, UnitRenderer, calendar_expression, render
from wallpanel.utils.files import atomic_write
from wallpanel.validation import validate_time

logger = get_logger(__name__)


class Feature(str, Enum):
    WATCHDOG = "watchdog"
    SLEEP_SCHEDULE = "sleep-schedule"
    REBOOT_SCHEDULE = "reboot-schedule"
    PRIVILEGE = "privilege"


class FeatureState(str, Enum):
    ENABLED = "ENABLED"
    DISABLED = "DISABLED"


class SleepScheduleParams(BaseModel):
    off_time: str
    on_time: str

    @field_validator("off_time", "on_time")
    @classmethod
    def _check_time(cls, value: str, info) -> str:
        try:
            return validate_time(value, info.field_name)
        except ValidationError as e:
            raise ValueError(e.message)


class RebootScheduleParams(BaseModel):
    frequency: RebootFrequency
    time: str

    @field_validator("frequency", mode="before")
    @classmethod
    def _parse_frequency(cls, value: Any) -> RebootFrequency:
        if isinstance(value, RebootFrequency):
            return value
        try:
            return RebootFrequency.parse(str(value))
        except ValueError:
            raise ValueError(f"'{value}' must be daily or weekly")

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        try:
            return validate_time(value, "time")
        except ValidationError as e:
            raise ValueError(e.message)


# Unit files written (and deleted) for each feature
WATCHDOG_SERVICE = "kiosk-watchdog.service"
WATCHDOG_TIMER = "kiosk-watchdog.timer"
SLEEP_TEMPLATE = "kiosk-display-sleep@.service"
SLEEP_OFF_SERVICE = "kiosk-display-off.service"
SLEEP_ON_SERVICE = "kiosk-display-on.service"
SLEEP_OFF_TIMER = "kiosk-display-off.timer"
SLEEP_ON_TIMER = "kiosk-display-on.timer"
# Written by the shell version of this tool; only ever removed
LEGACY_SLEEP_SERVICE = "kiosk-display-sleep.service"
REBOOT_SERVICE = "kiosk-reboot.service"
REBOOT_TIMER = "kiosk-reboot.timer"

Artifacts = List[Tuple[str, str]]


@dataclass(frozen=True)
class UnitFeature:
    """Static description of a systemd-backed feature."""

    feature: Feature
    timers: List[str]
    units: List[str]
    build: Callable[[HostContext, Optional[BaseModel]], Artifacts]
    params_model: Optional[type] = None
    extra_removals: List[str] = field(default_factory=list)

    @property
    def primary_timer(self) -> str:
        return self.timers[0]


def _session_environment(host: HostContext, with_display: bool = False) -> Dict[str, str]:
    env = {}
    if with_display:
        env["DISPLAY"] = ":0"
    env["WAYLAND_DISPLAY"] = "wayland-1"
    env["XDG_RUNTIME_DIR"] = host.runtime_dir
    return env


def _watchdog_units(host: HostContext, params: Optional[BaseModel]) -> Artifacts:
    probe = (
        "/bin/bash -c 'pgrep -x chromium || "
        f"(systemctl --user restart labwc || loginctl terminate-user {host.user})'"
    )
    service = UnitParams(
        description="Kiosk Chromium Watchdog",
        user=host.user,
        environment=_session_environment(host, with_display=True),
        exec_start=probe,
    )
    timer = UnitParams(
        description="Run Kiosk Watchdog every 2 minutes",
        on_boot_sec="3min",
        on_unit_active_sec="2min",
    )
    return [
        (WATCHDOG_SERVICE, render(UnitKind.ONESHOT_SERVICE, service)),
        (WATCHDOG_TIMER, render(UnitKind.INTERVAL_TIMER, timer)),
    ]


def _sleep_units(host: HostContext, params: Optional[BaseModel]) -> Artifacts:
    if not isinstance(params, SleepScheduleParams):
        raise TypeError(f"sleep schedule needs SleepScheduleParams, got {type(params).__name__}")
    wlr_randr = f"/usr/bin/wlr-randr --output {host.display_output}"
    env = _session_environment(host)

    def power_service(description: str, action: str) -> str:
        return render(
            UnitKind.ONESHOT_SERVICE,
            UnitParams(description=description, user=host.user, environment=env, exec_start=f"{wlr_randr} --{action}"),
        )

    def daily_timer(description: str, hhmm: str) -> str:
        return render(
            UnitKind.CALENDAR_TIMER,
            UnitParams(description=description, on_calendar=calendar_expression(RebootFrequency.DAILY, hhmm)),
        )

    return [
        (SLEEP_TEMPLATE, power_service("Kiosk Display Power Control", "%i")),
        (SLEEP_OFF_SERVICE, power_service("Turn display off", "off")),
        (SLEEP_ON_SERVICE, power_service("Turn display on", "on")),
        (SLEEP_OFF_TIMER, daily_timer(f"Turn display off at {params.off_time}", params.off_time)),
        (SLEEP_ON_TIMER, daily_timer(f"Turn display on at {params.on_time}", params.on_time)),
    ]


def _reboot_units(host: HostContext, params: Optional[BaseModel]) -> Artifacts:
    if not isinstance(params, RebootScheduleParams):
        raise TypeError(f"reboot schedule needs RebootScheduleParams, got {type(params).__name__}")
    label = params.frequency.value.capitalize()
    service = UnitParams(description="Scheduled Kiosk Reboot", exec_start="/sbin/reboot")
    timer = UnitParams(
        description=f"Schedule reboot ({label} at {params.time})",
        on_calendar=calendar_expression(params.frequency, params.time),
    )
    return [
        (REBOOT_SERVICE, render(UnitKind.ONESHOT_SERVICE, service)),
        (REBOOT_TIMER, render(UnitKind.CALENDAR_TIMER, timer)),
    ]


UNIT_FEATURES: Dict[Feature, UnitFeature] = {
    Feature.WATCHDOG: UnitFeature(
        feature=Feature.WATCHDOG,
        timers=[WATCHDOG_TIMER],
        units=[WATCHDOG_SERVICE, WATCHDOG_TIMER],
        build=_watchdog_units,
    ),
    Feature.SLEEP_SCHEDULE: UnitFeature(
        feature=Feature.SLEEP_SCHEDULE,
        timers=[SLEEP_ON_TIMER, SLEEP_OFF_TIMER],
        units=[SLEEP_TEMPLATE, SLEEP_OFF_SERVICE, SLEEP_ON_SERVICE, SLEEP_OFF_TIMER, SLEEP_ON_TIMER],
        build=_sleep_units,
        params_model=SleepScheduleParams,
        extra_removals=[LEGACY_SLEEP_SERVICE],
    ),
    Feature.REBOOT_SCHEDULE: UnitFeature(
        feature=Feature.REBOOT_SCHEDULE,
        timers=[REBOOT_TIMER],
        units=[REBOOT_SERVICE, REBOOT_TIMER],
        build=_reboot_units,
        params_model=RebootScheduleParams,
    ),
}


class FeatureToggle:
    """Idempotent enable/disable of the optional kiosk features."""

    def __init__(
        self,
        system_manager: SystemManager,
        renderer: UnitRenderer,
        host: HostContext,
        sudoers_file: Path,
    ):
        self.system_manager = system_manager
        self.renderer = renderer
        self.host = host
        self.sudoers_file = Path(sudoers_file)

    def status(self, feature: Feature) -> FeatureState:
        """Observed state of a feature; any error reads as DISABLED."""
        try:
            if feature == Feature.PRIVILEGE:
                enabled = self.sudoers_file.exists()
            else:
                enabled = self.system_manager.is_enabled(UNIT_FEATURES[feature].primary_timer)
        except Exception as e:
            logger.warning("Could not query %s, assuming disabled: %s", feature.value, e)
            enabled = False
        return FeatureState.ENABLED if enabled else FeatureState.DISABLED

    def _parse_params(self, unit_feature: UnitFeature, params: Optional[Mapping[str, Any]]) -> Optional[BaseModel]:
        if unit_feature.params_model is None:
            return None
        try:
            return unit_feature.params_model(**dict(params or {}))
        except PydanticValidationError as e:
            error = e.errors()[0]
            field_name = ".".join(str(part) for part in error.get("loc", ())) or "params"
            message = error.get("msg", "invalid value")
            raise InvalidParameterError(unit_feature.feature.value, field_name, message) from e

    def enable(self, feature: Feature, params: Optional[Mapping[str, Any]] = None) -> None:
        """Write, load and start everything the feature needs.

        Raises:
            InvalidParameterError: Before anything is written, if a
                parameter is missing or malformed.
            ToggleError: If the service manager refuses to start the timers;
                the units written so far are removed again first.
        """
        if feature == Feature.PRIVILEGE:
            self._enable_privilege()
            return

        unit_feature = UNIT_FEATURES[feature]
        parsed = self._parse_params(unit_feature, params)
        artifacts = unit_feature.build(self.host, parsed)

        try:
            for name, text in artifacts:
                self.renderer.install(name, text)
        except OSError as e:
            self.renderer.remove(name for name, _ in artifacts)
            raise ToggleError(f"Failed to write {feature.value} units: {e}") from e

        try:
            self.system_manager.reload()
            self.system_manager.enable_now(*unit_feature.timers)
        except SystemManagerError as e:
            self._rollback(unit_feature)
            raise ToggleError(f"Failed to start {feature.value}: {e}") from e

        logger.info("Enabled %s", feature.value)

    def disable(self, feature: Feature) -> None:
        """Stop and delete everything the feature owns; safe to repeat."""
        if feature == Feature.PRIVILEGE:
            self._disable_privilege()
            return

        unit_feature = UNIT_FEATURES[feature]
        self._teardown(unit_feature, unit_feature.units + unit_feature.extra_removals)
        logger.info("Disabled %s", feature.value)

    def _rollback(self, unit_feature: UnitFeature) -> None:
        logger.warning("Rolling back %s after a failed start", unit_feature.feature.value)
        self._teardown(unit_feature, unit_feature.units)

    def _teardown(self, unit_feature: UnitFeature, names: List[str]) -> None:
        """Stop timers, delete unit files and reload; every failure is logged and skipped."""
        name = unit_feature.feature.value
        try:
            self.system_manager.disable_now(*unit_feature.timers)
        except SystemManagerError as e:
            logger.warning("Could not disable %s timers (continuing): %s", name, e)

        for unit in names:
            try:
                self.renderer.remove([unit])
            except OSError as e:
                logger.warning("Could not remove %s (continuing): %s", unit, e)

        try:
            self.system_manager.reload()
        except SystemManagerError as e:
            logger.warning("Service manager reload failed after disabling %s: %s", name, e)

    def toggle(self, feature: Feature, params: Optional[Mapping[str, Any]] = None) -> FeatureState:
        """Flip a feature and return its new state."""
        if self.status(feature) == FeatureState.ENABLED:
            self.disable(feature)
            return FeatureState.DISABLED
        self.enable(feature, params)
        return FeatureState.ENABLED

    def _enable_privilege(self) -> None:
        content = f"{self.host.user} ALL=(ALL) NOPASSWD: ALL\n"
        try:
            atomic_write(self.sudoers_file, content, mode=0o440)
        except OSError as e:
            raise ToggleError(f"Failed to write {self.sudoers_file}: {e}") from e
        logger.info("Passwordless sudo enabled for %s", self.host.user)

    def _disable_privilege(self) -> None:
        try:
            self.sudoers_file.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove %s: %s", self.sudoers_file, e)
            return
        logger.info("Passwordless sudo disabled")
