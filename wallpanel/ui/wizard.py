"""The install wizard: collects a new snapshot, pre-filled from the last one."""

from typing import List, Optional, Sequence

from wallpanel.configs.session import DEFAULT_KIOSK_URL
from wallpanel.configs.snapshot import Snapshot
from wallpanel.logging_config import get_logger
from wallpanel.ui.prompts import Cancelled, Prompter, ask_valid, with_default_first
from wallpanel.validation import validate_mode, validate_time, validate_url

logger = get_logger(__name__)

STANDARD_MODE = "1920x1080@60"
CUSTOM = "Custom"
MANUAL = "Manual"

ROTATION_CHOICES = [
    ("0", "Landscape"),
    ("90", "Portrait"),
    ("180", "Inverted Landscape"),
    ("270", "Inverted Portrait"),
]


def yes_no(value: bool) -> str:
    return "yes" if value else "no"


class Wizard:
    """Asks every install question in turn.

    ``modes`` are the DRM modes of the kiosk output (``WxH``) and
    ``touch_candidates`` the input devices that may be touchscreens; both
    are probed once by the caller.
    """

    def __init__(self, prompter: Prompter, modes: Sequence[str] = (), touch_candidates: Sequence[str] = ()):
        self.prompter = prompter
        self.modes = list(modes)
        self.touch_candidates = list(touch_candidates)

    def run(self, previous: Snapshot) -> Optional[Snapshot]:
        """Return the new snapshot, or None if the user cancelled."""
        try:
            values = self._ask_all(previous)
        except Cancelled:
            logger.info("Wizard cancelled")
            return None
        return Snapshot(**values)

    def _required(self, value: Optional[str]) -> str:
        if value is None or value == "":
            raise Cancelled()
        return value

    def _ask_all(self, previous: Snapshot) -> dict:
        p = self.prompter
        values = {}

        values["kiosk_url"] = self._required(
            ask_valid(
                p,
                "Enter the Home Assistant URL:",
                previous.get("kiosk_url", DEFAULT_KIOSK_URL),
                lambda v: validate_url(v, "kiosk_url"),
            )
        )

        strategy = self._required(
            p.menu(
                "Resolution Strategy",
                [("Auto", "Use Monitor Preference (EDID)"), ("Force", "Manually select a specific resolution")],
                default=previous.get("resolution_strategy", "Auto"),
                title="Resolution Setup",
            )
        )
        values["resolution_strategy"] = strategy
        if strategy == "Auto":
            values["resolution_mode"] = "preferred"
        else:
            values["resolution_mode"] = self._ask_mode(previous.get("resolution_mode"))

        values["rotation"] = self._required(
            p.menu("Select Orientation", ROTATION_CHOICES, default=previous.get("rotation", "0"), title="Screen Rotation")
        )

        values["force_hdmi"] = yes_no(
            p.yesno(
                "Enable 'Always On' (Force HDMI Hotplug)?",
                default_no=not previous.is_yes("force_hdmi"),
                title="Connection",
            )
        )

        values["touch_device"] = self._ask_touch(previous.get("touch_device"))

        values["silent_boot"] = yes_no(
            p.yesno("Enable Silent Boot (Appliance Mode)?", default_no=not previous.is_yes("silent_boot"), title="Boot")
        )

        schedule = p.menu(
            "Scheduled Reboot",
            [("Disabled", "Never"), ("Daily", "Daily"), ("Weekly", "Weekly")],
            default=previous.get("reboot_schedule", "Disabled"),
            title="Maintenance",
        )
        reboot_time = ""
        if schedule in ("Daily", "Weekly"):
            reboot_time = ask_valid(
                p,
                "Enter Reboot Time (HH:MM):",
                previous.get("reboot_time") or "03:00",
                lambda v: validate_time(v, "reboot_time"),
            )
            if reboot_time is None:
                schedule, reboot_time = "Disabled", ""
        else:
            schedule = "Disabled"
        values["reboot_schedule"] = schedule
        values["reboot_time"] = reboot_time

        values["timezone"] = p.inputbox("Enter Timezone:", init=previous.get("timezone", "Europe/Rome")) or ""

        values["enable_ssh"] = yes_no(
            p.yesno("Enable SSH Server?", default_no=not previous.is_yes("enable_ssh"), title="SSH")
        )
        values["enable_security"] = yes_no(
            p.yesno(
                "Enable Unattended Upgrades?",
                default_no=not previous.is_yes("enable_security"),
                title="Security",
            )
        )
        return values

    def _ask_mode(self, saved: str) -> str:
        default = saved if saved and saved != "preferred" else STANDARD_MODE
        choices: List[tuple] = []
        for mode in self.modes:
            tag = f"{mode}@60" if "@" not in mode else mode
            if tag not in (t for t, _ in choices):
                choices.append((tag, "Detected"))
        if STANDARD_MODE not in (t for t, _ in choices):
            choices.append((STANDARD_MODE, "Standard 1080p"))
        choices = with_default_first(choices, default)
        choices.append((CUSTOM, "Manual Entry"))

        selected = self._required(self.prompter.menu("Choose Resolution:", choices, default=default, title="Select Resolution"))
        if selected != CUSTOM:
            return selected
        return self._required(
            ask_valid(self.prompter, "Enter Custom Mode:", default, validate_mode)
        )

    def _ask_touch(self, saved: str) -> str:
        p = self.prompter
        if not p.yesno("Do you want to configure a Touchscreen?", default_no=not saved, title="Touch Input"):
            return ""
        choices = [(name, "Device") for name in self.touch_candidates]
        choices.append((MANUAL, "Type name manually"))
        selected = p.menu("Detected Devices:", choices, default=saved or None, title="Select Touch Device")
        if selected is None:
            return ""
        if selected == MANUAL:
            return p.inputbox("Enter Exact Touch Device Name:", init=saved) or ""
        return selected
