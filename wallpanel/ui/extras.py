"""Extras menu: optional maintenance features and brightness."""

from typing import Callable, Optional

from wallpanel.errors import InvalidParameterError, ToggleError
from wallpanel.features import Feature, FeatureState, FeatureToggle
from wallpanel.hardware import Backlight
from wallpanel.logging_config import get_logger
from wallpanel.ui.prompts import Prompter, ask_valid
from wallpanel.validation import validate_percentage, validate_time

logger = get_logger(__name__)

LABELS = {
    Feature.PRIVILEGE: "Passwordless Sudo",
    Feature.WATCHDOG: "Watchdog",
    Feature.SLEEP_SCHEDULE: "Display Sleep Schedule",
}


class ExtrasMenu:
    """Loops until the user picks Back (or cancels)."""

    def __init__(
        self,
        prompter: Prompter,
        features: FeatureToggle,
        find_backlight: Callable[[], Optional[Backlight]] = Backlight.find,
    ):
        self.prompter = prompter
        self.features = features
        self.find_backlight = find_backlight

    def run(self) -> None:
        actions = {
            "Sudoless": lambda: self.toggle(Feature.PRIVILEGE),
            "Watchdog": lambda: self.toggle(Feature.WATCHDOG),
            "Sleep": lambda: self.toggle(Feature.SLEEP_SCHEDULE),
            "Brightness": self.brightness,
        }
        while True:
            status = {feature: self.features.status(feature).value for feature in LABELS}
            choice = self.prompter.menu(
                "Select a feature:",
                [
                    ("Sudoless", f"Passwordless Sudo ({status[Feature.PRIVILEGE]})"),
                    ("Watchdog", f"Auto-restart Chromium if crashed ({status[Feature.WATCHDOG]})"),
                    ("Sleep", f"Display Sleep Schedule ({status[Feature.SLEEP_SCHEDULE]})"),
                    ("Brightness", "[EXPERIMENTAL] Adjust Screen Brightness"),
                    ("Back", "Return to Main Menu"),
                ],
                title="Extras Menu",
            )
            if choice is None or choice == "Back":
                return
            actions[choice]()

    def _sleep_params(self) -> Optional[dict]:
        off_time = ask_valid(self.prompter, "Enter time to turn display OFF (HH:MM):", "22:00", validate_time)
        if off_time is None:
            return None
        on_time = ask_valid(self.prompter, "Enter time to turn display ON (HH:MM):", "07:00", validate_time)
        if on_time is None:
            return None
        return {"off_time": off_time, "on_time": on_time}

    def toggle(self, feature: Feature) -> None:
        label = LABELS[feature]
        try:
            if self.features.status(feature) == FeatureState.ENABLED:
                self.features.disable(feature)
                self.prompter.msgbox(f"{label} has been DISABLED.")
                return

            params = None
            if feature == Feature.SLEEP_SCHEDULE:
                params = self._sleep_params()
                if params is None:
                    return
            self.features.enable(feature, params)
        except InvalidParameterError as e:
            self.prompter.msgbox(f"Invalid {e.field}: {e.message}")
            return
        except ToggleError as e:
            logger.error(f"{label}: {e}")
            self.prompter.msgbox(f"{label} could not be changed:\n\n{e}")
            return

        if feature == Feature.PRIVILEGE:
            self.prompter.msgbox(f"{label} has been ENABLED for user '{self.features.host.user}'.")
        else:
            self.prompter.msgbox(f"{label} has been ENABLED.")

    def brightness(self) -> None:
        backlight = self.find_backlight()
        if backlight is None:
            self.prompter.msgbox("No backlight control detected. Only works with DSI displays.")
            return

        percent = ask_valid(
            self.prompter,
            "Set Brightness (0-100%):",
            str(backlight.read_percent()),
            lambda v: validate_percentage(v, "brightness"),
        )
        if percent is None:
            return
        try:
            backlight.set_percent(percent)
        except OSError as e:
            logger.error(f"Could not set brightness: {e}")
            self.prompter.msgbox(f"Could not set brightness: {e}")
            return
        self.prompter.msgbox(f"Brightness set to {percent}%")
