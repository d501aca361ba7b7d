from pathlib import Path
from typing import List, Optional

import pytest

from wallpanel.errors import SystemManagerError
from wallpanel.features import FeatureToggle
from wallpanel.host import HostContext
from wallpanel.units import UnitRenderer


class FakeSystemManager:
    """Records service manager calls; enabled state follows enable/disable."""

    def __init__(self, fail_on: Optional[set] = None):
        self.calls: List[tuple] = []
        self.enabled = set()
        self.fail_on = fail_on or set()

    def _record(self, name: str, *args: str) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise SystemManagerError(f"{name} failed")

    def is_enabled(self, unit: str) -> bool:
        return unit in self.enabled

    def reload(self) -> None:
        self._record("reload")

    def enable_now(self, *units: str) -> None:
        self._record("enable_now", *units)
        self.enabled.update(units)

    def disable_now(self, *units: str) -> None:
        self._record("disable_now", *units)
        self.enabled.difference_update(units)

    def enable(self, unit: str) -> None:
        self._record("enable", unit)

    def disable(self, unit: str) -> None:
        self._record("disable", unit)

    def start(self, unit: str) -> None:
        self._record("start", unit)

    def stop(self, unit: str) -> None:
        self._record("stop", unit)

    def set_default(self, target: str) -> None:
        self._record("set_default", target)

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]


class ScriptedPrompter:
    """Answers prompts from a list, in order; records what was asked."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.asked: List[tuple] = []
        self.messages: List[str] = []
        self.gauge: List[tuple] = []

    def _next(self, kind: str, text: str):
        self.asked.append((kind, text))
        assert self.answers, f"No scripted answer for {kind}: {text}"
        return self.answers.pop(0)

    def menu(self, text, choices, default=None, title=""):
        answer = self._next("menu", text)
        if answer is not None:
            assert answer in [tag for tag, _ in choices], f"{answer} not offered for {text}"
        return answer

    def inputbox(self, text, init="", title=""):
        return self._next("inputbox", text)

    def yesno(self, text, default_no=False, title=""):
        return self._next("yesno", text)

    def msgbox(self, text, title=""):
        self.messages.append(text)

    def gauge_start(self, text, title=""):
        self.gauge.append(("start", text))

    def gauge_update(self, percent, text):
        self.gauge.append(("update", percent, text))

    def gauge_stop(self):
        self.gauge.append(("stop",))


@pytest.fixture
def host(tmp_path: Path) -> HostContext:
    return HostContext(user="kiosk", uid=1000, home=tmp_path / "home" / "kiosk", display_output="HDMI-A-1")


@pytest.fixture
def system_manager() -> FakeSystemManager:
    return FakeSystemManager()


@pytest.fixture
def unit_dir(tmp_path: Path) -> Path:
    path = tmp_path / "systemd"
    path.mkdir()
    return path


@pytest.fixture
def renderer(unit_dir: Path) -> UnitRenderer:
    return UnitRenderer(unit_dir)


@pytest.fixture
def sudoers_file(tmp_path: Path) -> Path:
    return tmp_path / "sudoers.d" / "090_wallpanel_nopasswd"


@pytest.fixture
def toggle(system_manager, renderer, host, sudoers_file) -> FeatureToggle:
    return FeatureToggle(system_manager, renderer, host, sudoers_file)


@pytest.fixture
def scripted():
    """Factory for a ScriptedPrompter."""
    return ScriptedPrompter
