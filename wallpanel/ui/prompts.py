"""Text-mode prompts.

Everything interactive goes through a ``Prompter`` so the menus can be
driven by a script in tests. ``DialogPrompter`` is the real thing, built on
pythondialog.
"""

from typing import List, Optional, Protocol, Sequence, Tuple

from dialog import Dialog

from wallpanel.errors import ValidationError
from wallpanel.logging_config import get_logger

logger = get_logger(__name__)

TITLE = "Wallpanel Setup"

Choices = Sequence[Tuple[str, str]]


class Cancelled(Exception):
    """The user backed out of a prompt."""


class Prompter(Protocol):
    def menu(self, text: str, choices: Choices, default: Optional[str] = None, title: str = TITLE) -> Optional[str]:
        """Selected tag, or None on cancel."""
        ...

    def inputbox(self, text: str, init: str = "", title: str = TITLE) -> Optional[str]:
        """Entered text, or None on cancel."""
        ...

    def yesno(self, text: str, default_no: bool = False, title: str = TITLE) -> bool:
        ...

    def msgbox(self, text: str, title: str = TITLE) -> None:
        ...

    def gauge_start(self, text: str, title: str = TITLE) -> None:
        ...

    def gauge_update(self, percent: int, text: str) -> None:
        ...

    def gauge_stop(self) -> None:
        ...


class DialogPrompter:
    """Prompter backed by the ``dialog`` program."""

    def __init__(self, dialog: str = "dialog"):
        self.d = Dialog(dialog=dialog, autowidgetsize=True)
        self.d.set_background_title(TITLE)

    def menu(self, text: str, choices: Choices, default: Optional[str] = None, title: str = TITLE) -> Optional[str]:
        kwargs = {"default_item": default} if default else {}
        code, tag = self.d.menu(text, choices=list(choices), title=title, **kwargs)
        if code != Dialog.OK:
            return None
        return tag

    def inputbox(self, text: str, init: str = "", title: str = TITLE) -> Optional[str]:
        code, value = self.d.inputbox(text, init=init, title=title)
        if code != Dialog.OK:
            return None
        return value.strip()

    def yesno(self, text: str, default_no: bool = False, title: str = TITLE) -> bool:
        return self.d.yesno(text, defaultno=default_no, title=title) == Dialog.OK

    def msgbox(self, text: str, title: str = TITLE) -> None:
        self.d.msgbox(text, title=title)

    def gauge_start(self, text: str, title: str = TITLE) -> None:
        self.d.gauge_start(text, percent=0, title=title)

    def gauge_update(self, percent: int, text: str) -> None:
        self.d.gauge_update(percent, text, update_text=True)

    def gauge_stop(self) -> None:
        self.d.gauge_stop()


class GaugeProgress:
    """Installation progress shown in a gauge widget."""

    def __init__(self, prompter: Prompter, title: str = "Installing Wallpanel"):
        self.prompter = prompter
        self.title = title
        self._running = False

    def start(self) -> None:
        self.prompter.gauge_start("Initializing...", title=self.title)
        self._running = True

    def update(self, percent: int, text: str) -> None:
        if self._running:
            self.prompter.gauge_update(percent, text)

    def finish(self) -> None:
        if self._running:
            self._running = False
            self.prompter.gauge_stop()


def ask_valid(prompter: Prompter, text: str, init: str, check) -> Optional[str]:
    """Ask until ``check`` accepts the answer; None on cancel.

    ``check`` raises ``ValidationError`` to reject a value and returns the
    value to keep otherwise.
    """
    while True:
        value = prompter.inputbox(text, init=init)
        if value is None:
            return None
        try:
            return check(value)
        except ValidationError as e:
            logger.debug(f"Rejected input: {e}")
            prompter.msgbox(f"Invalid value: {e.message}")
            init = value


def with_default_first(choices: List[Tuple[str, str]], default: Optional[str]) -> List[Tuple[str, str]]:
    """Choices, or choices plus ``default`` when it is not among them."""
    if default and default not in (tag for tag, _ in choices):
        return [(default, "Previous"), *choices]
    return choices
