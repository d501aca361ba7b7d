"""Exception types shared across the setup tool."""

from typing import List, Optional, Sequence


class WallpanelError(Exception):
    """Base class for all errors raised by the setup tool."""


class ValidationError(WallpanelError):
    """User input does not satisfy its format contract.

    The interactive layer catches this and asks again; it is never
    propagated past a prompt.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class WriteError(WallpanelError):
    """The boot parameter file could not be replaced safely."""


class ToggleError(WallpanelError):
    """A feature could not be switched on or off."""


class InvalidParameterError(ToggleError):
    """A feature parameter was rejected before anything was written."""

    def __init__(self, feature: str, field: str, message: str):
        self.feature = feature
        self.field = field
        self.message = message
        super().__init__(f"{feature}: invalid {field}: {message}")


class CommandError(WallpanelError):
    """An external command exited with a non-zero status."""

    def __init__(self, argv: Sequence[str], returncode: int, output: str = ""):
        self.argv: List[str] = list(argv)
        self.returncode = returncode
        self.output = output
        super().__init__(f"Command failed ({returncode}): {' '.join(self.argv)}")


class SystemManagerError(WallpanelError):
    """The service manager refused a reload/enable/disable request."""


class InstallationError(WallpanelError):
    """Fatal failure that aborts the whole installation sequence."""

    def __init__(self, message: str, output: Optional[str] = None):
        self.output = output or ""
        super().__init__(message)
