"""Identity of the machine and user the kiosk is provisioned for."""

import getpass
import grp
import os
import pwd
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from wallpanel.hardware import DEFAULT_OUTPUT, detect_display_output


@dataclass(frozen=True)
class HostContext:
    """The operating identity and display the kiosk session runs on."""

    user: str
    uid: int
    home: Path
    display_output: str = DEFAULT_OUTPUT
    gid: Optional[int] = None

    @property
    def group_id(self) -> int:
        """Group the session files belong to; the user's own group unless set."""
        return self.uid if self.gid is None else self.gid

    @property
    def runtime_dir(self) -> str:
        return f"/run/user/{self.uid}"

    @property
    def config_dir(self) -> Path:
        return self.home / ".config"

    @classmethod
    def detect(cls, user: Optional[str] = None) -> "HostContext":
        """Build the context for the user who invoked the tool through sudo."""
        user = user or os.environ.get("SUDO_USER") or getpass.getuser()
        entry = pwd.getpwnam(user)
        try:
            gid = grp.getgrnam(user).gr_gid
        except KeyError:
            gid = entry.pw_gid
        return cls(
            user=user,
            uid=entry.pw_uid,
            home=Path("/home") / user,
            display_output=detect_display_output(),
            gid=gid,
        )
