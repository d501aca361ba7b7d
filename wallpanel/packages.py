"""Debian package selection and installation."""

from pathlib import Path
from typing import Callable, List, Optional, Sequence

from wallpanel.configs.snapshot import Snapshot
from wallpanel.errors import InstallationError
from wallpanel.logging_config import get_logger
from wallpanel.utils.command import run_command

logger = get_logger(__name__)

APT_OPTIONS = ["-o", "Dpkg::Options::=--force-confdef", "-o", "Dpkg::Options::=--force-confold"]

# Everything install may have pulled in; purged on uninstall
PURGE_PACKAGES = [
    "labwc",
    "greetd",
    "kanshi",
    "chromium",
    "chromium-browser",
    "wtype",
    "libinput-tools",
    "wlr-randr",
    "unattended-upgrades",
    "rpi-chromium-mods",
]

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def has_candidate(package: str) -> bool:
    """Return True if apt has an installable version of ``package``."""
    result = run_command(["apt-cache", "policy", package], check=False)
    for line in (result.stdout or "").splitlines():
        line = line.strip()
        if line.startswith("Candidate:"):
            return line.split(":", 1)[1].strip() not in ("", "(none)")
    return False


def select_packages(
    snapshot: Snapshot,
    base: Sequence[str],
    raspberry_pi: bool,
    candidate: Callable[[str], bool] = has_candidate,
) -> List[str]:
    """The full package list for an install.

    ``chromium-browser`` wins over ``chromium`` whenever the repository
    carries it; ``rpi-chromium-mods`` is only added on a Raspberry Pi.
    """
    packages = list(base)
    packages.append("chromium-browser" if candidate("chromium-browser") else "chromium")
    if raspberry_pi and candidate("rpi-chromium-mods"):
        packages.append("rpi-chromium-mods")
    if snapshot.is_yes("enable_ssh"):
        packages.append("openssh-server")
    if snapshot.is_yes("enable_security"):
        packages.append("unattended-upgrades")
    return packages


class PackageManager:
    """apt-get driver.

    In quiet mode all apt output is captured and written to ``error_log``
    so it can be shown after a failure; in verbose mode apt writes straight
    to the terminal.
    """

    def __init__(self, error_log: Path, verbose: bool = False):
        self.error_log = Path(error_log)
        self.verbose = verbose

    def _apt(self, args: List[str], description: str) -> None:
        argv = ["apt-get", *args]
        result = run_command(argv, check=False, capture_output=not self.verbose, env=APT_ENV)
        output = "\n".join(part for part in (result.stdout, result.stderr) if part)
        returncode = result.returncode

        if not self.verbose:
            self._log_output(output)

        if returncode != 0:
            logger.error(f"{description} failed with exit code {returncode}")
            raise InstallationError(f"{description} failed", output=output)

    def _log_output(self, output: str) -> None:
        try:
            self.error_log.write_text(output or "")
        except OSError as e:
            logger.warning(f"Could not write {self.error_log}: {e}")

    def update(self) -> bool:
        """Refresh the package lists; a failure is logged and install goes on with the cached lists."""
        try:
            self._apt(["update"] if self.verbose else ["update", "-qq"], "Package list update")
        except InstallationError as e:
            logger.warning(f"{e}, continuing with cached package lists")
            return False
        return True

    def install(self, packages: Sequence[str]) -> None:
        """Install ``packages``, keeping existing config files on conflicts.

        Raises:
            InstallationError: Carrying the captured apt output.
        """
        if not packages:
            return
        logger.info(f"Installing packages: {' '.join(packages)}")
        self._apt(["install", "-y", *APT_OPTIONS, *packages], "Package installation")

    def purge(self, packages: Optional[Sequence[str]] = None) -> bool:
        """Purge the kiosk packages and autoremove; returns False on failure."""
        packages = list(packages or PURGE_PACKAGES)
        ok = True
        for args in (["purge", "-y", *packages], ["autoremove", "-y"]):
            try:
                self._apt(args, f"apt-get {args[0]}")
            except InstallationError as e:
                logger.warning(f"{e} (continuing)")
                ok = False
        return ok
