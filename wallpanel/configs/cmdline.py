"""Cmdline configuration management."""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from wallpanel.configs import BaseConfig
from wallpanel.configs.snapshot import Snapshot
from wallpanel.errors import WriteError
from wallpanel.logging_config import get_logger
from wallpanel.utils.files import atomic_write

logger = get_logger(__name__)

# Connector the kernel's video= argument is pinned to
KERNEL_VIDEO_CONNECTOR = "HDMI-A-1"

SILENT_BOOT_PARAMS = ["quiet", "splash", "logo.nologo", "vt.global_cursor_default=0", "consoleblank=0"]

# Every parameter this tool may add; removed before each re-application
MANAGED_PARAMS = [f"video={KERNEL_VIDEO_CONNECTOR}", "quiet", "splash", "logo.nologo", "vt.global_cursor_default", "consoleblank"]


def param_name(token: str) -> str:
    """Parameter name of a token: text before the first ``=``, or the flag itself."""
    return token.split("=", 1)[0]


def param_key(token: str) -> str:
    """Leading part used to decide whether a parameter is already present.

    Connector-qualified values keep their connector, so ``video=HDMI-A-1:1920x1080@60D``
    has the key ``video=HDMI-A-1``. Everything else is keyed by name.
    """
    if "=" not in token:
        return token
    name, value = token.split("=", 1)
    if ":" in value:
        return f"{name}={value.split(':', 1)[0]}"
    return name


def token_matches(token: str, name_prefix: str) -> bool:
    if "=" in name_prefix:
        return token.startswith(name_prefix)
    return param_name(token) == name_prefix


def desired_kernel_params(snapshot: Snapshot) -> List[str]:
    """Kernel parameters implied by the snapshot, in the order they are appended."""
    mode = snapshot.get("resolution_mode", "preferred") or "preferred"
    params = []

    if snapshot.is_yes("force_hdmi"):
        if mode == "preferred":
            params.append(f"video={KERNEL_VIDEO_CONNECTOR}:D")
        else:
            params.append(f"video={KERNEL_VIDEO_CONNECTOR}:{mode}D")
    elif mode != "preferred":
        params.append(f"video={KERNEL_VIDEO_CONNECTOR}:{mode}")

    if snapshot.is_yes("silent_boot"):
        params.extend(SILENT_BOOT_PARAMS)

    return params


class CmdlineConfig(BaseConfig):
    """Cmdline.txt configuration management.

    The file holds a single line of space separated kernel boot parameters.
    A malformed line can leave the machine unable to boot, so every write
    goes to a temporary sibling that must pass a sanity check before it is
    renamed over the real file.
    """

    def __init__(self, config_file: Path, min_length: int = 10):
        super().__init__(Path(config_file).parent)
        self._config_file = Path(config_file)
        self.min_length = min_length

    @property
    def config_file(self) -> Path:
        """Return the configuration file path."""
        return self._config_file

    def read(self) -> str:
        """Return the parameter line, joining accidental extra lines with spaces."""
        try:
            with open(self.config_file, "r") as f:
                content = f.read()
        except FileNotFoundError:
            return ""
        return " ".join(line.strip() for line in content.splitlines() if line.strip())

    def _check_written(self, tmp_path: Path) -> None:
        data = tmp_path.read_text()
        if not data.strip():
            raise WriteError(f"Refusing to write an empty boot parameter line to {self.config_file}")
        if len(data.strip()) <= self.min_length:
            raise WriteError(
                f"Refusing to write a {len(data.strip())} byte boot parameter line to {self.config_file} "
                f"(minimum is {self.min_length + 1})"
            )

    def write(self, content: str) -> None:
        """Atomically replace the parameter line.

        Raises:
            WriteError: If the new line fails the sanity check or cannot be
                written; the existing file is left untouched.
        """
        mode = None
        if self.config_file.exists():
            mode = self.config_file.stat().st_mode & 0o7777

        try:
            atomic_write(
                self.config_file,
                content.strip() + "\n",
                mode=mode,
                validate=self._check_written,
                mode_required=False,
            )
        except WriteError:
            logger.error("Boot parameter write rejected, %s left unchanged", self.config_file)
            raise
        except OSError as e:
            raise WriteError(f"Failed to write {self.config_file}: {e}") from e

        logger.info("Updated %s", self.config_file)

    def remove_param(self, name_prefix: str) -> None:
        """Remove every occurrence of a parameter, whatever its value."""
        content = self.read()
        tokens = content.split()
        kept = [t for t in tokens if not token_matches(t, name_prefix)]
        if len(kept) == len(tokens):
            logger.debug("%s not present in %s", name_prefix, self.config_file)
            return
        logger.info("Removing %d x %s from %s", len(tokens) - len(kept), name_prefix, self.config_file)
        self.write(" ".join(kept))

    def add_param(self, token: str) -> None:
        """Append a parameter unless one with the same key is already present.

        An existing token with a different value is kept as is; callers that
        need to change a value must remove the parameter first.
        """
        content = self.read()
        key = param_key(token)
        existing = [t for t in content.split() if param_key(t) == key]
        if existing:
            if token not in existing:
                logger.warning(
                    "Not adding %s: %s already present in %s", token, " ".join(existing), self.config_file
                )
            return
        self.write(f"{content} {token}" if content else token)

    def apply(self, managed: Iterable[str], desired: Iterable[str]) -> bool:
        """Remove every managed parameter, then add the desired ones.

        Done as one read-modify-write so that a rejected line leaves the file
        exactly as it was. Returns True if the file changed.
        """
        content = self.read()
        tokens = content.split()
        for name_prefix in managed:
            tokens = [t for t in tokens if not token_matches(t, name_prefix)]
        for token in desired:
            if any(param_key(t) == param_key(token) for t in tokens):
                logger.warning("Not adding %s: key already present in %s", token, self.config_file)
                continue
            tokens.append(token)

        new_content = " ".join(tokens)
        if new_content == content:
            logger.info("Boot parameters already up to date")
            return False

        self.write(new_content)
        return True

    def load(self) -> Dict[str, Any]:
        """Load the cmdline configuration from disk.

        Returns:
            Dictionary with 'content' key containing the parameter line
        """
        return {"content": self.read()}

    def save(self, config: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Save the cmdline configuration to disk.

        Args:
            config: Dictionary with 'content' key containing the new line
        """
        self.write(config.get("content", ""))
        return None

    def validate(self, config: Dict[str, Any]) -> List[str]:
        """Validate the cmdline configuration.

        Args:
            config: Dictionary with 'content' key

        Returns:
            List of validation error messages
        """
        content = config.get("content", "")

        if not content or not content.strip():
            return ["Configuration file is empty"]
        if len(content.strip()) <= self.min_length:
            return [f"Boot parameter line must be longer than {self.min_length} characters"]
        return []
