"""Crash-safe file replacement."""

import os
import tempfile
from pathlib import Path
from typing import Callable, Optional

from wallpanel.logging_config import get_logger

logger = get_logger(__name__)


def atomic_write(
    path: Path,
    content: str,
    mode: Optional[int] = None,
    validate: Optional[Callable[[Path], None]] = None,
    mode_required: bool = True,
) -> None:
    """Replace ``path`` with ``content`` without ever exposing a partial file.

    The content goes to a temporary sibling first, is flushed to disk and
    optionally checked by ``validate`` (which raises to reject it), and only
    then renamed over the target. On any failure the temporary file is
    removed and the target keeps its previous content.

    Filesystems without POSIX permissions (the FAT boot partition) reject
    chmod; pass ``mode_required=False`` to tolerate that.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            try:
                os.chmod(tmp_path, mode)
            except PermissionError:
                if mode_required:
                    raise
                logger.debug("Cannot set mode %o on %s", mode, tmp_path)
        if validate is not None:
            validate(tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            tmp_path.unlink()
        except FileNotFoundError:
            pass
        raise

    logger.debug("Wrote %s (%d bytes)", path, len(content))
