"""Configuration file management for the kiosk."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional


class BaseConfig(ABC):
    """Base class for all files the setup tool owns."""

    def __init__(self, config_dir: Path):
        # Directories are created on save, never on construction: most of
        # them live under /etc or /boot and must not appear on a dry read
        self.config_dir = Path(config_dir)

    @property
    @abstractmethod
    def config_file(self) -> Path:
        """Return the path to the configuration file."""
        pass

    @abstractmethod
    def load(self) -> Any:
        """Load the configuration from disk."""
        pass

    @abstractmethod
    def save(self, config: Any) -> Optional[Dict[str, Any]]:
        """Save the configuration to disk.

        Returns:
            Optional dictionary with metadata about the save operation.
            Most implementations return None.
        """
        pass

    @abstractmethod
    def validate(self, config: Any) -> List[str]:
        """Validate the configuration, returning human readable errors."""
        pass

    def exists(self) -> bool:
        return self.config_file.exists()

    def remove(self) -> bool:
        """Delete the file; returns False if it was already absent."""
        try:
            self.config_file.unlink()
            return True
        except FileNotFoundError:
            return False
