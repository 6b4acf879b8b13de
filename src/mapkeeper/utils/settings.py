"""Application settings management."""

import tempfile
from pathlib import Path

from PySide6.QtCore import QSettings, QStandardPaths


class Settings:
    """Manage application settings using QSettings.

    With no path the native per-user store is used. With a path the
    settings live in an INI file at that location.
    """

    def __init__(self, path: Path | None = None):
        if path is None:
            self._settings = QSettings("MapKeeper", "MapKeeper")
        else:
            self._settings = QSettings(str(path), QSettings.Format.IniFormat)

    def sync(self):
        """Flush pending changes to the backing store."""
        self._settings.sync()

    # Scan batch size
    def save_scan_chunk_size(self, size: int):
        """Save number of map folders loaded concurrently per batch."""
        self._settings.setValue("scan/chunk_size", size)

    def load_scan_chunk_size(self) -> int:
        """Load scan batch size. Default 50."""
        return max(1, self._settings.value("scan/chunk_size", 50, type=int))

    # Song details warm-up timeout (in seconds)
    def save_details_timeout(self, seconds: float):
        """Save how long a scan waits for song details to load."""
        self._settings.setValue("scan/details_timeout_s", seconds)

    def load_details_timeout(self) -> float:
        """Load song details timeout. Default 30s."""
        return self._settings.value("scan/details_timeout_s", 30.0, type=float)

    # Deletion mode
    def save_use_trash(self, enabled: bool):
        """Save whether deleted maps go to the trash."""
        self._settings.setValue("delete/use_trash", enabled)

    def load_use_trash(self) -> bool:
        """Load trash setting. Default False (delete permanently)."""
        return self._settings.value("delete/use_trash", False, type=bool)

    # Shared content location
    def save_shared_content_path(self, path: Path):
        """Save the root folder of content shared between versions."""
        self._settings.setValue("paths/shared_content", str(path))

    def load_shared_content_path(self) -> Path:
        """Load shared content root. Defaults to the app data location."""
        path_str = self._settings.value("paths/shared_content")
        if path_str:
            return Path(path_str)
        data_dir = QStandardPaths.writableLocation(
            QStandardPaths.StandardLocation.GenericDataLocation
        )
        return Path(data_dir) / "MapKeeper" / "SharedContent"

    # Temporary downloads
    def save_temp_path(self, path: Path):
        """Save the folder used for temporary downloads."""
        self._settings.setValue("paths/temp", str(path))

    def load_temp_path(self) -> Path:
        """Load temporary folder. Defaults to <system temp>/mapkeeper."""
        path_str = self._settings.value("paths/temp")
        if path_str:
            return Path(path_str)
        return Path(tempfile.gettempdir()) / "mapkeeper"

    # Logging enabled
    def save_logging_enabled(self, enabled: bool):
        """Save logging enabled setting."""
        self._settings.setValue("debug/logging_enabled", enabled)

    def load_logging_enabled(self) -> bool:
        """Load logging enabled setting. Default True."""
        return self._settings.value("debug/logging_enabled", True, type=bool)
