"""Maps folder resolution per game version and shared pool."""

import logging
from pathlib import Path
from typing import Optional

from mapkeeper.core.file_operations import ensure_folder, get_folders_in_folder
from mapkeeper.core.maps.models import FolderLinker, GameVersion, VersionLocator

_logger = logging.getLogger(__name__)


class DirectoryVersionLocator:
    """Version locator treating each subfolder of a root as one installation."""

    def __init__(self, installs_root: Path):
        self.installs_root = installs_root

    def get_version_path(self, version: GameVersion) -> Path:
        return version.path or self.installs_root / version.name

    def get_installed_versions(self) -> list[GameVersion]:
        return [
            GameVersion(name=folder.name, path=folder)
            for folder in get_folders_in_folder(self.installs_root)
        ]


class VersionFolderResolver:
    """Computes where maps live for a version, or for the shared pool."""

    LEVELS_ROOT_FOLDER = "Beat Saber_Data"
    CUSTOM_LEVELS_FOLDER = "CustomLevels"
    RELATIVE_MAPS_FOLDER = Path(LEVELS_ROOT_FOLDER) / CUSTOM_LEVELS_FOLDER
    SHARED_MAPS_FOLDER = "SharedMaps"

    def __init__(
        self,
        locator: VersionLocator,
        shared_content_path: Path,
        linker: Optional[FolderLinker] = None,
    ):
        self._locator = locator
        self._shared_content_path = shared_content_path
        self._linker = linker

    @property
    def locator(self) -> VersionLocator:
        return self._locator

    def get_maps_folder_path(self, version: Optional[GameVersion] = None) -> Path:
        """Maps folder of a version, or the shared pool (created if missing)."""
        if version is not None:
            return self._locator.get_version_path(version) / self.RELATIVE_MAPS_FOLDER

        shared_maps_path = (
            self._shared_content_path / self.SHARED_MAPS_FOLDER / self.CUSTOM_LEVELS_FOLDER
        )
        return ensure_folder(shared_maps_path)

    def version_is_linked(self, version: GameVersion) -> bool:
        """Whether the version's maps folder is a symlink to the shared pool.

        Only the symlink flag is checked; sharing through hard links or bind
        mounts is not detected.
        """
        maps_path = self.get_maps_folder_path(version)
        if not maps_path.exists():
            return False
        return maps_path.is_symlink()

    def link_version_maps(self, version: GameVersion, keep_maps: bool) -> None:
        """Replace the version's maps folder with a link to the shared pool."""
        maps_path = self.get_maps_folder_path(version)
        _logger.info(f"Linking maps of {version} ({maps_path})")
        self._require_linker().link_folder(
            maps_path, keep_contents=keep_maps, intermediate_folder=self.SHARED_MAPS_FOLDER
        )

    def unlink_version_maps(self, version: GameVersion, keep_maps: bool) -> None:
        """Turn a linked maps folder back into an independent one."""
        maps_path = self.get_maps_folder_path(version)
        _logger.info(f"Unlinking maps of {version} ({maps_path})")
        self._require_linker().unlink_folder(
            maps_path, keep_contents=keep_maps, intermediate_folder=self.SHARED_MAPS_FOLDER
        )

    def _require_linker(self) -> FolderLinker:
        if self._linker is None:
            raise RuntimeError("No folder linker configured")
        return self._linker
