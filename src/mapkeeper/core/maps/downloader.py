"""Downloading remote maps into maps folders."""

import logging
import re
import uuid
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import urlparse

from PySide6.QtCore import QObject, Signal

from mapkeeper.core.archive_handler import ArchiveManager
from mapkeeper.core.exceptions import MapDownloadError, MapKeeperError
from mapkeeper.core.file_operations import copy_folder, ensure_folder
from mapkeeper.core.maps.importer import NewFolderGuard
from mapkeeper.core.maps.indexer import LOAD_ERRORS, MapIndexer
from mapkeeper.core.maps.models import Downloader, GameVersion, LocalMap, RemoteMap
from mapkeeper.core.maps.versions import VersionFolderResolver
from mapkeeper.core.progress import run_sync

_logger = logging.getLogger(__name__)

# Characters not allowed in folder names on any supported platform
ILLEGAL_FILENAME_CHARS = r'[<>:"/\\|?*\x00-\x1f]'
RESERVED_NAMES = re.compile(r"^(con|prn|aux|nul|com\d|lpt\d)(\..*)?$", re.IGNORECASE)


def sanitize_folder_name(name: str) -> str:
    """Make a string safe to use as a folder name."""
    sanitized = re.sub(ILLEGAL_FILENAME_CHARS, "", name)
    sanitized = sanitized.rstrip(". ")
    if RESERVED_NAMES.match(sanitized):
        sanitized = f"_{sanitized}"
    return sanitized[:255]


class MapDownloader(QObject):
    """Fetches remote maps and installs them.

    Signals:
        map_downloaded: Emits (LocalMap, GameVersion | None) after each download
    """

    map_downloaded = Signal(object, object)

    def __init__(
        self,
        indexer: MapIndexer,
        resolver: VersionFolderResolver,
        downloader: Downloader,
        temp_path: Path,
        parent=None,
    ):
        super().__init__(parent)
        self._indexer = indexer
        self._resolver = resolver
        self._downloader = downloader
        self._temp_path = temp_path

    def _download_zip(self, zip_url: str) -> Path:
        """Download an archive to a uniquely named temporary file."""
        stem = PurePosixPath(urlparse(zip_url).path).stem or "map"
        dest = ensure_folder(self._temp_path) / f"{stem}-{uuid.uuid4()}.zip"

        try:
            last = run_sync(self._downloader.download_file(zip_url, dest))
        except OSError as e:
            raise MapDownloadError.from_error(e, f"Cannot download {zip_url}: {e}")

        if last is None or last.data is None:
            raise MapDownloadError(f"Cannot download {zip_url}")
        return Path(last.data)

    def download_map(self, remote_map: RemoteMap, version: Optional[GameVersion] = None) -> LocalMap:
        """Install a remote map unless the same content is already there.

        Raises:
            MapDownloadError: If the map has no hash or the download fails
        """
        if not remote_map.versions or not remote_map.versions[0].hash:
            raise MapDownloadError("Cannot download map, no hash found")

        _logger.info(f"Downloading map {remote_map.name} {remote_map.id}")

        zip_url = remote_map.versions[0].download_url
        map_folder_name = sanitize_folder_name(f"{remote_map.id}-{remote_map.name}")
        map_path = self._resolver.get_maps_folder_path(version) / map_folder_name

        installed_map = None
        if map_path.exists():
            try:
                installed_map = self._indexer.load_map(map_path)
            except LOAD_ERRORS:
                installed_map = None

        if installed_map is not None and all(
            v.hash.lower() == installed_map.hash for v in remote_map.versions
        ):
            return installed_map

        zip_path = self._download_zip(zip_url)
        try:
            with NewFolderGuard(map_path) as guard:
                self._indexer.cache.delete(map_folder_name)
                ArchiveManager.extract(zip_path, map_path)

                local_map = self._indexer.load_map(map_path)
                if local_map is None:
                    raise MapDownloadError(f'Downloaded map has no "Info.dat": {map_path}')

                guard.dismiss()
        except MapDownloadError:
            raise
        except (MapKeeperError, OSError) as e:
            raise MapDownloadError.from_error(e, f"Cannot install map to {map_path}: {e}")
        finally:
            zip_path.unlink(missing_ok=True)

        self.map_downloaded.emit(local_map, version)
        return local_map

    def one_click_download_map(self, remote_map: RemoteMap) -> LocalMap:
        """Download into the last installed version and copy to the others.

        Versions whose maps folder resolves to the same physical folder
        (linked to the shared pool) are skipped.
        """
        versions = self._resolver.locator.get_installed_versions()
        target = versions.pop() if versions else None

        downloaded_map = self.download_map(remote_map, target)
        downloaded_real_folder = downloaded_map.path.parent.resolve()

        for version in versions:
            versions_maps_path = ensure_folder(self._resolver.get_maps_folder_path(version))
            if versions_maps_path.resolve() == downloaded_real_folder:
                continue

            _logger.info(f"Copying {downloaded_map.dirname} to {version}")
            copy_folder(downloaded_map.path, versions_maps_path / downloaded_map.dirname)

        return downloaded_map
