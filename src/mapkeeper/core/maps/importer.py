"""Importing maps from archives.

An archive holds either one map (manifest at its root) or several maps in
subfolders at any depth. All archives are inspected before anything is
extracted so the total amount of work is known upfront.
"""

import logging
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterator, Optional

from mapkeeper.core.archive_handler import ArchiveHandler, ArchiveManager
from mapkeeper.core.exceptions import MapImportError, MapKeeperError, NoAssetsFoundError
from mapkeeper.core.maps.indexer import MapIndexer
from mapkeeper.core.maps.models import GameVersion, LocalMap
from mapkeeper.core.maps.versions import VersionFolderResolver
from mapkeeper.core.progress import Progress

_logger = logging.getLogger(__name__)

INFO_DAT_PATTERN = re.compile(r"(^|/)info\.dat$", re.IGNORECASE)


@dataclass
class ArchivePlan:
    """Where the maps are inside one archive."""

    path: Path
    # Manifest at the archive root, the whole archive is one map
    single: bool
    # Folders inside the archive holding a manifest
    folders: list[str] = field(default_factory=list)

    @property
    def unit_count(self) -> int:
        return 1 if self.single else len(self.folders)


class NewFolderGuard:
    """Removes a map folder created for an import if the import fails.

    A folder that existed before the import is never removed, only reported
    as possibly broken. Exceptions always propagate.
    """

    def __init__(self, path: Path):
        self.path = path
        self.existing = path.exists()
        self._dismissed = False

    def __enter__(self) -> "NewFolderGuard":
        if not self.existing:
            self.path.mkdir(parents=True)
        return self

    def dismiss(self) -> None:
        self._dismissed = True

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None or self._dismissed:
            return False

        if self.existing:
            _logger.warning(f"Map folder {self.path} could be broken")
        else:
            shutil.rmtree(self.path, ignore_errors=True)
        return False


class MapImporter:
    """Extracts maps from archives into a maps folder."""

    def __init__(self, indexer: MapIndexer, resolver: VersionFolderResolver):
        self._indexer = indexer
        self._resolver = resolver

    def plan(self, zip_paths: list[Path]) -> list[ArchivePlan]:
        """Locate the maps inside every archive.

        Archives without a manifest, or that cannot be opened, are skipped
        with a warning.

        Raises:
            NoAssetsFoundError: If no archive contains a manifest
        """
        plans = []
        for zip_path in zip_paths:
            try:
                with ArchiveManager.open(zip_path) as archive:
                    files = archive.list_entries_matching(INFO_DAT_PATTERN)
            except (OSError, ValueError, ImportError) as e:
                _logger.warning(f"Could not count maps {zip_path}: {e}")
                continue

            if not files:
                _logger.warning(f'Zip file "{zip_path}" does not contain any "Info.dat" file')
                continue

            plans.append(
                ArchivePlan(
                    path=zip_path,
                    single=all("/" not in entry.path for entry in files),
                    folders=[entry.path.rpartition("/")[0] for entry in files],
                )
            )

        if not plans:
            raise NoAssetsFoundError('No "Info.dat" file located in any of the zip files')

        return plans

    def import_maps(
        self, zip_paths: list[Path], version: Optional[GameVersion] = None
    ) -> Iterator[Progress[LocalMap]]:
        """Import archives into a version's maps folder (or the shared pool).

        Yields one snapshot before extraction starts and one per map
        attempted. A map that fails leaves ``data`` empty and does not stop
        the remaining ones.
        """
        plans = self.plan(zip_paths)

        progress: Progress[LocalMap] = Progress(total=sum(p.unit_count for p in plans))
        maps_folder = self._resolver.get_maps_folder_path(version)
        imported: list[LocalMap] = []

        yield progress.snapshot()

        for plan in plans:
            try:
                archive = ArchiveManager.open(plan.path)
            except (OSError, ValueError, ImportError) as e:
                _logger.error(f'Could not import "{plan.path}": {e}')
                progress.current += plan.unit_count
                progress.data = None
                yield progress.snapshot()
                continue

            with archive:
                if plan.single:
                    units = [("", plan.path.stem)]
                else:
                    units = [
                        (folder, PurePosixPath(folder).name or plan.path.stem)
                        for folder in plan.folders
                    ]

                for relative_folder, map_name in units:
                    progress.current += 1
                    try:
                        progress.data = self.import_map(
                            archive, relative_folder, map_name, maps_folder
                        )
                        imported.append(progress.data)
                    except (MapKeeperError, OSError) as e:
                        _logger.error(f'Could not import "{plan.path}" ({relative_folder}): {e}')
                        progress.data = None
                    yield progress.snapshot()

        progress.data = None
        progress.items = imported
        yield progress.snapshot()

    def import_map(
        self,
        archive: ArchiveHandler,
        relative_folder: str,
        map_name: str,
        maps_folder: Path,
    ) -> LocalMap:
        """Extract one map from an open archive.

        Args:
            archive: Open archive
            relative_folder: Folder of the map inside the archive ("" for root)
            map_name: Destination folder name
            maps_folder: Maps folder receiving the map

        Raises:
            MapImportError: If extraction or validation fails. A map folder
                created by this call is removed first; a pre-existing one is
                left in place.
        """
        map_path = maps_folder / map_name
        _logger.info(f'Importing map from "{archive.archive_path}" in "{relative_folder}" to "{map_path}"')

        try:
            with NewFolderGuard(map_path) as guard:
                self._indexer.cache.delete(map_name)

                for entry in archive.list_files(relative_folder):
                    relative_path = entry.path[len(relative_folder) :].lstrip("/")
                    file_path = self._safe_join(map_path, relative_path)
                    file_path.parent.mkdir(parents=True, exist_ok=True)
                    _logger.debug(f'Extracting to "{file_path}"')
                    file_path.write_bytes(archive.read_entry(entry))

                local_map = self._indexer.load_map(map_path)
                if local_map is None:
                    raise MapImportError(f'No "Info.dat" found in extracted map {map_path}')

                guard.dismiss()
                return local_map
        except MapImportError:
            raise
        except (MapKeeperError, OSError, KeyError, ValueError) as e:
            raise MapImportError.from_error(e, f"Could not import map to {map_path}: {e}")

    @staticmethod
    def _safe_join(root: Path, relative_path: str) -> Path:
        target = (root / relative_path).resolve()
        if not target.is_relative_to(root.resolve()):
            raise MapImportError(f'Archive entry "{relative_path}" escapes the map folder')
        return target
