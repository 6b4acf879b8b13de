"""Deleting installed maps."""

import logging
from pathlib import Path
from typing import Iterator, Optional, Sequence

from mapkeeper.core.file_operations import delete_folder
from mapkeeper.core.maps.indexer import MapIndexer
from mapkeeper.core.maps.models import GameVersion, LocalMap
from mapkeeper.core.maps.versions import VersionFolderResolver
from mapkeeper.core.progress import DeletionProgress

_logger = logging.getLogger(__name__)


class MapDeleter:
    """Removes map folders and evicts them from the cache.

    Unlike scans and imports, the first failure ends the whole operation.
    """

    def __init__(
        self, indexer: MapIndexer, resolver: VersionFolderResolver, use_trash: bool = False
    ):
        self._indexer = indexer
        self._resolver = resolver
        self._use_trash = use_trash

    def _remove(self, map_path: Path) -> bool:
        if not map_path.exists():
            return False
        delete_folder(map_path, use_trash=self._use_trash)
        self._indexer.cache.delete(map_path.name)
        _logger.info(f"Deleted map {map_path}")
        return True

    def delete_maps(self, maps: Sequence[LocalMap]) -> Iterator[DeletionProgress]:
        """Delete the given maps, one snapshot per map."""
        progress = DeletionProgress(total=len(maps))

        for local_map in maps:
            if self._remove(local_map.path):
                progress.deleted += 1
            progress.current += 1
            yield progress.snapshot()

    def delete_maps_from_hashes(
        self, version: Optional[GameVersion], hashes: Sequence[str]
    ) -> Iterator[DeletionProgress]:
        """Delete every map of a version whose hash is listed.

        One snapshot is yielded per requested hash, whether or not a map
        with that hash is installed.
        """
        wanted = list(dict.fromkeys(h.lower() for h in hashes))
        progress = DeletionProgress(total=len(wanted))

        maps_path = self._resolver.get_maps_folder_path(version)
        installed = self._indexer.find_maps_by_hashes(maps_path, set(wanted))

        for map_hash in wanted:
            for map_path in installed.get(map_hash, []):
                if self._remove(map_path):
                    progress.deleted += 1
            progress.current += 1
            yield progress.snapshot()
