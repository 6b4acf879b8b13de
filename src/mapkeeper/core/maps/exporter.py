"""Exporting maps to a ZIP archive."""

import logging
from pathlib import Path
from typing import Iterator, Optional, Sequence

from mapkeeper.core.archive_handler import ZipArchiveWriter
from mapkeeper.core.maps.models import GameVersion, LocalMap
from mapkeeper.core.maps.versions import VersionFolderResolver
from mapkeeper.core.progress import Progress

_logger = logging.getLogger(__name__)


class MapExporter:
    """Bundles map folders into one archive."""

    def __init__(self, resolver: VersionFolderResolver):
        self._resolver = resolver

    def export_maps(
        self,
        version: Optional[GameVersion],
        maps: Optional[Sequence[LocalMap]],
        out_path: Path,
    ) -> Iterator[Progress[str]]:
        """Export maps, or the whole maps folder when none are given.

        Each map ends up in its own top-level folder of the archive, so the
        result imports back as a multi-map archive.
        """
        archive = ZipArchiveWriter(out_path)

        if not maps:
            maps_folder = self._resolver.get_maps_folder_path(version)
            _logger.info(f"Exporting all maps of {maps_folder} to {out_path}")
            archive.add_directory(maps_folder, keep_root_name=False)
        else:
            _logger.info(f"Exporting {len(maps)} map(s) to {out_path}")
            for local_map in maps:
                archive.add_directory(local_map.path)

        return archive.finalize()
