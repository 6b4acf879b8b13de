"""Composition root wiring the map services together."""

from pathlib import Path
from typing import Iterator, Optional, Sequence

from mapkeeper.core.maps.cache import MapInfoCache
from mapkeeper.core.maps.deletion import MapDeleter
from mapkeeper.core.maps.downloader import MapDownloader
from mapkeeper.core.maps.exporter import MapExporter
from mapkeeper.core.maps.importer import MapImporter
from mapkeeper.core.maps.indexer import MapIndexer
from mapkeeper.core.maps.models import (
    Downloader,
    FolderLinker,
    GameVersion,
    LocalMap,
    RemoteMap,
    SongDetailsProvider,
    VersionLocator,
)
from mapkeeper.core.maps.versions import VersionFolderResolver
from mapkeeper.core.progress import DeletionProgress, Progress
from mapkeeper.core.request import UrlDownloader
from mapkeeper.utils.settings import Settings


class LocalMapsManager:
    """Entry point for everything touching locally installed maps.

    Owns one cache, resolver and indexer and hands them to the pipelines.
    Callers must not run two writing operations on the same map folder at
    the same time; the cache is not locked.
    """

    def __init__(
        self,
        locator: VersionLocator,
        settings: Optional[Settings] = None,
        downloader: Optional[Downloader] = None,
        linker: Optional[FolderLinker] = None,
        song_details: Optional[SongDetailsProvider] = None,
    ):
        settings = settings or Settings()

        self.cache = MapInfoCache()
        self.resolver = VersionFolderResolver(
            locator, settings.load_shared_content_path(), linker=linker
        )
        self.indexer = MapIndexer(
            self.cache,
            self.resolver,
            song_details=song_details,
            chunk_size=settings.load_scan_chunk_size(),
            details_timeout=settings.load_details_timeout(),
        )
        self.importer = MapImporter(self.indexer, self.resolver)
        self.exporter = MapExporter(self.resolver)
        self.deleter = MapDeleter(self.indexer, self.resolver, use_trash=settings.load_use_trash())
        self.downloader = MapDownloader(
            self.indexer,
            self.resolver,
            downloader or UrlDownloader(),
            settings.load_temp_path(),
        )

    # === Folders ===

    def get_maps_folder_path(self, version: Optional[GameVersion] = None) -> Path:
        return self.resolver.get_maps_folder_path(version)

    def version_is_linked(self, version: GameVersion) -> bool:
        return self.resolver.version_is_linked(version)

    def link_version_maps(self, version: GameVersion, keep_maps: bool) -> None:
        self.resolver.link_version_maps(version, keep_maps)

    def unlink_version_maps(self, version: GameVersion, keep_maps: bool) -> None:
        self.resolver.unlink_version_maps(version, keep_maps)

    # === Reading ===

    def load_map(self, map_path: Path) -> Optional[LocalMap]:
        return self.indexer.load_map(map_path)

    def get_maps(self, version: Optional[GameVersion] = None) -> Iterator[Progress[LocalMap]]:
        return self.indexer.get_maps(version)

    def get_map_from_hash(
        self, map_hash: str, version: Optional[GameVersion] = None
    ) -> Optional[LocalMap]:
        return self.indexer.get_map_from_hash(map_hash, version)

    # === Writing ===

    def import_maps(
        self, zip_paths: Sequence[Path], version: Optional[GameVersion] = None
    ) -> Iterator[Progress[LocalMap]]:
        return self.importer.import_maps(list(zip_paths), version)

    def export_maps(
        self,
        version: Optional[GameVersion],
        maps: Optional[Sequence[LocalMap]],
        out_path: Path,
    ) -> Iterator[Progress[str]]:
        return self.exporter.export_maps(version, maps, out_path)

    def delete_maps(self, maps: Sequence[LocalMap]) -> Iterator[DeletionProgress]:
        return self.deleter.delete_maps(maps)

    def delete_maps_from_hashes(
        self, version: Optional[GameVersion], hashes: Sequence[str]
    ) -> Iterator[DeletionProgress]:
        return self.deleter.delete_maps_from_hashes(version, hashes)

    # === Remote ===

    def download_map(self, remote_map: RemoteMap, version: Optional[GameVersion] = None) -> LocalMap:
        return self.downloader.download_map(remote_map, version)

    def one_click_download_map(self, remote_map: RemoteMap) -> LocalMap:
        return self.downloader.one_click_download_map(remote_map)

    @property
    def map_downloaded(self):
        """Signal emitting (LocalMap, GameVersion | None) after each download."""
        return self.downloader.map_downloaded
