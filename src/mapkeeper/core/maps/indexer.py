"""Loading map folders and scanning maps folders."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterator, Optional, TypeVar

from mapkeeper.core.exceptions import MapKeeperError
from mapkeeper.core.file_operations import get_files_in_folder, get_folders_in_folder
from mapkeeper.core.maps.cache import MapInfoCache
from mapkeeper.core.maps.hasher import compute_map_hash
from mapkeeper.core.maps.manifest import MapInfo, is_manifest_name, parse_manifest, read_manifest
from mapkeeper.core.maps.models import GameVersion, LocalMap, NullSongDetails, SongDetailsProvider
from mapkeeper.core.maps.versions import VersionFolderResolver
from mapkeeper.core.progress import Progress

_logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors that drop a single folder from a scan
LOAD_ERRORS = (MapKeeperError, OSError, ValueError)


def split_into_chunks(items: list[T], size: int) -> list[list[T]]:
    """Split a list into consecutive chunks of at most size items."""
    return [items[i : i + size] for i in range(0, len(items), size)]


class MapIndexer:
    """Resolves map folders into LocalMap records.

    Every load goes through ``load_map``, which consults the cache by folder
    name before touching the filesystem and fills it on a miss.
    """

    def __init__(
        self,
        cache: MapInfoCache,
        resolver: VersionFolderResolver,
        song_details: Optional[SongDetailsProvider] = None,
        chunk_size: int = 50,
        details_timeout: float = 30.0,
    ):
        self._cache = cache
        self._resolver = resolver
        self._song_details = song_details or NullSongDetails()
        self._chunk_size = max(1, chunk_size)
        self._details_timeout = details_timeout

    @property
    def cache(self) -> MapInfoCache:
        return self._cache

    @property
    def song_details(self) -> SongDetailsProvider:
        return self._song_details

    def load_map(self, map_path: Path) -> Optional[LocalMap]:
        """Load one map folder.

        Returns:
            The LocalMap, or None if the folder has no manifest

        Raises:
            ManifestParseError: If the manifest is malformed
            HashComputationError: If a referenced file is missing
            OSError: If the folder cannot be read
        """
        cached = self._cache.get(map_path.name)
        if cached is not None:
            return self._to_local_map(cached.map_info, cached.hash, map_path)

        files = get_files_in_folder(map_path)
        info_file = next((f for f in files if is_manifest_name(f.name)), None)
        if info_file is None:
            return None

        raw_info = read_manifest(info_file)
        try:
            map_info = parse_manifest(raw_info)
        except MapKeeperError as e:
            _logger.error(f"Cannot parse map info.dat. Map path: {map_path}: {e}")
            raise

        map_hash = compute_map_hash(map_path, raw_info)
        self._cache.put(map_path.name, map_info, map_hash)

        return self._to_local_map(map_info, map_hash, map_path)

    def _to_local_map(self, map_info: MapInfo, map_hash: str, map_path: Path) -> LocalMap:
        folder = map_path.absolute()
        return LocalMap(
            map_info=map_info,
            hash=map_hash,
            path=map_path,
            cover_url=(folder / map_info.cover_image_filename).as_uri(),
            song_url=(folder / map_info.song_filename).as_uri(),
            song_details=self._song_details.get_song_details(map_hash),
        )

    def get_maps(self, version: Optional[GameVersion] = None) -> Iterator[Progress[LocalMap]]:
        """Scan the maps folder of a version (or the shared pool)."""
        return self.scan_folder(self._resolver.get_maps_folder_path(version))

    def scan_folder(self, levels_folder: Path) -> Iterator[Progress[LocalMap]]:
        """Load every map folder directly inside levels_folder.

        Folders are loaded in batches of ``chunk_size`` running in parallel;
        a batch finishes before the next one starts. One snapshot is yielded
        per processed folder and a final one carries all loaded maps in
        ``items``. Folders that fail to load are logged and skipped.
        """
        if not self._song_details.wait_loaded(self._details_timeout):
            _logger.warning("Song details not loaded in time, scanning without them")

        if not levels_folder.exists():
            return

        map_paths = get_folders_in_folder(levels_folder)
        progress: Progress[LocalMap] = Progress(total=len(map_paths))
        loaded_maps: list[LocalMap] = []

        with ThreadPoolExecutor(max_workers=self._chunk_size) as executor:
            for chunk in split_into_chunks(map_paths, self._chunk_size):
                futures = {executor.submit(self.load_map, path): path for path in chunk}
                results: dict[Path, LocalMap] = {}

                for future in as_completed(futures):
                    path = futures[future]
                    try:
                        local_map = future.result()
                    except LOAD_ERRORS as e:
                        _logger.warning(f"Skipping map folder {path}: {e}")
                        local_map = None

                    if local_map is not None:
                        results[path] = local_map

                    progress.current += 1
                    progress.data = local_map
                    yield progress.snapshot()

                loaded_maps.extend(results[path] for path in chunk if path in results)

        progress.data = None
        progress.items = loaded_maps
        yield progress.snapshot()

    def get_map_from_hash(
        self, map_hash: str, version: Optional[GameVersion] = None
    ) -> Optional[LocalMap]:
        """Find an installed map by content hash."""
        map_hash = map_hash.lower()
        maps_path = self._resolver.get_maps_folder_path(version)

        dirname = self._cache.get_by_hash(map_hash)
        if dirname and (maps_path / dirname).exists():
            local_map = self.load_map(maps_path / dirname)
            if local_map is not None and local_map.hash == map_hash:
                return local_map

        # Not in cache, search the folder
        for map_path in get_folders_in_folder(maps_path):
            try:
                local_map = self.load_map(map_path)
            except LOAD_ERRORS:
                continue
            if local_map is not None and local_map.hash == map_hash:
                return local_map

        return None

    def find_maps_by_hashes(self, maps_path: Path, hashes: set[str]) -> dict[str, list[Path]]:
        """Map each wanted hash to the installed folders below maps_path holding it."""
        found: dict[str, list[Path]] = {}
        for map_path in get_folders_in_folder(maps_path):
            try:
                local_map = self.load_map(map_path)
            except LOAD_ERRORS as e:
                _logger.warning(f"Skipping map folder {map_path}: {e}")
                continue
            if local_map is not None and local_map.hash in hashes:
                found.setdefault(local_map.hash, []).append(map_path)
        return found
