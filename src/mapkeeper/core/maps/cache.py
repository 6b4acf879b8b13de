"""In-memory map info cache indexed by folder name and by content hash."""

import logging
from dataclasses import dataclass
from typing import Optional

from mapkeeper.core.maps.manifest import MapInfo

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """Cached result of loading one map folder."""

    dirname: str
    map_info: MapInfo
    hash: str


class MapInfoCache:
    """Process-lifetime cache of parsed manifests and hashes.

    Keys are folder names, not full paths: the same folder name recurs in
    every version's maps folder and in the shared pool. Entries are never
    re-validated against the filesystem; whoever deletes or rewrites a map
    folder must call ``delete``.
    """

    def __init__(self) -> None:
        self._by_dirname: dict[str, CacheEntry] = {}
        self._by_hash: dict[str, str] = {}

    def get(self, dirname: str) -> Optional[CacheEntry]:
        """Get cached entry for a folder name."""
        return self._by_dirname.get(dirname)

    def put(self, dirname: str, map_info: MapInfo, hash: str) -> CacheEntry:
        """Insert or replace the entry for a folder name."""
        previous = self._by_dirname.get(dirname)
        if previous is not None and self._by_hash.get(previous.hash) == dirname:
            del self._by_hash[previous.hash]

        entry = CacheEntry(dirname=dirname, map_info=map_info, hash=hash)
        self._by_dirname[dirname] = entry
        self._by_hash[hash] = dirname
        return entry

    def delete(self, dirname: str) -> None:
        """Evict a folder name from both indexes."""
        entry = self._by_dirname.pop(dirname, None)
        if entry is None:
            return
        if self._by_hash.get(entry.hash) == dirname:
            del self._by_hash[entry.hash]
        _logger.debug(f"Evicted cached map info for {dirname}")

    def get_by_hash(self, hash: str) -> Optional[str]:
        """Get the folder name last seen holding this hash."""
        return self._by_hash.get(hash)

    def clear(self) -> None:
        self._by_dirname.clear()
        self._by_hash.clear()

    def __len__(self) -> int:
        return len(self._by_dirname)

    def __contains__(self, dirname: object) -> bool:
        return dirname in self._by_dirname
