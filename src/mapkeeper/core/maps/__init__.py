"""Maps - Discovery, hashing, import/export and deletion of custom maps."""

from .cache import CacheEntry, MapInfoCache
from .deletion import MapDeleter
from .downloader import MapDownloader, sanitize_folder_name
from .exporter import MapExporter
from .hasher import compute_map_hash
from .importer import ArchivePlan, MapImporter, NewFolderGuard
from .indexer import MapIndexer
from .manager import LocalMapsManager
from .manifest import MapDifficulty, MapInfo, parse_manifest
from .models import (
    Downloader,
    FolderLinker,
    GameVersion,
    LocalMap,
    NullSongDetails,
    RemoteMap,
    RemoteMapVersion,
    SongDetailsProvider,
    VersionLocator,
)
from .versions import DirectoryVersionLocator, VersionFolderResolver

__all__ = [
    "ArchivePlan",
    "CacheEntry",
    "DirectoryVersionLocator",
    "Downloader",
    "FolderLinker",
    "GameVersion",
    "LocalMap",
    "LocalMapsManager",
    "MapDeleter",
    "MapDifficulty",
    "MapDownloader",
    "MapExporter",
    "MapImporter",
    "MapIndexer",
    "MapInfo",
    "MapInfoCache",
    "NewFolderGuard",
    "NullSongDetails",
    "RemoteMap",
    "RemoteMapVersion",
    "SongDetailsProvider",
    "VersionFolderResolver",
    "VersionLocator",
    "compute_map_hash",
    "parse_manifest",
    "sanitize_folder_name",
]
