"""Map records and the interfaces of external collaborators."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional, Protocol, runtime_checkable

from mapkeeper.core.maps.manifest import MapInfo
from mapkeeper.core.progress import Progress


@dataclass(frozen=True)
class GameVersion:
    """One installation of the game."""

    name: str
    path: Optional[Path] = None

    def __str__(self) -> str:
        return self.name


@dataclass
class LocalMap:
    """A map installed in a maps folder.

    ``hash`` is derived from the folder content and identifies the map
    wherever it is stored.
    """

    map_info: MapInfo
    hash: str
    path: Path
    cover_url: str
    song_url: str
    song_details: Optional[Any] = None

    @property
    def dirname(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class RemoteMapVersion:
    """Downloadable revision of a remote map."""

    hash: str
    download_url: str


@dataclass(frozen=True)
class RemoteMap:
    """Remote map descriptor, newest version first."""

    id: str
    name: str
    versions: tuple[RemoteMapVersion, ...] = field(default_factory=tuple)


@runtime_checkable
class SongDetailsProvider(Protocol):
    """Source of extra metadata keyed by map hash."""

    def get_song_details(self, hash: str) -> Optional[Any]: ...

    def wait_loaded(self, timeout: float) -> bool: ...


class NullSongDetails:
    """Provider used when no metadata source is configured."""

    def get_song_details(self, hash: str) -> Optional[Any]:
        return None

    def wait_loaded(self, timeout: float) -> bool:
        return True


@runtime_checkable
class Downloader(Protocol):
    """Transport that fetches a URL to a local file.

    The last progress snapshot carries the local path in ``data``.
    """

    def download_file(self, url: str, destination: Path) -> Iterator[Progress[Path]]: ...


@runtime_checkable
class FolderLinker(Protocol):
    """Links a version folder to its shared counterpart with a symlink."""

    def link_folder(self, folder: Path, keep_contents: bool, intermediate_folder: str) -> None: ...

    def unlink_folder(
        self, folder: Path, keep_contents: bool, intermediate_folder: str
    ) -> None: ...


@runtime_checkable
class VersionLocator(Protocol):
    """Knows where game versions are installed."""

    def get_version_path(self, version: GameVersion) -> Path: ...

    def get_installed_versions(self) -> list[GameVersion]: ...
