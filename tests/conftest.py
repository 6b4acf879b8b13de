"""Pytest fixtures for MapKeeper tests."""

import json
import shutil
import tempfile
import zipfile
from pathlib import Path

import pytest

from mapkeeper.core.maps.cache import MapInfoCache
from mapkeeper.core.maps.indexer import MapIndexer
from mapkeeper.core.maps.models import GameVersion
from mapkeeper.core.maps.versions import DirectoryVersionLocator, VersionFolderResolver


def info_v2(charts: list[str], song_name: str = "Song") -> dict:
    """Build a v2 Info.dat body referencing the given chart files."""
    return {
        "_version": "2.0.0",
        "_songName": song_name,
        "_songSubName": "",
        "_songAuthorName": "Artist",
        "_levelAuthorName": "Mapper",
        "_beatsPerMinute": 120,
        "_songFilename": "song.ogg",
        "_coverImageFilename": "cover.jpg",
        "_difficultyBeatmapSets": [
            {
                "_beatmapCharacteristicName": "Standard",
                "_difficultyBeatmaps": [
                    {"_difficulty": f"Diff{i}", "_beatmapFilename": chart}
                    for i, chart in enumerate(charts)
                ],
            }
        ],
    }


def write_map(
    folder: Path,
    charts: dict[str, bytes] | None = None,
    info_name: str = "Info.dat",
    song_name: str = "Song",
) -> Path:
    """Create a map folder with a manifest, charts, cover and song files."""
    charts = {"Easy.dat": b'{"notes": [1]}', "Hard.dat": b'{"notes": [1, 2]}'} if charts is None else charts
    folder.mkdir(parents=True, exist_ok=True)
    (folder / info_name).write_text(
        json.dumps(info_v2(list(charts), song_name=song_name)), encoding="utf-8"
    )
    for name, data in charts.items():
        (folder / name).write_bytes(data)
    (folder / "song.ogg").write_bytes(b"OggS audio")
    (folder / "cover.jpg").write_bytes(b"\xff\xd8 jpeg")
    return folder


def make_zip(path: Path, members: dict[str, bytes | str]) -> Path:
    """Write a ZIP file with the given members."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for member, data in members.items():
            zf.writestr(member, data)
    return path


def map_members(prefix: str = "", charts: dict[str, bytes] | None = None) -> dict[str, bytes | str]:
    """ZIP members of one map, optionally below a folder prefix."""
    charts = {"Easy.dat": b'{"notes": [1]}', "Hard.dat": b'{"notes": [1, 2]}'} if charts is None else charts
    members: dict[str, bytes | str] = {
        f"{prefix}Info.dat": json.dumps(info_v2(list(charts))),
        f"{prefix}song.ogg": b"OggS audio",
        f"{prefix}cover.jpg": b"\xff\xd8 jpeg",
    }
    for name, data in charts.items():
        members[f"{prefix}{name}"] = data
    return members


class FakeSongDetails:
    """Song details provider returning canned details."""

    def __init__(self, loaded: bool = True):
        self.loaded = loaded
        self.wait_calls: list[float] = []

    def get_song_details(self, hash: str):
        return {"hash": hash}

    def wait_loaded(self, timeout: float) -> bool:
        self.wait_calls.append(timeout)
        return self.loaded


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    # Cleanup
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def installs_dir(temp_dir: Path):
    """Installs root with two game versions."""
    root = temp_dir / "installs"
    for name in ("1.29.1", "1.34.2"):
        (root / name).mkdir(parents=True)
    return root


@pytest.fixture
def shared_dir(temp_dir: Path):
    return temp_dir / "shared"


@pytest.fixture
def version():
    return GameVersion("1.34.2")


@pytest.fixture
def resolver(installs_dir: Path, shared_dir: Path):
    return VersionFolderResolver(DirectoryVersionLocator(installs_dir), shared_dir)


@pytest.fixture
def cache():
    return MapInfoCache()


@pytest.fixture
def song_details():
    return FakeSongDetails()


@pytest.fixture
def indexer(cache: MapInfoCache, resolver: VersionFolderResolver, song_details):
    return MapIndexer(cache, resolver, song_details=song_details, chunk_size=3, details_timeout=0.5)


@pytest.fixture
def maps_dir(resolver: VersionFolderResolver, version: GameVersion):
    """Maps folder of the test version, created."""
    path = resolver.get_maps_folder_path(version)
    path.mkdir(parents=True)
    return path
