"""Tests for MapDownloader - download, short-circuit and one-click copies."""

import logging
import os
import shutil
from pathlib import Path

import pytest

from mapkeeper.core.exceptions import HashComputationError, MapDownloadError
from mapkeeper.core.maps.downloader import MapDownloader, sanitize_folder_name
from mapkeeper.core.maps.models import GameVersion, RemoteMap, RemoteMapVersion
from mapkeeper.core.progress import Progress

from conftest import make_zip, map_members


class FakeDownloader:
    """Downloader serving one prepared archive."""

    def __init__(self, archive: Path):
        self.archive = archive
        self.urls: list[str] = []

    def download_file(self, url: str, destination: Path):
        self.urls.append(url)
        size = self.archive.stat().st_size
        yield Progress(total=size, current=0)
        shutil.copyfile(self.archive, destination)
        yield Progress(total=size, current=size, data=destination)


class BrokenDownloader:
    """Downloader failing with a network error."""

    def download_file(self, url: str, destination: Path):
        raise ConnectionError("offline")
        yield


@pytest.fixture
def archive(temp_dir: Path) -> Path:
    return make_zip(temp_dir / "remote" / "abc.zip", map_members())


@pytest.fixture
def fake_downloader(archive: Path):
    return FakeDownloader(archive)


@pytest.fixture
def map_downloader(indexer, resolver, fake_downloader, temp_dir: Path):
    return MapDownloader(indexer, resolver, fake_downloader, temp_dir / "tmp")


def _remote(map_hash: str, name: str = "Cool Song") -> RemoteMap:
    return RemoteMap(
        id="1a2b",
        name=name,
        versions=(RemoteMapVersion(hash=map_hash, download_url="https://maps.example/abc.zip"),),
    )


class TestDownloadMap:
    """Test installing one remote map."""

    def test_fresh_download(
        self,
        map_downloader: MapDownloader,
        fake_downloader: FakeDownloader,
        maps_dir: Path,
        version: GameVersion,
        temp_dir: Path,
    ):
        """Test the archive is extracted into "<id>-<name>" and the signal fires."""
        emitted = []
        map_downloader.map_downloaded.connect(lambda m, v: emitted.append((m, v)))

        local_map = map_downloader.download_map(_remote("ABCDEF"), version)

        assert local_map.path == maps_dir / "1a2b-Cool Song"
        assert (local_map.path / "Info.dat").is_file()
        assert fake_downloader.urls == ["https://maps.example/abc.zip"]
        assert [(m.hash, v) for m, v in emitted] == [(local_map.hash, version)]
        assert list((temp_dir / "tmp").iterdir()) == []

    def test_same_content_is_not_downloaded_again(
        self,
        map_downloader: MapDownloader,
        fake_downloader: FakeDownloader,
        version: GameVersion,
    ):
        """Test a map installed with matching hash short-circuits the download."""
        first = map_downloader.download_map(_remote("placeholder"), version)
        emitted = []
        map_downloader.map_downloaded.connect(lambda m, v: emitted.append(m))

        again = map_downloader.download_map(_remote(first.hash.upper()), version)

        assert again.path == first.path
        assert len(fake_downloader.urls) == 1
        assert emitted == []

    def test_changed_remote_hash_downloads_again(
        self,
        map_downloader: MapDownloader,
        fake_downloader: FakeDownloader,
        version: GameVersion,
    ):
        map_downloader.download_map(_remote("old"), version)
        map_downloader.download_map(_remote("new"), version)
        assert len(fake_downloader.urls) == 2

    def test_missing_hash_raises(self, map_downloader: MapDownloader, version: GameVersion):
        with pytest.raises(MapDownloadError) as exc_info:
            map_downloader.download_map(_remote(""), version)
        assert exc_info.value.code == "cannot-download-map"

    def test_no_versions_raises(self, map_downloader: MapDownloader, version: GameVersion):
        with pytest.raises(MapDownloadError):
            map_downloader.download_map(RemoteMap(id="1", name="x"), version)

    def test_network_error_is_wrapped(
        self, indexer, resolver, temp_dir: Path, version: GameVersion
    ):
        downloader = MapDownloader(indexer, resolver, BrokenDownloader(), temp_dir / "tmp")

        with pytest.raises(MapDownloadError) as exc_info:
            downloader.download_map(_remote("abc"), version)
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_broken_download_removes_new_folder(
        self, indexer, resolver, temp_dir: Path, maps_dir: Path, version: GameVersion
    ):
        """Test a downloaded map with a missing chart leaves no folder behind."""
        members = map_members()
        del members["Hard.dat"]
        broken = make_zip(temp_dir / "remote" / "broken.zip", members)
        downloader = MapDownloader(indexer, resolver, FakeDownloader(broken), temp_dir / "tmp")

        with pytest.raises(MapDownloadError) as exc_info:
            downloader.download_map(_remote("abc"), version)

        assert isinstance(exc_info.value.__cause__, HashComputationError)
        assert not (maps_dir / "1a2b-Cool Song").exists()
        assert list((temp_dir / "tmp").iterdir()) == []

    def test_broken_download_keeps_existing_folder(
        self,
        indexer,
        resolver,
        temp_dir: Path,
        maps_dir: Path,
        version: GameVersion,
        caplog: pytest.LogCaptureFixture,
    ):
        """Test a folder that was there before the download is left in place."""
        existing = maps_dir / "1a2b-Cool Song"
        existing.mkdir()
        (existing / "notes.txt").write_text("mine")
        members = map_members()
        del members["Hard.dat"]
        broken = make_zip(temp_dir / "remote" / "broken.zip", members)
        downloader = MapDownloader(indexer, resolver, FakeDownloader(broken), temp_dir / "tmp")

        with caplog.at_level(logging.WARNING):
            with pytest.raises(MapDownloadError):
                downloader.download_map(_remote("abc"), version)

        assert (existing / "notes.txt").read_text() == "mine"
        assert "could be broken" in caplog.text

    def test_folder_name_is_sanitized(
        self, map_downloader: MapDownloader, maps_dir: Path, version: GameVersion
    ):
        local_map = map_downloader.download_map(_remote("abc", name='What? "Yes": No/Maybe.'), version)
        assert local_map.path == maps_dir / "1a2b-What Yes NoMaybe"


class TestOneClickDownload:
    """Test downloading once and copying to every installed version."""

    def test_copies_to_other_versions(self, map_downloader: MapDownloader, installs_dir: Path):
        local_map = map_downloader.one_click_download_map(_remote("abc"))

        newest = installs_dir / "1.34.2" / "Beat Saber_Data" / "CustomLevels" / "1a2b-Cool Song"
        older = installs_dir / "1.29.1" / "Beat Saber_Data" / "CustomLevels" / "1a2b-Cool Song"
        assert local_map.path == newest
        assert (older / "Info.dat").read_bytes() == (newest / "Info.dat").read_bytes()

    def test_linked_version_is_skipped(
        self, map_downloader: MapDownloader, resolver, installs_dir: Path
    ):
        """Test a version sharing the same physical folder gets no copy."""
        newest = resolver.get_maps_folder_path(GameVersion("1.34.2"))
        newest.mkdir(parents=True)
        older = resolver.get_maps_folder_path(GameVersion("1.29.1"))
        older.parent.mkdir(parents=True)
        os.symlink(newest, older, target_is_directory=True)

        local_map = map_downloader.one_click_download_map(_remote("abc"))

        assert older.is_symlink()
        assert [p.name for p in newest.iterdir()] == [local_map.dirname]

    def test_no_installed_versions_uses_shared_pool(
        self, map_downloader: MapDownloader, installs_dir: Path, shared_dir: Path
    ):
        shutil.rmtree(installs_dir)

        local_map = map_downloader.one_click_download_map(_remote("abc"))

        assert local_map.path.parent == shared_dir / "SharedMaps" / "CustomLevels"


def test_sanitize_folder_name():
    assert sanitize_folder_name("a<b>c") == "abc"
    assert sanitize_folder_name("trailing. ") == "trailing"
    assert sanitize_folder_name("CON") == "_CON"
    assert len(sanitize_folder_name("x" * 300)) == 255
