"""Tests for MapDeleter."""

import shutil
from pathlib import Path

import pytest
import send2trash

from mapkeeper.core.maps import deletion as deletion_module
from mapkeeper.core.maps.cache import MapInfoCache
from mapkeeper.core.maps.deletion import MapDeleter
from mapkeeper.core.maps.indexer import MapIndexer
from mapkeeper.core.maps.models import GameVersion
from mapkeeper.core.progress import DeletionProgress

from conftest import write_map


@pytest.fixture
def deleter(indexer, resolver):
    return MapDeleter(indexer, resolver)


class TestDeleteMaps:
    """Test deleting a list of maps."""

    def test_delete_maps(
        self, deleter: MapDeleter, indexer: MapIndexer, cache: MapInfoCache, maps_dir: Path
    ):
        maps = [indexer.load_map(write_map(maps_dir / name)) for name in ("A", "B")]
        write_map(maps_dir / "C")

        snapshots = list(deleter.delete_maps(maps))

        assert all(isinstance(s, DeletionProgress) for s in snapshots)
        assert [s.current for s in snapshots] == [1, 2]
        assert snapshots[-1].deleted == 2
        assert not (maps_dir / "A").exists()
        assert not (maps_dir / "B").exists()
        assert (maps_dir / "C").exists()
        assert "A" not in cache
        assert cache.get_by_hash(maps[0].hash) is None

    def test_already_missing_map_is_not_counted(
        self, deleter: MapDeleter, indexer: MapIndexer, maps_dir: Path
    ):
        local_map = indexer.load_map(write_map(maps_dir / "A"))
        shutil.rmtree(maps_dir / "A")

        final = list(deleter.delete_maps([local_map]))[-1]

        assert final.current == 1
        assert final.deleted == 0

    def test_failure_ends_operation(
        self,
        deleter: MapDeleter,
        indexer: MapIndexer,
        maps_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
    ):
        """Test the first failed removal propagates."""

        def failing_delete(path, use_trash=False):
            raise PermissionError(f"locked: {path}")

        monkeypatch.setattr(deletion_module, "delete_folder", failing_delete)
        maps = [indexer.load_map(write_map(maps_dir / name)) for name in ("A", "B")]

        stream = deleter.delete_maps(maps)
        with pytest.raises(PermissionError):
            next(stream)
        assert (maps_dir / "B").exists()


class TestDeleteMapsFromHashes:
    """Test deleting maps by content hash."""

    def test_one_of_two_hashes_installed(
        self,
        deleter: MapDeleter,
        indexer: MapIndexer,
        maps_dir: Path,
        version: GameVersion,
    ):
        """Test progress covers every requested hash while only matches are deleted."""
        local_map = indexer.load_map(write_map(maps_dir / "A"))
        write_map(maps_dir / "B", charts={"Other.dat": b"other"})

        snapshots = list(deleter.delete_maps_from_hashes(version, [local_map.hash, "f" * 40]))
        final = snapshots[-1]

        assert final.current == final.total == 2
        assert final.deleted == 1
        assert not (maps_dir / "A").exists()
        assert (maps_dir / "B").exists()

    def test_hashes_are_case_insensitive_and_deduplicated(
        self,
        deleter: MapDeleter,
        indexer: MapIndexer,
        maps_dir: Path,
        version: GameVersion,
    ):
        local_map = indexer.load_map(write_map(maps_dir / "A"))

        final = list(
            deleter.delete_maps_from_hashes(version, [local_map.hash.upper(), local_map.hash])
        )[-1]

        assert final.total == 1
        assert final.deleted == 1

    def test_duplicate_folders_are_all_deleted(
        self,
        deleter: MapDeleter,
        indexer: MapIndexer,
        maps_dir: Path,
        version: GameVersion,
    ):
        """Test copies of the same map under different names all go."""
        local_map = indexer.load_map(write_map(maps_dir / "A"))
        write_map(maps_dir / "A copy")

        final = list(deleter.delete_maps_from_hashes(version, [local_map.hash]))[-1]

        assert final.deleted == 2
        assert list(maps_dir.iterdir()) == []

    def test_uses_trash_when_enabled(
        self,
        indexer: MapIndexer,
        resolver,
        maps_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
    ):
        trashed = []
        monkeypatch.setattr(send2trash, "send2trash", lambda path: trashed.append(path))
        local_map = indexer.load_map(write_map(maps_dir / "A"))

        list(MapDeleter(indexer, resolver, use_trash=True).delete_maps([local_map]))

        assert trashed == [str(maps_dir / "A")]
