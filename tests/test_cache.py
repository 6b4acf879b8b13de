"""Tests for MapInfoCache - folder name and hash indexes."""

import json

from mapkeeper.core.maps.cache import MapInfoCache
from mapkeeper.core.maps.manifest import parse_manifest

from conftest import info_v2

MAP_INFO = parse_manifest(json.dumps(info_v2(["Easy.dat"])))


class TestCache:
    """Test the two indexes stay consistent."""

    def test_put_and_get(self, cache: MapInfoCache):
        cache.put("MapA", MAP_INFO, "abc")

        entry = cache.get("MapA")
        assert entry is not None
        assert entry.hash == "abc"
        assert entry.map_info is MAP_INFO
        assert cache.get_by_hash("abc") == "MapA"

    def test_miss(self, cache: MapInfoCache):
        assert cache.get("Nope") is None
        assert cache.get_by_hash("nope") is None

    def test_delete_evicts_both_indexes(self, cache: MapInfoCache):
        cache.put("MapA", MAP_INFO, "abc")
        cache.delete("MapA")

        assert cache.get("MapA") is None
        assert cache.get_by_hash("abc") is None
        assert len(cache) == 0

    def test_delete_unknown_is_noop(self, cache: MapInfoCache):
        cache.delete("Nope")
        assert len(cache) == 0

    def test_replacing_entry_drops_old_hash(self, cache: MapInfoCache):
        """Test re-inserting a folder with new content forgets the old hash."""
        cache.put("MapA", MAP_INFO, "old")
        cache.put("MapA", MAP_INFO, "new")

        assert cache.get_by_hash("old") is None
        assert cache.get_by_hash("new") == "MapA"

    def test_delete_keeps_hash_owned_by_other_folder(self, cache: MapInfoCache):
        """Test evicting a folder keeps a hash hint pointing at another folder."""
        cache.put("MapA", MAP_INFO, "same")
        cache.put("MapB", MAP_INFO, "same")
        cache.delete("MapA")

        assert cache.get_by_hash("same") == "MapB"
        assert "MapB" in cache
