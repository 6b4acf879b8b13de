"""Content hashing for map folders.

The hash identifies a map independently of the folder it is stored in:
SHA-1 over the raw manifest text followed by every chart and lightshow file,
in the order the manifest declares them. This matches the hash used by the
online map repositories, so local and remote maps can be compared directly.
"""

import hashlib
from pathlib import Path

from mapkeeper.core.exceptions import HashComputationError, ManifestParseError
from mapkeeper.core.maps.manifest import MapInfo, parse_manifest

# Size of each chunk to read (64KB)
CHUNK_SIZE = 64 * 1024


def compute_map_hash(map_path: Path, raw_info: str) -> str:
    """Compute the content hash of a map.

    Args:
        map_path: Map folder holding the referenced files
        raw_info: Raw manifest text, exactly as stored on disk

    Returns:
        Lowercase hex SHA-1 digest

    Raises:
        HashComputationError: If the manifest cannot be parsed or a
            referenced file is missing or unreadable
    """
    try:
        map_info = parse_manifest(raw_info)
    except ManifestParseError as e:
        raise HashComputationError(
            f"Unable to compute hash, cannot parse map info at {map_path}: {e}"
        ) from e

    return hash_map_files(map_path, raw_info, map_info)


def hash_map_files(map_path: Path, raw_info: str, map_info: MapInfo) -> str:
    """Hash manifest text plus referenced files of an already parsed manifest."""
    hasher = hashlib.sha1()
    hasher.update(raw_info.encode("utf-8"))
    root = map_path.resolve()

    for difficulty in map_info.difficulties:
        for filename in difficulty.referenced_files():
            file_path = map_path / filename
            if not file_path.resolve().is_relative_to(root):
                raise HashComputationError(
                    f"Unable to compute hash, {filename} is outside of {map_path}"
                )
            try:
                _update_from_file(hasher, file_path)
            except OSError as e:
                raise HashComputationError(
                    f"Unable to compute hash, cannot read {file_path}: {e}"
                ) from e

    return hasher.hexdigest()


def _update_from_file(hasher, path: Path) -> None:
    with open(path, "rb") as f:
        while chunk := f.read(CHUNK_SIZE):
            hasher.update(chunk)
