"""Map manifest (Info.dat) parsing.

Two dialects are understood: the v2/v3 layout with underscore-prefixed keys
and difficulties grouped by characteristic, and the v4 layout with a flat
``difficultyBeatmaps`` list that can reference a separate lightshow file.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from mapkeeper.core.exceptions import ManifestParseError

MANIFEST_FILENAME = "info.dat"


@dataclass(frozen=True)
class MapDifficulty:
    """One playable variant of a map."""

    characteristic: str = ""
    difficulty: str = ""
    beatmap_filename: Optional[str] = None
    lightshow_filename: Optional[str] = None

    def referenced_files(self) -> list[str]:
        """Chart then lightshow filename, skipping the absent ones."""
        return [f for f in (self.beatmap_filename, self.lightshow_filename) if f]


@dataclass(frozen=True)
class MapInfo:
    """Parsed manifest."""

    version: str
    cover_image_filename: str
    song_filename: str
    difficulties: tuple[MapDifficulty, ...] = field(default_factory=tuple)
    song_name: str = ""
    song_sub_name: str = ""
    song_author_name: str = ""
    level_author_name: str = ""
    bpm: float = 0.0


def is_manifest_name(filename: str) -> bool:
    """Case-insensitive check for the manifest filename."""
    return filename.lower() == MANIFEST_FILENAME


def read_manifest(path: Path) -> str:
    """Read raw manifest text, line endings untouched."""
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def parse_manifest(raw: str) -> MapInfo:
    """Parse raw manifest text.

    Args:
        raw: JSON text of an Info.dat file

    Returns:
        Parsed MapInfo

    Raises:
        ManifestParseError: If the text is not JSON or misses required fields
    """
    try:
        data = json.loads(raw.lstrip("\ufeff"))
    except ValueError as e:
        raise ManifestParseError(f"Manifest is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ManifestParseError("Manifest root must be an object")

    if _is_v4(data):
        return _parse_v4(data)
    return _parse_v2(data)


def _is_v4(data: dict[str, Any]) -> bool:
    version = data.get("version")
    if not isinstance(version, str):
        return False
    major = version.split(".")[0]
    return major.isdigit() and int(major) >= 4


def _parse_v2(data: dict[str, Any]) -> MapInfo:
    difficulties = []
    for beatmap_set in _require_list(data, "_difficultyBeatmapSets"):
        if not isinstance(beatmap_set, dict):
            raise ManifestParseError("'_difficultyBeatmapSets' entries must be objects")
        characteristic = _optional_str(beatmap_set, "_beatmapCharacteristicName") or ""
        for beatmap in _require_list(beatmap_set, "_difficultyBeatmaps"):
            if not isinstance(beatmap, dict):
                raise ManifestParseError("'_difficultyBeatmaps' entries must be objects")
            difficulties.append(
                MapDifficulty(
                    characteristic=characteristic,
                    difficulty=_optional_str(beatmap, "_difficulty") or "",
                    beatmap_filename=_optional_str(beatmap, "_beatmapFilename"),
                )
            )

    return MapInfo(
        version=_optional_str(data, "_version") or "2.0.0",
        cover_image_filename=_require_str(data, "_coverImageFilename"),
        song_filename=_require_str(data, "_songFilename"),
        difficulties=tuple(difficulties),
        song_name=_optional_str(data, "_songName") or "",
        song_sub_name=_optional_str(data, "_songSubName") or "",
        song_author_name=_optional_str(data, "_songAuthorName") or "",
        level_author_name=_optional_str(data, "_levelAuthorName") or "",
        bpm=_optional_number(data, "_beatsPerMinute"),
    )


def _parse_v4(data: dict[str, Any]) -> MapInfo:
    audio = data.get("audio")
    if not isinstance(audio, dict):
        raise ManifestParseError("Missing or invalid 'audio' object")
    song = data.get("song") if isinstance(data.get("song"), dict) else {}

    difficulties = []
    for beatmap in _require_list(data, "difficultyBeatmaps"):
        if not isinstance(beatmap, dict):
            raise ManifestParseError("'difficultyBeatmaps' entries must be objects")
        difficulties.append(
            MapDifficulty(
                characteristic=_optional_str(beatmap, "characteristic") or "",
                difficulty=_optional_str(beatmap, "difficulty") or "",
                beatmap_filename=_optional_str(beatmap, "beatmapDataFilename"),
                lightshow_filename=_optional_str(beatmap, "lightshowDataFilename"),
            )
        )

    mappers = []
    for beatmap in data["difficultyBeatmaps"]:
        authors = beatmap.get("beatmapAuthors")
        if isinstance(authors, dict):
            mappers.extend(a for a in authors.get("mappers", []) if isinstance(a, str))

    return MapInfo(
        version=data["version"],
        cover_image_filename=_require_str(data, "coverImageFilename"),
        song_filename=_require_str(audio, "songFilename"),
        difficulties=tuple(difficulties),
        song_name=_optional_str(song, "title") or "",
        song_sub_name=_optional_str(song, "subTitle") or "",
        song_author_name=_optional_str(song, "author") or "",
        level_author_name=", ".join(dict.fromkeys(mappers)),
        bpm=_optional_number(audio, "bpm"),
    )


def _require_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ManifestParseError(f"Missing or invalid '{key}'")
    return value


def _require_list(data: dict[str, Any], key: str) -> list:
    value = data.get(key)
    if not isinstance(value, list):
        raise ManifestParseError(f"Missing or invalid '{key}'")
    return value


def _optional_str(data: dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ManifestParseError(f"'{key}' must be a string")
    return value or None


def _optional_number(data: dict[str, Any], key: str) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)
