"""Filesystem helpers shared by the map pipelines."""

import shutil
from pathlib import Path

import send2trash


def get_folders_in_folder(path: Path) -> list[Path]:
    """List immediate subfolders (symlinked folders included), sorted by name."""
    if not path.is_dir():
        return []
    return sorted((p for p in path.iterdir() if p.is_dir()), key=lambda p: p.name.lower())


def get_files_in_folder(path: Path) -> list[Path]:
    """List regular files directly inside a folder."""
    return [p for p in path.iterdir() if p.is_file()]


def ensure_folder(path: Path) -> Path:
    """Create folder (and parents) if missing."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def delete_folder(path: Path, use_trash: bool = False) -> None:
    """Delete a folder recursively (or move it to trash).

    A symlinked folder is unlinked, never followed.

    Raises:
        OSError: If the folder cannot be removed
    """
    if use_trash:
        send2trash.send2trash(str(path))
    elif path.is_symlink() or path.is_file():
        path.unlink()
    else:
        shutil.rmtree(str(path))


def copy_folder(src: Path, dst: Path) -> None:
    """Copy a directory tree, overwriting files that already exist in dst."""
    dst.mkdir(parents=True, exist_ok=True)

    for item in src.iterdir():
        target = dst / item.name
        if item.is_dir():
            copy_folder(item, target)
        else:
            shutil.copy2(str(item), str(target))
