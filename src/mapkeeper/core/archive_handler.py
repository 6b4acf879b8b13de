"""Archive file handler (ZIP, RAR, 7z) and ZIP writer."""

import re
import tempfile
import zipfile
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from mapkeeper.core.progress import Progress

try:
    import rarfile

    HAS_RARFILE = True
except ImportError:
    HAS_RARFILE = False

try:
    import py7zr

    HAS_PY7ZR = True
except ImportError:
    HAS_PY7ZR = False

# Library errors for corrupt archives, reported as OSError
BAD_ARCHIVE_ERRORS: tuple[type[Exception], ...] = (zipfile.BadZipFile,)
if HAS_RARFILE:
    BAD_ARCHIVE_ERRORS += (rarfile.Error,)
if HAS_PY7ZR:
    BAD_ARCHIVE_ERRORS += (py7zr.Bad7zFile,)

# Errors reading one entry: bad CRC, broken deflate stream, truncated data,
# encrypted entries and unsupported compression methods
ENTRY_READ_ERRORS = BAD_ARCHIVE_ERRORS + (zlib.error, EOFError, RuntimeError, NotImplementedError)


@dataclass
class ArchiveEntry:
    """Entry in an archive file.

    ``path`` always uses "/" separators; ``raw_name`` is the name the
    underlying library expects when reading the entry.
    """

    name: str
    path: str
    is_dir: bool
    size: int
    raw_name: str = ""


class ArchiveHandler(ABC):
    """Base class for archive readers."""

    def __init__(self, archive_path: Path):
        self.archive_path = archive_path
        self._entries: dict[str, ArchiveEntry] = {}

    def __enter__(self) -> "ArchiveHandler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _add_entry(self, raw_name: str, is_dir: bool, size: int) -> None:
        """Register an entry and its implicit parent directories."""
        path = raw_name.replace("\\", "/").strip("/")
        if not path:
            return

        self._entries[path] = ArchiveEntry(
            name=path.rsplit("/", 1)[-1],
            path=path,
            is_dir=is_dir,
            size=size,
            raw_name=raw_name,
        )

        parent = path.rpartition("/")[0]
        while parent and parent not in self._entries:
            self._entries[parent] = ArchiveEntry(
                name=parent.rsplit("/", 1)[-1], path=parent, is_dir=True, size=0
            )
            parent = parent.rpartition("/")[0]

    def list_entries_matching(self, pattern: re.Pattern) -> list[ArchiveEntry]:
        """List file entries whose normalized path matches pattern."""
        return [
            entry
            for path, entry in sorted(self._entries.items())
            if not entry.is_dir and pattern.search(path)
        ]

    def list_files(self, internal_path: str = "") -> list[ArchiveEntry]:
        """List every file below internal_path (recursively)."""
        prefix = internal_path.strip("/")
        prefix = prefix + "/" if prefix else ""
        return [
            entry
            for path, entry in sorted(self._entries.items())
            if not entry.is_dir and path.startswith(prefix)
        ]

    def read_entry(self, entry: ArchiveEntry) -> bytes:
        """Read file content for an entry returned by this handler.

        Raises:
            OSError: If the entry is corrupt or cannot be decoded
        """
        try:
            return self.read_file(entry.raw_name or entry.path)
        except ENTRY_READ_ERRORS as e:
            raise OSError(f"Cannot read {entry.path} from {self.archive_path}: {e}") from e

    @abstractmethod
    def read_file(self, internal_path: str) -> bytes:
        """Read file content from archive."""

    @abstractmethod
    def extract_all(self, destination: Path) -> None:
        """Extract entire archive to destination."""

    @abstractmethod
    def close(self) -> None:
        """Close the archive."""


class ZipHandler(ArchiveHandler):
    """ZIP file handler."""

    def __init__(self, archive_path: Path):
        super().__init__(archive_path)
        self._zip = zipfile.ZipFile(archive_path, "r")
        for info in self._zip.infolist():
            self._add_entry(info.filename, info.is_dir(), info.file_size)

    def read_file(self, internal_path: str) -> bytes:
        return self._zip.read(internal_path)

    def extract_all(self, destination: Path) -> None:
        self._zip.extractall(destination)

    def close(self) -> None:
        self._zip.close()


class RarHandler(ArchiveHandler):
    """RAR file handler."""

    def __init__(self, archive_path: Path):
        super().__init__(archive_path)
        if not HAS_RARFILE:
            raise ImportError("rarfile module not available")
        self._rar = rarfile.RarFile(str(archive_path), "r")  # type: ignore[possibly-undefined]
        for info in self._rar.infolist():
            self._add_entry(info.filename, info.is_dir(), info.file_size)

    def read_file(self, internal_path: str) -> bytes:
        return self._rar.read(internal_path)

    def extract_all(self, destination: Path) -> None:
        self._rar.extractall(str(destination))

    def close(self) -> None:
        self._rar.close()


class SevenZipHandler(ArchiveHandler):
    """7z file handler.

    7z archives are solid, so reading one file means decoding the archive;
    the first read unpacks everything into a temporary folder.
    """

    def __init__(self, archive_path: Path):
        super().__init__(archive_path)
        if not HAS_PY7ZR:
            raise ImportError("py7zr module not available")
        with py7zr.SevenZipFile(archive_path, "r") as archive:  # type: ignore[possibly-undefined]
            for info in archive.list():
                self._add_entry(info.filename, info.is_directory, info.uncompressed or 0)
        self._unpacked: tempfile.TemporaryDirectory | None = None

    def read_file(self, internal_path: str) -> bytes:
        if self._unpacked is None:
            self._unpacked = tempfile.TemporaryDirectory(prefix="mapkeeper-7z-")
            self.extract_all(Path(self._unpacked.name))
        return (Path(self._unpacked.name) / internal_path).read_bytes()

    def extract_all(self, destination: Path) -> None:
        with py7zr.SevenZipFile(self.archive_path, "r") as archive:  # type: ignore[possibly-undefined]
            archive.extractall(path=destination)

    def close(self) -> None:
        if self._unpacked is not None:
            self._unpacked.cleanup()
            self._unpacked = None


class ArchiveManager:
    """Manager for handling different archive types."""

    HANDLERS: dict[str, type[ArchiveHandler]] = {
        ".zip": ZipHandler,
    }

    if HAS_RARFILE:
        HANDLERS[".rar"] = RarHandler

    if HAS_PY7ZR:
        HANDLERS[".7z"] = SevenZipHandler

    @classmethod
    def is_archive(cls, path: Path) -> bool:
        """Check if path is a supported archive."""
        return path.suffix.lower() in cls.HANDLERS

    @classmethod
    def open(cls, archive_path: Path) -> ArchiveHandler:
        """Open archive with the handler matching its extension.

        Raises:
            ValueError: If the format is not supported
            OSError: If the archive cannot be read
        """
        handler_class = cls.HANDLERS.get(archive_path.suffix.lower())
        if handler_class is None:
            raise ValueError(f"Unsupported archive format: {archive_path.suffix}")
        try:
            return handler_class(archive_path)
        except BAD_ARCHIVE_ERRORS as e:
            raise OSError(f"Cannot read archive {archive_path}: {e}") from e

    @classmethod
    def supported_extensions(cls) -> list[str]:
        """Get list of supported extensions."""
        return list(cls.HANDLERS.keys())

    @classmethod
    def extract(cls, archive_path: Path, destination: Path) -> None:
        """Extract entire archive to destination."""
        with cls.open(archive_path) as handler:
            try:
                handler.extract_all(destination)
            except ENTRY_READ_ERRORS as e:
                raise OSError(f"Cannot extract {archive_path}: {e}") from e


class ZipArchiveWriter:
    """Collects directories and writes them into one ZIP file.

    Nothing is written until ``finalize()`` is iterated; it yields one
    progress snapshot per file stored.
    """

    def __init__(self, output_path: Path):
        self.output_path = output_path
        self._directories: list[tuple[Path, bool]] = []

    def add_directory(self, path: Path, keep_root_name: bool = True) -> None:
        """Queue a directory.

        Args:
            path: Directory to add recursively
            keep_root_name: Store files under "<dirname>/"; when False the
                directory's content lands at the archive root
        """
        self._directories.append((path, keep_root_name))

    def _collect(self) -> list[tuple[Path, str]]:
        files = []
        for directory, keep_root_name in self._directories:
            for file_path in sorted(directory.rglob("*")):
                if not file_path.is_file():
                    continue
                arcname = file_path.relative_to(directory).as_posix()
                if keep_root_name:
                    arcname = f"{directory.name}/{arcname}"
                files.append((file_path, arcname))
        return files

    def finalize(self) -> Iterator[Progress[str]]:
        """Write the archive, yielding progress per stored file.

        A partially written archive is removed if anything fails.
        """
        files = self._collect()
        progress: Progress[str] = Progress(total=len(files))
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with zipfile.ZipFile(self.output_path, "w", zipfile.ZIP_DEFLATED) as archive:
                for file_path, arcname in files:
                    archive.write(file_path, arcname)
                    progress.current += 1
                    progress.data = arcname
                    yield progress.snapshot()
        except BaseException:
            self.output_path.unlink(missing_ok=True)
            raise
