"""HTTP file downloads."""

import urllib.request
from pathlib import Path
from typing import Iterator

from mapkeeper import __version__
from mapkeeper.core.progress import Progress

CHUNK_SIZE = 64 * 1024


class UrlDownloader:
    """Downloads files with urllib, reporting progress in bytes."""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    def download_file(self, url: str, destination: Path) -> Iterator[Progress[Path]]:
        """Stream url into destination.

        ``total`` is the announced content length (0 if unknown). The last
        snapshot carries the destination path in ``data``. A partial file is
        removed on failure.

        Raises:
            OSError: On network or filesystem errors (urllib errors are OSError)
        """
        request = urllib.request.Request(
            url, headers={"User-Agent": f"MapKeeper/{__version__}"}
        )
        progress: Progress[Path] = Progress()
        destination.parent.mkdir(parents=True, exist_ok=True)

        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                progress.total = int(response.headers.get("Content-Length") or 0)
                with open(destination, "wb") as f:
                    while chunk := response.read(CHUNK_SIZE):
                        f.write(chunk)
                        progress.current += len(chunk)
                        yield progress.snapshot()
        except BaseException:
            destination.unlink(missing_ok=True)
            raise

        progress.data = destination
        yield progress.snapshot()
