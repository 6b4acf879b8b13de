"""Exception hierarchy for map management."""


class MapKeeperError(Exception):
    """Base error carrying a short machine-readable code."""

    code = "unknown"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code

    @classmethod
    def from_error(cls, error: BaseException, message: str | None = None) -> "MapKeeperError":
        """Wrap an arbitrary exception, keeping it as the cause."""
        wrapped = cls(message or str(error))
        wrapped.__cause__ = error
        return wrapped


class ManifestParseError(MapKeeperError):
    """Manifest text is not valid JSON or does not match the expected schema."""

    code = "cannot-parse-map-info"


class HashComputationError(MapKeeperError):
    """A file referenced by the manifest is missing or unreadable."""

    code = "cannot-compute-hash"


class NoAssetsFoundError(MapKeeperError):
    """No archive of an import batch contains a manifest."""

    code = "invalid-zip"


class MapImportError(MapKeeperError):
    """A single map could not be extracted from an archive."""

    code = "cannot-import-map"


class MapDownloadError(MapKeeperError):
    """A remote map could not be downloaded or installed."""

    code = "cannot-download-map"
