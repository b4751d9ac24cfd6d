# core/errors.py


class CatalogError(Exception):
    """Base class for menu catalog failures."""


class StorageError(CatalogError):
    """Local item store could not be opened, written or queried."""


class NetworkError(CatalogError):
    """Remote menu endpoint unreachable or returned a non-success status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DataFormatError(CatalogError):
    """Remote payload is not the expected JSON shape."""
