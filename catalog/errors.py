"""
Exception hierarchy for catalog operations.
"""


class CatalogError(Exception):
    """Base class for all catalog errors."""


class ConfigurationError(CatalogError):
    """A required setting or credential is missing."""


class UpstreamFetchError(CatalogError):
    """The ranking feed returned a non-success status or an unusable body."""


class StorePurgeError(CatalogError):
    """Deleting the existing catalog failed; the catalog is unchanged."""


class StoreLoadError(CatalogError):
    """
    Inserting the fetched records failed after a successful purge.

    Unless a restore was performed, the catalog is left empty.
    """

    def __init__(self, message: str, restored: bool = False):
        super().__init__(message)
        self.restored = restored


class UserMutationError(CatalogError):
    """
    A single admin create, update or delete call failed.

    ``books`` holds the catalog listing re-read after the failed call.
    """

    def __init__(self, message: str, books=None):
        super().__init__(message)
        self.books = books or []
