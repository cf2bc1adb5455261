"""Storage exceptions."""


class StorageError(Exception):
    """Exception raised for storage operation failures."""

    pass
