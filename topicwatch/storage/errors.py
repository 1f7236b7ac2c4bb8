"""Storage exceptions."""


class StorageError(Exception):
    pass


class StorageUnavailableError(StorageError):
    """Database unreachable or connection lost; aborts the current crawl."""


class ConflictError(StorageError):
    """A unique constraint rejected the write (topic title, or topic + url)."""
