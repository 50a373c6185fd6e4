class StorageError(Exception):
    """The backing store failed to carry out an operation."""


class DuplicateRecordError(StorageError):
    """A uniqueness constraint rejected the write (username, email, attendance pair)."""


class MissingReferenceError(StorageError):
    """The write points at a user or event that does not exist."""
