"""Error kinds raised by the MyTime core and mapped to HTTP responses by the API."""


class MyTimeError(Exception):
    """Base class for all MyTime errors."""


class EntryValidationError(MyTimeError):
    """A day edit request is malformed or breaks the minimum activity length."""


class CategoryNotFoundError(MyTimeError):
    """An activity type id does not resolve to a stored row."""

    def __init__(self, category_id: int):
        super().__init__(f"Activity type {category_id} not found")
        self.category_id = category_id


class CategoryConflictError(MyTimeError):
    """A concurrent create collided and the winning row could not be re-read."""


class StorageError(MyTimeError):
    """The underlying store failed; the current transaction was rolled back."""
