"""Domain exceptions for the Books API."""
from pathlib import Path
from typing import Optional, Union


class BookAPIError(Exception):
    """Base Books API exception."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class BookValidationError(BookAPIError):
    """A create request is missing required fields."""

    def __init__(self, message: str = "Title, author, and available are required"):
        super().__init__(message)


class BookNotFoundError(BookAPIError):
    """No book has the requested id."""

    def __init__(self, book_id: Optional[int] = None):
        super().__init__("Book not found")
        self.book_id = book_id


class StorageWriteError(BookAPIError):
    """The books file could not be written."""

    def __init__(self, path: Union[str, Path], error: Exception):
        super().__init__(f"Failed to write books file '{path}': {error}")
        self.path = path
        self.error = error
