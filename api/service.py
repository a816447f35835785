"""
Service layer for book operations.

Each operation loads the whole collection, works on it in memory and, for
mutations, writes the whole collection back.
"""

import asyncio
import re
from contextlib import asynccontextmanager
from typing import List, Optional

import structlog

from api.exceptions import BookNotFoundError, BookValidationError
from api.models import Book, BookCreate, BookUpdate
from api.storage import BookStorage

logger = structlog.get_logger(__name__)

_LEADING_HEX = re.compile(r"\s*([+-]?)0[xX]([0-9a-fA-F]*)")
_LEADING_DEC = re.compile(r"\s*([+-]?[0-9]+)")


def parse_book_id(raw: str) -> Optional[int]:
    """
    Parse a path segment as a book id.

    Leading whitespace and a sign are accepted and anything after the leading
    digits is ignored, so "12abc" is 12. A "0x" prefix reads the digits as
    hexadecimal ("0x10" is 16). Only ASCII digits count. A segment without
    leading digits returns None, which matches no book.
    """
    match = _LEADING_HEX.match(raw)
    if match:
        sign, digits = match.groups()
        if not digits:
            return None
        value = int(digits, 16)
        return -value if sign == "-" else value

    match = _LEADING_DEC.match(raw)
    if not match:
        return None
    return int(match.group(1))


def next_book_id(books: List[Book]) -> int:
    """Current maximum id plus one, or 1 for an empty collection."""
    ids = [book.id for book in books if type(book.id) is int]
    if not ids:
        return 1
    return max(ids) + 1


def _find_index(books: List[Book], book_id: Optional[int]) -> int:
    if book_id is None:
        return -1
    for index, book in enumerate(books):
        if type(book.id) is int and book.id == book_id:
            return index
    return -1


class BookService:
    """Book operations over a BookStorage."""

    def __init__(self, storage: BookStorage, serialize_mutations: bool = False):
        self.storage = storage
        self._lock = asyncio.Lock() if serialize_mutations else None

    @asynccontextmanager
    async def _mutation(self):
        if self._lock is None:
            yield
            return
        async with self._lock:
            yield

    async def list_books(self) -> List[Book]:
        """Return every book in stored order."""
        return await self.storage.load_all()

    async def list_available_books(self) -> List[Book]:
        """Return only the books marked available, in stored order."""
        books = await self.storage.load_all()
        return [book for book in books if book.available is True]

    async def create_book(self, payload: BookCreate) -> Book:
        """
        Create a book with the next id.

        Args:
            payload: Title, author and availability of the new book

        Returns:
            The stored book including its assigned id

        Raises:
            BookValidationError: If title or author is missing or empty, or
                available is missing
        """
        if not payload.title or not payload.author or payload.available is None:
            raise BookValidationError()

        async with self._mutation():
            books = await self.storage.load_all()
            book = Book(
                id=next_book_id(books),
                title=payload.title,
                author=payload.author,
                available=payload.available
            )
            books.append(book)
            await self.storage.save_all(books)

        logger.info("Book created", book_id=book.id, total=len(books))
        return book

    async def update_book(self, book_id: Optional[int], payload: BookUpdate) -> Book:
        """
        Apply a partial update; fields absent from the payload keep their values.

        Raises:
            BookNotFoundError: If no book has the given id
        """
        async with self._mutation():
            books = await self.storage.load_all()
            index = _find_index(books, book_id)
            if index == -1:
                raise BookNotFoundError(book_id)

            changes = payload.changes()
            books[index] = books[index].model_copy(update=changes)
            await self.storage.save_all(books)

        logger.info("Book updated", book_id=book_id, fields=sorted(changes))
        return books[index]

    async def delete_book(self, book_id: Optional[int]) -> Book:
        """
        Remove a book and return it.

        Raises:
            BookNotFoundError: If no book has the given id
        """
        async with self._mutation():
            books = await self.storage.load_all()
            index = _find_index(books, book_id)
            if index == -1:
                raise BookNotFoundError(book_id)

            deleted = books.pop(index)
            await self.storage.save_all(books)

        logger.info("Book deleted", book_id=book_id, total=len(books))
        return deleted
