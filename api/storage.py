"""
Flat-file storage for the books collection.

The whole collection lives in one JSON array. Every call reads or rewrites
the entire document; nothing is cached between calls.
"""

import asyncio
import json
from pathlib import Path
from typing import List, Union

import structlog

from api.exceptions import StorageWriteError
from api.models import Book, StorageStatus

logger = structlog.get_logger(__name__)


class BookStorage:
    """Reads and writes the books collection as a single JSON document."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def load_all(self) -> List[Book]:
        """
        Load the full collection.

        A missing, unreadable or malformed file yields an empty list.

        Returns:
            Books in file order
        """
        try:
            books = await asyncio.to_thread(self._read)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read books file", path=str(self.path), error=str(e))
            return []

        logger.debug("Loaded books", path=str(self.path), count=len(books))
        return books

    async def save_all(self, books: List[Book]) -> None:
        """
        Overwrite the backing file with the full collection.

        Args:
            books: Complete ordered collection to persist

        Raises:
            StorageWriteError: If the file cannot be serialized or written
        """
        try:
            await asyncio.to_thread(self._write, books)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to write books file", path=str(self.path), error=str(e))
            raise StorageWriteError(self.path, e) from e

        logger.debug("Saved books", path=str(self.path), count=len(books))

    async def status(self) -> StorageStatus:
        """Report whether the backing file exists and can be read."""
        return await asyncio.to_thread(self._status)

    def exists(self) -> bool:
        return self.path.is_file()

    def _read(self) -> List[Book]:
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError("books file does not contain a JSON array")

        books = []
        for position, record in enumerate(data):
            if not isinstance(record, dict):
                raise ValueError(f"entry {position} in books file is not an object")
            books.append(Book.from_record(record))
        return books

    def _write(self, books: List[Book]) -> None:
        content = json.dumps(
            [book.to_dict() for book in books],
            indent=2,
            ensure_ascii=False
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(content, encoding="utf-8")

    def _status(self) -> StorageStatus:
        if not self.path.exists():
            return StorageStatus.MISSING
        try:
            with open(self.path, "rb") as f:
                f.read(1)
        except OSError:
            return StorageStatus.UNREADABLE
        return StorageStatus.HEALTHY
