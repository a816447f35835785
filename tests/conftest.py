"""
Pytest configuration and shared fixtures.
"""

import json

import pytest
from fastapi.testclient import TestClient

from api.main import app, get_book_service
from api.service import BookService
from api.storage import BookStorage


@pytest.fixture
def books_file(tmp_path):
    """Path to a books file that does not exist yet."""
    return tmp_path / "data" / "books.json"


@pytest.fixture
def sample_books():
    """Sample books as stored on disk, with a gap in the ids."""
    return [
        {"id": 1, "title": "Dune", "author": "Frank Herbert", "available": True},
        {"id": 3, "title": "Neuromancer", "author": "William Gibson", "available": False},
        {"id": 2, "title": "Solaris", "author": "Stanislaw Lem", "available": True},
    ]


@pytest.fixture
def write_books(books_file):
    """Write raw records to the books file."""
    def _write(records):
        books_file.parent.mkdir(parents=True, exist_ok=True)
        books_file.write_text(json.dumps(records, indent=2), encoding="utf-8")
    return _write


@pytest.fixture
def read_books(books_file):
    """Read raw records back from the books file."""
    def _read():
        return json.loads(books_file.read_text(encoding="utf-8"))
    return _read


@pytest.fixture
def storage(books_file):
    """Storage bound to the temporary books file."""
    return BookStorage(books_file)


@pytest.fixture
def book_service(storage):
    """Service bound to the temporary storage."""
    return BookService(storage)


@pytest.fixture
def client(book_service):
    """Test client whose routes use the temporary storage."""
    app.dependency_overrides[get_book_service] = lambda: book_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
