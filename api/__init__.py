"""
FastAPI RESTful API for a books collection stored as a JSON file.

This package provides:
- Listing all books or only the available ones
- Creating, partially updating and deleting books
- Flat-file storage that re-reads the file on every request
"""
