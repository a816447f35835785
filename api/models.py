"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class Book(BaseModel):
    """
    A book record as stored in the books file.

    Fields other than id may be null in files written by older deployments,
    and unknown keys are kept so that a rewrite does not drop them.
    """
    model_config = ConfigDict(extra="allow")

    id: int = Field(..., description="Unique book identifier")
    title: Optional[str] = Field(..., description="Book title")
    author: Optional[str] = Field(..., description="Book author")
    available: Optional[bool] = Field(..., description="Whether the book can be borrowed")

    @classmethod
    def from_record(cls, record: dict) -> "Book":
        """
        Build a book from a stored record.

        A record that does not validate is kept with its raw values; missing
        fields become null.
        """
        try:
            return cls.model_validate(record)
        except ValidationError:
            values = {name: None for name in cls.model_fields}
            values.update(record)
            return cls.model_construct(**values)

    def to_dict(self) -> dict:
        """Plain dict for JSON output, raw values included."""
        return self.model_dump(warnings=False)


class BookCreate(BaseModel):
    """
    Request body for creating a book.

    Every field is optional at the schema level; the service checks presence
    so that a missing field is reported with the domain error message.
    """
    title: Optional[str] = Field(None, description="Book title")
    author: Optional[str] = Field(None, description="Book author")
    available: Optional[bool] = Field(None, description="Whether the book can be borrowed")


class BookUpdate(BaseModel):
    """Request body for a partial book update."""
    title: Optional[str] = Field(None, description="New title")
    author: Optional[str] = Field(None, description="New author")
    available: Optional[bool] = Field(None, description="New availability")

    def changes(self) -> dict:
        """Fields that were supplied with a non-null value."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class StorageStatus(str, Enum):
    """Backing file status reported by the health check."""
    HEALTHY = "healthy"
    MISSING = "missing"
    UNREADABLE = "unreadable"


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    storage_status: StorageStatus = Field(..., description="Books file status")
