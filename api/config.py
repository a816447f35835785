"""
API configuration settings.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Books API"
    api_version: str = "1.0.0"
    api_description: str = "A small CRUD API over a books collection stored as a JSON file"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Storage Settings
    books_file: str = "books.json"

    # Routing
    route_prefixes: List[str] = ["", "/api"]

    # Run create/update/delete one at a time within this process
    serialize_mutations: bool = False

    # CORS Settings
    cors_origins: list = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list = ["*"]
    cors_allow_headers: list = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"  # Ignore extra fields from .env
    }

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    @field_validator('route_prefixes')
    @classmethod
    def validate_route_prefixes(cls, v):
        """Normalize prefixes to '' or '/segment' without a trailing slash."""
        prefixes = []
        for prefix in v:
            prefix = prefix.strip().rstrip('/')
            if prefix and not prefix.startswith('/'):
                prefix = f'/{prefix}'
            if prefix not in prefixes:
                prefixes.append(prefix)
        if not prefixes:
            raise ValueError('route_prefixes must contain at least one prefix')
        return prefixes

    def get_books_file_path(self) -> Path:
        """Get books file path as Path object."""
        return Path(self.books_file)

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None


# Global config instance
config = APIConfig()
