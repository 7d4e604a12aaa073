"""
Categorization domain package.

This package contains:

- the file and result data types
- the categorization provider (request building, reply parsing, allow-list
  sanitization, the LLM call)
- the error taxonomy surfaced to the user
"""

from .errors import (
    CategorizationError,
    CategorizationFailedError,
    EmptyAllowListError,
    UnsupportedMediaTypeError,
)
from .models import CategorizationResult, ImagePreview, UploadedFile
from .provider import (
    CategorizationProvider,
    parse_categorization_response,
    sanitize_categorization,
)

__all__ = [
    "CategorizationError",
    "CategorizationFailedError",
    "CategorizationProvider",
    "CategorizationResult",
    "EmptyAllowListError",
    "ImagePreview",
    "UnsupportedMediaTypeError",
    "UploadedFile",
    "parse_categorization_response",
    "sanitize_categorization",
]
